"""Dependency injection container for host interactions.

The real implementation wraps actual system calls, while tests can inject a
fake host.

Usage:
    # Production code
    container = get_container()
    result = container.host.run(["/usr/bin/csrutil", "status"])

    # Test code
    set_container(DependencyContainer(host=FakeHost()))
"""
from __future__ import annotations

import logging
import os
import time
from typing import List, Optional, Sequence, Tuple

import psutil

from ..utils.commands import (
    CommandResult,
    get_console_user,
    run_command,
    which,
)
from .interfaces import HostInterface, ListeningSocket

logger = logging.getLogger(__name__)

# Global container instance (singleton pattern)
_container: Optional["DependencyContainer"] = None


class RealHost:
    """Production implementation of HostInterface."""

    def run(self, args: Sequence[str]) -> CommandResult:
        """Execute a command, folding launch failures into the result."""
        try:
            return run_command(args)
        except FileNotFoundError:
            return CommandResult(
                stdout="",
                stderr=f"Command not found: {args[0]}",
                returncode=127,
                command=list(args),
            )
        except OSError as exc:
            logger.error("OS error running %s: %s", args[0], exc)
            return CommandResult(stdout="", stderr=str(exc), returncode=-1, command=list(args))

    def executable_exists(self, path: str) -> bool:
        return which(path) is not None

    def find_processes(self, name: str, uid: int | None = None) -> List[int]:
        pids: List[int] = []
        for proc in psutil.process_iter(["pid", "name", "uids"]):
            info = proc.info
            if info.get("name") != name:
                continue
            uids = info.get("uids")
            if uid is not None and (uids is None or uids.real != uid):
                continue
            pids.append(info["pid"])
        return pids

    def listening_sockets(self) -> List[ListeningSocket]:
        sockets: List[ListeningSocket] = []
        try:
            connections = psutil.net_connections(kind="tcp")
        except psutil.AccessDenied:
            logger.warning("Access denied enumerating sockets; run as root for a full list")
            return sockets
        for conn in connections:
            if conn.status != psutil.CONN_LISTEN or not conn.laddr:
                continue
            sockets.append(
                ListeningSocket(
                    address=conn.laddr.ip,
                    port=conn.laddr.port,
                    pid=conn.pid,
                    process_name=_process_name(conn.pid),
                )
            )
        return sorted(sockets, key=lambda s: (s.port, s.address))

    def console_user(self) -> Tuple[str, int]:
        return get_console_user()

    def is_root(self) -> bool:
        return hasattr(os, "geteuid") and os.geteuid() == 0

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def _process_name(pid: int | None) -> str:
    if not pid:
        return "?"
    try:
        return psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return "?"


class DependencyContainer:
    """Holds the host implementation used by every component."""

    def __init__(self, host: Optional[HostInterface] = None) -> None:
        self._host = host or RealHost()

    @property
    def host(self) -> HostInterface:
        return self._host


def get_container() -> DependencyContainer:
    """Get the global container, creating the production one on first use."""
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container


def set_container(container: Optional[DependencyContainer]) -> None:
    """Replace the global container (None resets to production on next use)."""
    global _container
    _container = container
