"""Command execution utilities for macOS hardening."""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)


class CommandExecutionError(RuntimeError):
    """Raised when a command cannot be executed or exits with error."""

    def __init__(
        self,
        command: Sequence[str],
        stdout: str,
        stderr: str,
        returncode: int,
    ) -> None:
        super().__init__(
            f"Command '{' '.join(command)}' failed with code {returncode}: {stderr.strip()}"
        )
        self.command = list(command)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


@dataclass(slots=True)
class CommandResult:
    """Container for command outputs."""

    stdout: str
    stderr: str
    returncode: int
    elapsed_time: float = 0.0
    command: Sequence[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as a terminal would show it."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


def run_command(command: Sequence[str]) -> CommandResult:
    """Execute a system command and wait for it to finish.

    No time limit is applied: an unresponsive command stalls the caller.

    Args:
        command: Command with arguments.

    Raises:
        FileNotFoundError: If the command cannot be located.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    cmd_str = " ".join(shlex.quote(arg) for arg in command)
    start_time = time.perf_counter()
    try:
        logger.debug("Running command: %s", cmd_str)
        completed = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.error("Command not found: %s", command[0])
        raise

    result = CommandResult(
        stdout=(completed.stdout or "").strip(),
        stderr=(completed.stderr or "").strip(),
        returncode=completed.returncode,
        elapsed_time=time.perf_counter() - start_time,
        command=list(command),
    )

    if result.elapsed_time > 30:
        logger.info("Slow command (%.1fs): %s", result.elapsed_time, command[0])
    if not result.ok:
        logger.debug("Command exited with code %s: %s", result.returncode, cmd_str)

    return result


def which(executable: str) -> str | None:
    """Return full path for executable if available."""

    if not executable:
        raise ValueError("Executable name cannot be empty")
    if os.path.isabs(executable):
        path = executable if os.access(executable, os.X_OK) else None
    else:
        path = shutil.which(executable)
    if path:
        logger.debug("Found executable %s at %s", executable, path)
    else:
        logger.debug("Executable %s not found", executable)
    return path


def get_console_user() -> Tuple[str, int]:
    """Get the user owning the active graphical session.

    Returns:
        Tuple of (username, uid). Returns ("", 0) if unable to determine.
    """
    try:
        result = subprocess.run(
            ["/usr/sbin/scutil"],
            input="show State:/Users/ConsoleUser\n",
            capture_output=True,
            text=True,
        )
        if result.returncode == 0:
            for line in result.stdout.splitlines():
                if "Name :" in line:
                    username = line.split(":")[-1].strip()
                    if username and username != "loginwindow":
                        uid = _lookup_uid(username)
                        if uid is not None:
                            return (username, uid)
    except OSError as exc:
        logger.debug("Could not get console user: %s", exc)

    # Fallback: the user who invoked sudo
    sudo_user = os.environ.get("SUDO_USER", "")
    if sudo_user:
        uid = _lookup_uid(sudo_user)
        if uid is not None:
            return (sudo_user, uid)

    return ("", 0)


def _lookup_uid(username: str) -> int | None:
    try:
        uid_result = subprocess.run(
            ["/usr/bin/id", "-u", username],
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if uid_result.returncode != 0:
        return None
    try:
        return int(uid_result.stdout.strip())
    except ValueError:
        return None


def user_session_command(
    command: Sequence[str],
    username: str,
    uid: int,
    *,
    have_launchctl: bool = True,
) -> list[str]:
    """Wrap a command so it runs inside the given user's GUI session.

    With launchctl available the command joins the user's bootstrap namespace
    and drops to the user's identity, so `defaults` and `open` see the same
    preferences and window server the user does.
    """
    if have_launchctl:
        return ["/bin/launchctl", "asuser", str(uid), "/usr/bin/sudo", "-u", username, *command]
    return ["/usr/bin/sudo", "-u", username, *command]
