"""Abstract interface for every interaction with the host.

Architecture:
┌─────────────────────────────────────────────────────────────────┐
│                     PROBE LAYER                                  │
│  - Reads subsystem state through HostInterface.run               │
│  - Parses text into the tri-state model                          │
│  - NO side effects (read-only)                                   │
└─────────────────────────────────────────────────────────────────┘
                              │
                              ▼
┌─────────────────────────────────────────────────────────────────┐
│                     RECONCILIATION LAYER                         │
│  - Compares probed state against the policy table                │
│  - Applies corrective commands only where they differ            │
│  - Records one outcome per subsystem                             │
└─────────────────────────────────────────────────────────────────┘
                              │
                              ▼
┌─────────────────────────────────────────────────────────────────┐
│                     REPORTING LAYER                              │
│  - Live transcript, end-of-run summary, JSON report              │
└─────────────────────────────────────────────────────────────────┘
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence, Tuple

from ..utils.commands import CommandResult


@dataclass(frozen=True)
class ListeningSocket:
    """One listening TCP endpoint."""

    address: str
    port: int
    pid: int | None
    process_name: str


class HostInterface(Protocol):
    """Protocol defining all host-level interactions.

    This abstraction allows complete substitution of the host for testing.
    Every subprocess call and process/socket query goes through it.
    """

    def run(self, args: Sequence[str]) -> CommandResult:
        """Execute a command to completion and return its result.

        No time limit is applied. Implementations never raise when a command
        cannot be launched; they report it as a failed result (127 for a
        missing binary, -1 otherwise) with the reason in stderr.
        """
        ...

    def executable_exists(self, path: str) -> bool:
        """Whether an executable is present at path (or on PATH for bare names)."""
        ...

    def find_processes(self, name: str, uid: int | None = None) -> List[int]:
        """PIDs of processes with this exact name, optionally owned by uid."""
        ...

    def listening_sockets(self) -> List[ListeningSocket]:
        """Every TCP socket in LISTEN state."""
        ...

    def console_user(self) -> Tuple[str, int]:
        """(username, uid) of the graphical session owner, ("", 0) if none."""
        ...

    def is_root(self) -> bool:
        """Whether the process runs with elevated privileges."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block for the given time."""
        ...
