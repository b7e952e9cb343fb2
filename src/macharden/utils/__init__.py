"""Utility helpers for macharden."""
from __future__ import annotations

from .commands import (
    CommandExecutionError,
    CommandResult,
    get_console_user,
    run_command,
    user_session_command,
    which,
)

__all__ = [
    "CommandExecutionError",
    "CommandResult",
    "get_console_user",
    "run_command",
    "user_session_command",
    "which",
]
