"""Exceptions for fatal preconditions."""
from __future__ import annotations


class HardenError(Exception):
    """Base class for errors that stop a run before any change is made."""


class ProfileError(HardenError, ValueError):
    """Raised for a profile other than home/public."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid profile: {value} (use 'public' or 'home')")
        self.value = value


class PrivilegeError(HardenError):
    """Raised when the tool is not running as root."""

    def __init__(self) -> None:
        super().__init__("Please run with sudo.")
