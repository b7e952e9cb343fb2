"""Core types for hardenable subsystems - no external dependencies."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class State(str, Enum):
    """Observed state of a subsystem."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNKNOWN = "unknown"


class Target(str, Enum):
    """Desired state of a subsystem under a policy."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    NO_OPINION = "no-opinion"

    def as_state(self) -> State | None:
        if self is Target.NO_OPINION:
            return None
        return State(self.value)


class Action(str, Enum):
    """What reconciliation did for a subsystem."""

    NONE = "none"
    APPLIED = "applied"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


# Category display names for human-readable output
CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    "firewall": "Firewall",
    "gatekeeper": "Gatekeeper",
    "remote": "Remote Services",
    "sharing": "Sharing",
    "browser": "Safari Download Safety",
}


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Tri-state reading of a subsystem plus the raw text it came from."""

    state: State
    raw: str = ""

    @classmethod
    def unknown(cls, raw: str = "") -> "ProbeResult":
        return cls(State.UNKNOWN, raw)


@dataclass(frozen=True, slots=True)
class OutcomeRecord:
    """Result of reconciling one subsystem. Never mutated after creation."""

    subsystem: str
    prior_state: State
    desired_state: Target
    action_taken: Action
    detail: str = ""
    category: str = "general"
    # Dry run only: the change that would have been applied
    planned: bool = False

    @property
    def category_display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES.get(self.category, self.category.replace("_", " ").title())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subsystem": self.subsystem,
            "prior_state": self.prior_state.value,
            "desired_state": self.desired_state.value,
            "action_taken": self.action_taken.value,
            "detail": self.detail,
            "category": self.category,
            "planned": self.planned,
        }
