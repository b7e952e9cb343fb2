"""Declarative policy table: subsystem × posture → desired state."""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Mapping, NamedTuple

from .subsystems.types import Target

if TYPE_CHECKING:
    from .profile import EffectivePolicy


class Row(NamedTuple):
    home: Target
    locked_down: Target


ENABLED = Target.ENABLED
DISABLED = Target.DISABLED
NO_OPINION = Target.NO_OPINION

# Table order is the processing order.
POLICY_TABLE: Mapping[str, Row] = {
    "firewall-global": Row(ENABLED, ENABLED),
    "firewall-stealth": Row(ENABLED, ENABLED),
    "firewall-block-all": Row(DISABLED, ENABLED),
    "gatekeeper": Row(ENABLED, ENABLED),
    "remote-login": Row(DISABLED, DISABLED),
    "remote-apple-events": Row(DISABLED, DISABLED),
    "wake-on-network": Row(NO_OPINION, DISABLED),
    "screen-sharing": Row(NO_OPINION, DISABLED),
    "remote-management": Row(NO_OPINION, DISABLED),
    "browser-safe-downloads": Row(DISABLED, DISABLED),
}

SUBSYSTEM_ORDER = tuple(POLICY_TABLE)


def desired_state(subsystem: str, policy: EffectivePolicy) -> Target:
    """Desired state of a subsystem under a policy.

    Strict and public both select the locked-down column, so strict can only
    add restrictions on top of home, never remove them.

    Raises:
        KeyError: The subsystem has no row in the table.
    """
    row = POLICY_TABLE[subsystem]
    return row.locked_down if policy.locked_down else row.home


def desired_table(policy: EffectivePolicy) -> Dict[str, Target]:
    """The whole desired-state table for a policy, in processing order."""
    return {name: desired_state(name, policy) for name in SUBSYSTEM_ORDER}
