"""Reconciliation engine: probe, compare against the policy table, apply.

Per subsystem the lifecycle is

    UNPROBED -> PROBED{enabled|disabled|unknown} -> RECONCILED{none|applied|failed|unsupported}

and every subsystem is visited exactly once, in table order. A failed apply
is recorded and the pass moves on; nothing is retried or rolled back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from .profile import EffectivePolicy
from .subsystems.base import Subsystem
from .subsystems.types import Action, OutcomeRecord, ProbeResult, State

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[Subsystem, OutcomeRecord], None]


@dataclass
class ReconcileOptions:
    dry_run: bool = False
    # Re-probe after a successful apply and report the observed state
    verify: bool = True


def _safe_probe(subsystem: Subsystem) -> ProbeResult:
    try:
        return subsystem.probe()
    except Exception as exc:  # noqa: BLE001 - a broken probe degrades to unknown
        logger.exception("Unhandled error probing %s", subsystem.name)
        return ProbeResult.unknown(f"{type(exc).__name__}: {exc}")


def reconcile_one(
    subsystem: Subsystem,
    policy: EffectivePolicy,
    options: Optional[ReconcileOptions] = None,
) -> OutcomeRecord:
    """Bring one subsystem in line with the policy."""
    options = options or ReconcileOptions()
    target = subsystem.desired(policy)

    def outcome(prior: State, action: Action, detail: str, *, planned: bool = False) -> OutcomeRecord:
        logger.info(
            "%s: prior=%s desired=%s action=%s %s",
            subsystem.name, prior.value, target.value, action.value, detail,
        )
        return OutcomeRecord(
            subsystem=subsystem.name,
            prior_state=prior,
            desired_state=target,
            action_taken=action,
            detail=detail,
            category=subsystem.category,
            planned=planned,
        )

    if not subsystem.is_supported():
        return outcome(State.UNKNOWN, Action.UNSUPPORTED, f"{subsystem.binary} not found")

    probed = _safe_probe(subsystem)
    prior = probed.state
    logger.debug("%s: UNPROBED -> PROBED{%s}", subsystem.name, prior.value)

    desired = target.as_state()
    if desired is None:
        return outcome(prior, Action.NONE, f"left as-is ({policy.describe()})")
    if prior is desired:
        return outcome(prior, Action.NONE, f"already {desired.value}")
    if subsystem.reactive and prior is not State.ENABLED:
        return outcome(prior, Action.NONE, "not active")
    if options.dry_run:
        return outcome(prior, Action.NONE, f"would set {desired.value} (dry run)", planned=True)

    try:
        subsystem.apply(desired)
    except (RuntimeError, ValueError) as exc:
        logger.warning("Applying %s to %s failed: %s", desired.value, subsystem.name, exc)
        return outcome(prior, Action.FAILED, str(exc))
    except Exception as exc:  # noqa: BLE001 - absorbed at the subsystem boundary
        logger.exception("Unhandled error applying %s", subsystem.name)
        return outcome(prior, Action.FAILED, f"{type(exc).__name__}: {exc}")

    detail = f"set {desired.value}"
    if options.verify:
        detail += f" (now {_safe_probe(subsystem).state.value})"
    return outcome(prior, Action.APPLIED, detail)


def reconcile(
    subsystems: Iterable[Subsystem],
    policy: EffectivePolicy,
    options: Optional[ReconcileOptions] = None,
    on_outcome: Optional[OutcomeCallback] = None,
) -> List[OutcomeRecord]:
    """Reconcile every subsystem in order and return the outcome records."""
    outcomes: List[OutcomeRecord] = []
    for subsystem in subsystems:
        record = reconcile_one(subsystem, policy, options)
        outcomes.append(record)
        if on_outcome is not None:
            on_outcome(subsystem, record)
    return outcomes


def changes_planned(outcomes: Sequence[OutcomeRecord]) -> List[OutcomeRecord]:
    """Outcomes that changed (or, in a dry run, would change) the host."""
    return [
        o for o in outcomes
        if o.action_taken is Action.APPLIED or o.planned
    ]
