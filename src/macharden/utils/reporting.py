"""Outcome reporting helpers for macharden."""
from __future__ import annotations

import datetime as _dt
import json
from collections import Counter
from typing import Any, Iterable, List, Mapping, Sequence

from ..subsystems.types import Action, OutcomeRecord

_HEADER_LINE = "═" * 70

EXIT_OK = 0
EXIT_FATAL = 1

_ACTION_LABELS = {
    Action.NONE: "OK",
    Action.APPLIED: "APPLIED",
    Action.FAILED: "FAILED",
    Action.UNSUPPORTED: "UNSUPPORTED",
}


def _timestamp(dt: _dt.datetime | None = None) -> str:
    return (dt or _dt.datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def collect_summary(outcomes: Iterable[OutcomeRecord]) -> dict[str, int]:
    """Count outcomes per action."""
    counts: Counter[str] = Counter(o.action_taken.value for o in outcomes)
    summary = {"total": sum(counts.values())}
    summary.update({action.value: counts.get(action.value, 0) for action in Action})
    return summary


def group_by_category(outcomes: Iterable[OutcomeRecord]) -> dict[str, List[OutcomeRecord]]:
    """Group outcomes by category, keeping first-seen category order."""
    grouped: dict[str, List[OutcomeRecord]] = {}
    for outcome in outcomes:
        grouped.setdefault(outcome.category, []).append(outcome)
    return grouped


def determine_exit_code(fatal: bool = False) -> int:
    """Exit status for a run.

    Exit codes:
        0 = run completed, including runs where individual subsystems failed
        1 = a fatal precondition stopped the run before any change
    """
    return EXIT_FATAL if fatal else EXIT_OK


def format_text_report(
    *,
    outcomes: Sequence[OutcomeRecord],
    run_info: Mapping[str, str],
    generated_at: _dt.datetime | None = None,
) -> str:
    """Generate the end-of-run consolidated report."""
    lines = [
        _HEADER_LINE,
        "macOS Hardening Report",
        f"Generated: {_timestamp(generated_at)}",
        "Run: " + ", ".join(f"{key}: {value}" for key, value in run_info.items()),
        _HEADER_LINE,
    ]
    for category, records in group_by_category(outcomes).items():
        lines.append("")
        lines.append(f"[{records[0].category_display_name}]")
        for record in records:
            label = _ACTION_LABELS[record.action_taken]
            lines.append(
                f"  {label:<11} {record.subsystem:<24} "
                f"{record.prior_state.value:>8} -> {record.desired_state.value:<10} {record.detail}".rstrip()
            )

    summary = collect_summary(outcomes)
    lines.append("")
    lines.append(
        "Summary: "
        f"total={summary['total']} applied={summary['applied']} none={summary['none']} "
        f"failed={summary['failed']} unsupported={summary['unsupported']}"
    )
    failed = [o for o in outcomes if o.action_taken is Action.FAILED]
    if failed:
        lines.append("Failed subsystems (re-run to retry):")
        lines.extend(f"  - {o.subsystem}: {o.detail}" for o in failed)
    lines.append(_HEADER_LINE)
    return "\n".join(lines)


def format_json_report(
    *,
    outcomes: Sequence[OutcomeRecord],
    run_info: Mapping[str, Any],
    generated_at: _dt.datetime | None = None,
) -> str:
    """Generate a machine-readable report."""
    payload = {
        "generated_at": (generated_at or _dt.datetime.now()).isoformat(),
        "run": dict(run_info),
        "summary": collect_summary(outcomes),
        "outcomes": [o.to_dict() for o in outcomes],
    }
    return json.dumps(payload, indent=2)
