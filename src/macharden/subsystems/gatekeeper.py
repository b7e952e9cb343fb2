"""Gatekeeper (code-signing assessment policy)."""
from __future__ import annotations

from ..utils.parsers import parse_gatekeeper
from .base import Subsystem
from .types import ProbeResult, State

SPCTL = "/usr/sbin/spctl"


class Gatekeeper(Subsystem):
    name = "gatekeeper"
    label = "Gatekeeper"
    category = "gatekeeper"
    binary = SPCTL

    def probe(self) -> ProbeResult:
        # spctl exits non-zero when assessments are disabled
        return self._query([SPCTL, "--status"], parse_gatekeeper, require_success=False)

    def apply(self, desired: State) -> None:
        flag = "--master-enable" if desired is State.ENABLED else "--master-disable"
        self._set([SPCTL, flag])
