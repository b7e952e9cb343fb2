"""Application Firewall subsystems."""
from __future__ import annotations

import logging

from ..utils.parsers import parse_firewall_block_all, parse_firewall_global, parse_firewall_stealth
from .base import Subsystem, on_off
from .types import ProbeResult, State

logger = logging.getLogger(__name__)

SOCKETFILTERFW = "/usr/libexec/ApplicationFirewall/socketfilterfw"


class FirewallGlobal(Subsystem):
    """The Application Firewall itself.

    Turning it on also allows built-in and signed software to receive
    connections, so enabling the firewall does not break signed apps.
    """

    name = "firewall-global"
    label = "Firewall state"
    category = "firewall"
    binary = SOCKETFILTERFW

    def probe(self) -> ProbeResult:
        return self._query([SOCKETFILTERFW, "--getglobalstate"], parse_firewall_global)

    def apply(self, desired: State) -> None:
        self._set([SOCKETFILTERFW, "--setglobalstate", on_off(desired)])
        if desired is not State.ENABLED:
            return
        for flag in ("--setallowsigned", "--setallowsignedapp"):
            result = self.host.run([SOCKETFILTERFW, flag, "on"])
            if not result.ok:
                logger.warning("%s on failed (%s): %s", flag, result.returncode, result.output)


class FirewallStealth(Subsystem):
    """Stealth mode: no replies to probes such as ICMP ping."""

    name = "firewall-stealth"
    label = "Stealth mode"
    category = "firewall"
    binary = SOCKETFILTERFW

    def probe(self) -> ProbeResult:
        return self._query([SOCKETFILTERFW, "--getstealthmode"], parse_firewall_stealth)

    def apply(self, desired: State) -> None:
        self._set([SOCKETFILTERFW, "--setstealthmode", on_off(desired)])


class FirewallBlockAll(Subsystem):
    """Block all incoming connections."""

    name = "firewall-block-all"
    label = "Block All"
    category = "firewall"
    binary = SOCKETFILTERFW

    def probe(self) -> ProbeResult:
        return self._query([SOCKETFILTERFW, "--getblockall"], parse_firewall_block_all)

    def apply(self, desired: State) -> None:
        self._set([SOCKETFILTERFW, "--setblockall", on_off(desired)])
