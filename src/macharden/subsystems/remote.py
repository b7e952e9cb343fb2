"""Remote access subsystems managed through systemsetup."""
from __future__ import annotations

from ..utils.parsers import parse_systemsetup_onoff
from .base import Subsystem, on_off
from .types import ProbeResult, State

SYSTEMSETUP = "/usr/sbin/systemsetup"


class _SystemSetupToggle(Subsystem):
    """An On/Off setting read with -get<key> and written with -set<key>."""

    auto_register = False
    category = "remote"
    binary = SYSTEMSETUP
    key: str = ""
    # systemsetup asks for confirmation on some keys unless forced
    force: bool = False

    def probe(self) -> ProbeResult:
        return self._query([SYSTEMSETUP, f"-get{self.key}"], parse_systemsetup_onoff)

    def apply(self, desired: State) -> None:
        args = [SYSTEMSETUP]
        if self.force:
            args.append("-f")
        args.extend([f"-set{self.key}", on_off(desired)])
        self._set(args)


class RemoteLogin(_SystemSetupToggle):
    """Remote Login (SSH)."""

    name = "remote-login"
    label = "Remote Login (SSH)"
    key = "remotelogin"
    force = True


class RemoteAppleEvents(_SystemSetupToggle):
    name = "remote-apple-events"
    label = "Remote Apple Events"
    key = "remoteappleevents"


class WakeOnNetwork(_SystemSetupToggle):
    name = "wake-on-network"
    label = "Wake for network access"
    key = "wakeonnetworkaccess"
