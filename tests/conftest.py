"""Pytest configuration and shared fixtures for macharden tests."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

# Add src/ to path so the tests run from a plain checkout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from macharden.core.injection import DependencyContainer, set_container  # noqa: E402
from macharden.core.interfaces import ListeningSocket  # noqa: E402
from macharden.subsystems import load_subsystems  # noqa: E402
from macharden.subsystems.types import State  # noqa: E402
from macharden.utils.commands import CommandResult  # noqa: E402

SOCKETFILTERFW = "/usr/libexec/ApplicationFirewall/socketfilterfw"
SPCTL = "/usr/sbin/spctl"
SYSTEMSETUP = "/usr/sbin/systemsetup"
LAUNCHCTL = "/bin/launchctl"
SUDO = "/usr/bin/sudo"
KICKSTART = (
    "/System/Library/CoreServices/RemoteManagement/ARDAgent.app/Contents/Resources/kickstart"
)
DEFAULTS = "/usr/bin/defaults"
FDESETUP = "/usr/bin/fdesetup"
CSRUTIL = "/usr/bin/csrutil"
SOFTWAREUPDATE = "/usr/sbin/softwareupdate"
OSASCRIPT = "/usr/bin/osascript"
OPEN = "/usr/bin/open"
AIRPORT = (
    "/System/Library/PrivateFrameworks/Apple80211.framework/Versions/Current/Resources/airport"
)

NO_UPDATES = "Software Update Tool\n\nFinding available software\nNo new software available."
SOME_UPDATES = (
    "Software Update Tool\n\nFinding available software\n"
    "Software Update found the following new or updated software:\n"
    "* Label: macOS Sonoma 14.6.1-23G93\n"
)

# A home-profile host with nothing left to do
COMPLIANT_HOME: Dict[str, State] = {
    "firewall-global": State.ENABLED,
    "firewall-stealth": State.ENABLED,
    "firewall-block-all": State.DISABLED,
    "gatekeeper": State.ENABLED,
    "remote-login": State.DISABLED,
    "remote-apple-events": State.DISABLED,
    "wake-on-network": State.ENABLED,
    "screen-sharing": State.DISABLED,
    "remote-management": State.DISABLED,
    "browser-safe-downloads": State.DISABLED,
}

# Firewall off, stealth off, Gatekeeper off, SSH on; block-all already off
SCENARIO_A: Dict[str, State] = {
    **COMPLIANT_HOME,
    "firewall-global": State.DISABLED,
    "firewall-stealth": State.DISABLED,
    "gatekeeper": State.DISABLED,
    "remote-login": State.ENABLED,
}

_SYSTEMSETUP_KEYS = {
    "remotelogin": ("remote-login", "Remote Login"),
    "remoteappleevents": ("remote-apple-events", "Remote Apple Events"),
    "wakeonnetworkaccess": ("wake-on-network", "Wake On Network Access"),
}

_LAUNCHD_LABELS = {
    "com.apple.screensharing": "screen-sharing",
    "com.apple.RemoteDesktop.agent": "remote-management",
}

_Reply = Tuple[str, str, int]


def _on(value: str) -> State:
    return State.ENABLED if value.lower() in ("on", "true", "1") else State.DISABLED


class FakeHost:
    """Stateful stand-in for a Mac.

    Reads answer from ``states`` the way the real tools print; writes change
    ``states`` unless the subsystem is listed in ``failing``. Any binary in
    ``missing`` does not exist. Every command is kept in ``calls`` and every
    successful state change in ``mutations``. ``updates=None`` makes the
    update listing fail.
    """

    def __init__(
        self,
        states: Optional[Dict[str, State]] = None,
        *,
        missing: Iterable[str] = (),
        failing: Iterable[str] = (),
        root: bool = True,
        user: Tuple[str, int] = ("alice", 501),
        safari_running: bool = False,
        safari_unset: bool = False,
        updates: Optional[str] = NO_UPDATES,
        filevault: State = State.ENABLED,
        sip: State = State.ENABLED,
        ssid: str = "HomeNet",
        sockets: Sequence[ListeningSocket] = (),
    ) -> None:
        self.states: Dict[str, State] = dict(COMPLIANT_HOME)
        self.states.update(states or {})
        self.missing = set(missing)
        self.failing = set(failing)
        self.root = root
        self.user = user
        self.safari_running = safari_running
        self.safari_unset = safari_unset
        self.updates = updates
        self.filevault = filevault
        self.sip = sip
        self.ssid = ssid
        self.sockets = list(sockets)
        self.calls: List[List[str]] = []
        self.mutations: List[List[str]] = []
        self.slept: List[float] = []

    # -- HostInterface -------------------------------------------------------

    def run(self, args) -> CommandResult:
        args = [str(a) for a in args]
        self.calls.append(args)
        if args[0] in self.missing:
            return CommandResult("", f"Command not found: {args[0]}", 127, command=args)
        command = _strip_session(args)
        handler = getattr(self, "_" + Path(command[0]).name.replace("-", "_"), None)
        if handler is None:
            return CommandResult("", "", 0, command=args)
        stdout, stderr, returncode = handler(command[1:])
        return CommandResult(stdout, stderr, returncode, command=args)

    def executable_exists(self, path: str) -> bool:
        return path not in self.missing

    def find_processes(self, name: str, uid: Optional[int] = None) -> List[int]:
        if name == "Safari" and self.safari_running and uid in (None, self.user[1]):
            return [4242]
        return []

    def listening_sockets(self) -> List[ListeningSocket]:
        return list(self.sockets)

    def console_user(self) -> Tuple[str, int]:
        return self.user

    def is_root(self) -> bool:
        return self.root

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)

    # -- helpers ---------------------------------------------------------------

    def ran(self, *fragment: str) -> bool:
        """Whether any recorded command contains ``fragment`` in order."""
        size = len(fragment)
        return any(
            list(fragment) == call[i:i + size]
            for call in self.calls
            for i in range(len(call) - size + 1)
        )

    def _read(self, name: str, enabled: str, disabled: str, *, off_code: int = 0) -> _Reply:
        state = self.states[name]
        if state is State.ENABLED:
            return enabled, "", 0
        if state is State.DISABLED:
            return disabled, "", off_code
        return "", "unexpected failure", 1

    def _write(self, name: str, state: State, command: Sequence[str]) -> _Reply:
        if name in self.failing:
            return "", "Operation not permitted", 1
        self.states[name] = state
        self.mutations.append(list(command))
        return "", "", 0

    # -- collaborators -----------------------------------------------------------

    def _socketfilterfw(self, argv: List[str]) -> _Reply:
        flag = argv[0]
        if flag == "--getglobalstate":
            return self._read(
                "firewall-global",
                "Firewall is enabled. (State = 1)",
                "Firewall is disabled. (State = 0)",
            )
        if flag == "--getstealthmode":
            return self._read(
                "firewall-stealth", "Firewall stealth mode is on", "Firewall stealth mode is off"
            )
        if flag == "--getblockall":
            return self._read(
                "firewall-block-all",
                "Firewall has block all state set to enabled.",
                "Firewall has block all state set to disabled.",
            )
        names = {
            "--setglobalstate": "firewall-global",
            "--setstealthmode": "firewall-stealth",
            "--setblockall": "firewall-block-all",
        }
        if flag in names:
            return self._write(names[flag], _on(argv[1]), [SOCKETFILTERFW, *argv])
        return "", "", 0

    def _spctl(self, argv: List[str]) -> _Reply:
        if argv[0] == "--status":
            return self._read("gatekeeper", "assessments enabled", "assessments disabled", off_code=1)
        if argv[0] == "--master-enable":
            return self._write("gatekeeper", State.ENABLED, [SPCTL, *argv])
        if argv[0] == "--master-disable":
            return self._write("gatekeeper", State.DISABLED, [SPCTL, *argv])
        return "", "", 0

    def _systemsetup(self, argv: List[str]) -> _Reply:
        if argv and argv[0] == "-f":
            argv = argv[1:]
        verb, key = argv[0][1:4], argv[0][4:]
        name, title = _SYSTEMSETUP_KEYS[key]
        if verb == "get":
            return self._read(name, f"{title}: On", f"{title}: Off")
        return self._write(name, _on(argv[1]), [SYSTEMSETUP, *argv])

    def _launchctl(self, argv: List[str]) -> _Reply:
        if argv[0] == "print":
            label = argv[1].split("/", 1)[1]
            if self.states[_LAUNCHD_LABELS[label]] is State.DISABLED:
                return "", f'Could not find service "{label}" in domain for system', 113
            return self._read(_LAUNCHD_LABELS[label], f"system/{label} = {{\n\tstate = running\n}}", "")
        if argv[0] == "bootout":
            loaded = self.states["screen-sharing"] is State.ENABLED
            return ("", "", 0) if loaded else ("", "Boot-out failed: 5: Input/output error", 5)
        if argv[0] == "disable":
            label = argv[1].split("/", 1)[1]
            return self._write(_LAUNCHD_LABELS[label], State.DISABLED, [LAUNCHCTL, *argv])
        return "", "", 0

    def _kickstart(self, argv: List[str]) -> _Reply:
        if "-deactivate" in argv:
            return self._write("remote-management", State.DISABLED, [KICKSTART, *argv])
        return "", "", 0

    def _defaults(self, argv: List[str]) -> _Reply:
        if argv[1] != "com.apple.Safari":
            return "", "", 0
        if argv[0] == "read":
            if self.safari_unset:
                return "", (
                    "The domain/default pair of (com.apple.Safari, AutoOpenSafeDownloads) "
                    "does not exist"
                ), 1
            return self._read("browser-safe-downloads", "1", "0")
        reply = self._write("browser-safe-downloads", _on(argv[-1]), [DEFAULTS, *argv])
        if reply[2] == 0:
            self.safari_unset = False
        return reply

    def _fdesetup(self, argv: List[str]) -> _Reply:
        return ("FileVault is On." if self.filevault is State.ENABLED else "FileVault is Off."), "", 0

    def _csrutil(self, argv: List[str]) -> _Reply:
        word = "enabled" if self.sip is State.ENABLED else "disabled"
        return f"System Integrity Protection status: {word}.", "", 0

    def _softwareupdate(self, argv: List[str]) -> _Reply:
        if argv[0] == "-l":
            if self.updates is None:
                return "", "Can't connect to the Apple Software Update server.", 1
            return self.updates, "", 0
        if argv[0] == "-ia":
            self.mutations.append([SOFTWAREUPDATE, *argv])
            self.updates = NO_UPDATES
            return "Installing...\nDone.", "", 0
        return "", "", 0

    def _osascript(self, argv: List[str]) -> _Reply:
        self.safari_running = False
        return "", "", 0

    def _open(self, argv: List[str]) -> _Reply:
        if argv[:2] == ["-a", "Safari"]:
            self.safari_running = True
        return "", "", 0

    def _airport(self, argv: List[str]) -> _Reply:
        return f"     agrCtlRSSI: -52\n          BSSID: 0:11:22:33:44:55\n           SSID: {self.ssid}\n", "", 0

    def _sw_vers(self, argv: List[str]) -> _Reply:
        return "ProductName:\t\tmacOS\nProductVersion:\t\t14.6\nBuildVersion:\t\t23G80", "", 0

    def _uname(self, argv: List[str]) -> _Reply:
        return "Darwin mac.local 23.6.0 Darwin Kernel Version 23.6.0 arm64", "", 0


def _strip_session(args: List[str]) -> List[str]:
    """Drop the ``launchctl asuser <uid> sudo -u <user>`` wrapper."""
    if args[:2] == [LAUNCHCTL, "asuser"]:
        args = args[3:]
    if args[:2] == [SUDO, "-u"]:
        args = args[3:]
    return args


@pytest.fixture(autouse=True, scope="session")
def registered_subsystems():
    """Import every subsystem module once so the registry is populated."""
    return load_subsystems()


@pytest.fixture
def fake_host():
    """A compliant home host installed as the global host."""
    host = FakeHost()
    set_container(DependencyContainer(host=host))
    yield host
    set_container(None)


@pytest.fixture
def make_host():
    """Factory for FakeHost instances installed as the global host."""

    def _make(states: Optional[Dict[str, State]] = None, **kwargs) -> FakeHost:
        host = FakeHost(states, **kwargs)
        set_container(DependencyContainer(host=host))
        return host

    yield _make
    set_container(None)
