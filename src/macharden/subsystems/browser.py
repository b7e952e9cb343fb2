"""Safari "Open safe files after downloading" preference.

The preference lives in the console user's defaults, so every read and write
runs inside that user's GUI session rather than as root.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from ..utils.commands import user_session_command
from ..utils.parsers import parse_defaults_bool
from .base import Subsystem
from .types import ProbeResult, State

logger = logging.getLogger(__name__)

DEFAULTS = "/usr/bin/defaults"
LAUNCHCTL = "/bin/launchctl"
OSASCRIPT = "/usr/bin/osascript"
OPEN = "/usr/bin/open"
SAFARI_DOMAIN = "com.apple.Safari"
SAFARI_KEY = "AutoOpenSafeDownloads"
SAFARI_PROCESS = "Safari"
QUIT_WAIT_SECONDS = 10


class NoConsoleUserError(RuntimeError):
    """No user owns the graphical session."""

    def __init__(self) -> None:
        super().__init__("Could not determine console user.")


class SafariSafeDownloads(Subsystem):
    name = "browser-safe-downloads"
    label = "Safari AutoOpenSafeDownloads"
    category = "browser"
    binary = DEFAULTS

    def _session(self, command: Sequence[str]) -> List[str]:
        username, uid = self.host.console_user()
        if not username:
            raise NoConsoleUserError()
        return user_session_command(
            command,
            username,
            uid,
            have_launchctl=self.host.executable_exists(LAUNCHCTL),
        )

    def probe(self) -> ProbeResult:
        try:
            args = self._session([DEFAULTS, "read", SAFARI_DOMAIN, SAFARI_KEY])
        except NoConsoleUserError as exc:
            return ProbeResult.unknown(str(exc))
        result = self.host.run(args)
        if not result.ok:
            if "does not exist" in result.output:
                # Unset: Safari's built-in default opens safe downloads
                return ProbeResult(State.ENABLED, "unset")
            return ProbeResult.unknown(result.output)
        value = parse_defaults_bool(result.stdout)
        if value is None:
            return ProbeResult.unknown(result.stdout)
        return ProbeResult(State.ENABLED if value else State.DISABLED, result.stdout)

    def apply(self, desired: State) -> None:
        value = "true" if desired is State.ENABLED else "false"
        self._set(self._session([DEFAULTS, "write", SAFARI_DOMAIN, SAFARI_KEY, "-bool", value]))

    def restart_if_running(self) -> str:
        """Restart Safari for the console user so it picks up the preference.

        Returns a one-line description of what happened.
        """
        username, uid = self.host.console_user()
        if not username:
            return "Could not determine console user."
        if not self.host.find_processes(SAFARI_PROCESS, uid):
            return f"Safari not running for {username}; no restart needed."

        logger.info("Restarting Safari for %s", username)
        quit_cmd = self._session([OSASCRIPT, "-e", 'tell application "Safari" to quit'])
        self.host.run(quit_cmd)
        for _ in range(QUIT_WAIT_SECONDS):
            if not self.host.find_processes(SAFARI_PROCESS, uid):
                break
            self.host.sleep(1)
        result = self.host.run(self._session([OPEN, "-a", SAFARI_PROCESS]))
        if not result.ok:
            logger.warning("Relaunching Safari failed (%s): %s", result.returncode, result.output)
            return f"Safari quit for {username} but could not be relaunched."
        return f"Safari restarted for {username}."
