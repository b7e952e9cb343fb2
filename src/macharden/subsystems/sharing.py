"""Sharing services: Screen Sharing and Remote Management (ARD).

Both are only ever switched off. Nothing here turns a sharing service back
on; the operator does that from System Settings.
"""
from __future__ import annotations

import abc
import logging

from ..utils.parsers import parse_launchctl_service
from .base import Subsystem
from .types import ProbeResult, State

logger = logging.getLogger(__name__)

LAUNCHCTL = "/bin/launchctl"
SCREENSHARING_LABEL = "com.apple.screensharing"
SCREENSHARING_PLIST = "/System/Library/LaunchDaemons/com.apple.screensharing.plist"
ARD_LABEL = "com.apple.RemoteDesktop.agent"
ARD_KICKSTART = (
    "/System/Library/CoreServices/RemoteManagement/ARDAgent.app/Contents/Resources/kickstart"
)


class _DisableOnlyService(Subsystem):
    auto_register = False
    category = "sharing"
    service_label: str = ""

    def probe(self) -> ProbeResult:
        # launchctl exits 113 for an unloaded service, which is a valid answer
        result = self.host.run([LAUNCHCTL, "print", f"system/{self.service_label}"])
        return ProbeResult(parse_launchctl_service(result.output, result.returncode), result.output)

    def apply(self, desired: State) -> None:
        if desired is not State.DISABLED:
            raise ValueError(f"{self.display_name} is never re-enabled automatically")
        self._disable()

    @abc.abstractmethod
    def _disable(self) -> None:
        """Switch the service off; raise CommandExecutionError on refusal."""


class ScreenSharing(_DisableOnlyService):
    """Screen Sharing, disabled only while it is actually loaded."""

    name = "screen-sharing"
    label = "Screen Sharing"
    binary = LAUNCHCTL
    service_label = SCREENSHARING_LABEL
    reactive = True

    def _disable(self) -> None:
        # bootout fails harmlessly when the job is already unloaded
        result = self.host.run([LAUNCHCTL, "bootout", "system", SCREENSHARING_PLIST])
        if not result.ok:
            logger.debug("bootout %s exited %s: %s", SCREENSHARING_LABEL, result.returncode, result.output)
        self._set([LAUNCHCTL, "disable", f"system/{SCREENSHARING_LABEL}"])


class RemoteManagement(_DisableOnlyService):
    """Apple Remote Desktop agent."""

    name = "remote-management"
    label = "Remote Management (ARD)"
    binary = ARD_KICKSTART
    service_label = ARD_LABEL

    def _disable(self) -> None:
        self._set([ARD_KICKSTART, "-deactivate", "-stop"])
