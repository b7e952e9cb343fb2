"""Single-call collaborator stages around the reconciliation pass.

These report status (system info, FileVault, SIP, listening sockets) or
perform one-shot maintenance (software updates, automatic-update defaults).
None of them carries policy; each one degrades to a logged skip on error.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .cli import Console
from .core.interfaces import HostInterface, ListeningSocket
from .core.resilience import with_graceful_degradation
from .subsystems.browser import SAFARI_KEY, SafariSafeDownloads
from .subsystems.firewall import SOCKETFILTERFW
from .subsystems.types import State
from .utils.parsers import parse_filevault_status, parse_sip_status, updates_available

logger = logging.getLogger(__name__)

SW_VERS = "/usr/bin/sw_vers"
UNAME = "/usr/bin/uname"
SOFTWAREUPDATE = "/usr/sbin/softwareupdate"
FDESETUP = "/usr/bin/fdesetup"
CSRUTIL = "/usr/bin/csrutil"
DEFAULTS = "/usr/bin/defaults"
OPEN = "/usr/bin/open"
FILEVAULT_PANE = "x-apple.systempreferences:com.apple.preference.security?FileVault"

AUTO_UPDATE_DEFAULTS = (
    ("/Library/Preferences/com.apple.SoftwareUpdate", "AutomaticDownload", "-int", "1"),
    ("/Library/Preferences/com.apple.SoftwareUpdate", "AutomaticallyInstallMacOSUpdates", "-int", "1"),
    ("/Library/Preferences/com.apple.commerce", "AutoUpdate", "-bool", "true"),
)

INSTALL_PROMPT = "Do you want to install them now? (may take time and require restart) [y/N]: "


@with_graceful_degradation(None, error_message="System info failed")
def show_system_info(host: HostInterface, console: Console) -> None:
    for args in ([SW_VERS], [UNAME, "-a"]):
        result = host.run(args)
        if result.output:
            console.line(result.output)


@with_graceful_degradation(None, error_message="Update listing failed")
def list_updates(host: HostInterface, console: Console) -> Optional[str]:
    """Print and return the `softwareupdate -l` listing.

    Returns None when the tool is missing or the listing itself fails, so a
    failure message is never mistaken for a list of pending updates.
    """
    if not host.executable_exists(SOFTWAREUPDATE):
        console.warning("'softwareupdate' not found.")
        return None
    result = host.run([SOFTWAREUPDATE, "-l"])
    console.line(result.output)
    if not result.ok:
        logger.warning("softwareupdate -l exited %s: %s", result.returncode, result.output)
        console.warning(f"Could not list updates (softwareupdate exited with code {result.returncode}).")
        return None
    return result.output


@with_graceful_degradation(False, error_message="Update install failed")
def install_updates(host: HostInterface, console: Console) -> bool:
    console.action("Applying all available updates (may require restart)...")
    result = host.run([SOFTWAREUPDATE, "-ia", "--verbose"])
    console.line(result.output)
    if not result.ok:
        console.warning(f"softwareupdate exited with code {result.returncode}.")
    return result.ok


@with_graceful_degradation(State.UNKNOWN, error_message="FileVault status failed")
def filevault_status(host: HostInterface, console: Console, *, open_settings: bool = True) -> State:
    """Report FileVault; when off, open its settings pane for the operator.

    FileVault itself is never switched on here.
    """
    if not host.executable_exists(FDESETUP):
        console.warning("'fdesetup' not found.")
        return State.UNKNOWN
    result = host.run([FDESETUP, "status"])
    console.line(result.output)
    state = parse_filevault_status(result.output)
    if state is State.DISABLED:
        if open_settings:
            console.warning("FileVault is OFF. Opening Settings → Privacy & Security → FileVault...")
            host.run([OPEN, FILEVAULT_PANE])
        else:
            console.warning("FileVault is OFF. Enable it in Settings → Privacy & Security → FileVault.")
    return state


@with_graceful_degradation(None, error_message="Firewall report failed")
def firewall_report(host: HostInterface, console: Console) -> None:
    if not host.executable_exists(SOCKETFILTERFW):
        return
    for label, flag in (
        ("Firewall state", "--getglobalstate"),
        ("Stealth mode", "--getstealthmode"),
        ("Block All", "--getblockall"),
    ):
        console.key_value(label, host.run([SOCKETFILTERFW, flag]).output or "unknown")


@with_graceful_degradation(None, error_message="Safari follow-up failed")
def verify_safari(safari: SafariSafeDownloads, console: Console, *, restart: bool = True) -> None:
    """Show the stored preference and restart Safari so it takes effect."""
    if not safari.is_supported():
        return
    probed = safari.probe()
    console.info(f"{SAFARI_KEY} = {probed.raw or probed.state.value} (expect 0)")
    if restart:
        console.info(safari.restart_if_running())


@with_graceful_degradation(State.UNKNOWN, error_message="SIP status failed")
def sip_status(host: HostInterface, console: Console) -> State:
    if not host.executable_exists(CSRUTIL):
        console.warning("'csrutil' not found.")
        return State.UNKNOWN
    result = host.run([CSRUTIL, "status"])
    console.line(result.output)
    console.info("SIP can only be changed from Recovery. Leave it enabled.")
    return parse_sip_status(result.output)


@with_graceful_degradation(0, error_message="Auto-update configuration failed")
def configure_auto_updates(host: HostInterface, console: Console) -> int:
    """Turn on scheduled checks and automatic installs. Returns the failure count."""
    failures = 0
    if host.executable_exists(SOFTWAREUPDATE):
        result = host.run([SOFTWAREUPDATE, "--schedule", "on"])
        if result.output:
            console.line(result.output)
        failures += not result.ok
    for domain, key, kind, value in AUTO_UPDATE_DEFAULTS:
        result = host.run([DEFAULTS, "write", domain, key, kind, value])
        if not result.ok:
            failures += 1
            logger.warning("defaults write %s %s failed: %s", domain, key, result.output)
            console.warning(f"Could not set {key} in {domain}: {result.output}")
        else:
            console.info(f"{domain} {key} = {value}")
    return failures


@with_graceful_degradation((), error_message="Listening ports snapshot failed")
def listening_ports(host: HostInterface, console: Console) -> Sequence[ListeningSocket]:
    sockets = host.listening_sockets()
    if not sockets:
        console.info("No listening TCP sockets found.")
        return sockets
    console.line(f"{'COMMAND':<24} {'PID':>7}  ADDRESS")
    for sock in sockets:
        pid = str(sock.pid) if sock.pid else "-"
        console.line(f"{sock.process_name:<24} {pid:>7}  {sock.address}:{sock.port}")
    return sockets


def final_update_prompt(
    host: HostInterface,
    console: Console,
    listing: Optional[str],
    prompt: Callable[[str], str] = input,
) -> bool:
    """Offer to install pending updates. Returns True if an install ran."""
    if not listing:
        result = host.run([SOFTWAREUPDATE, "-l"])
        listing = result.output if result.ok else ""
    if not updates_available(listing):
        console.info("No updates available. Nothing to install.")
        return False

    console.info("Updates appear to be available.")
    try:
        answer = prompt(INSTALL_PROMPT)
    except EOFError:
        answer = ""
    if answer.strip().lower() not in ("y", "yes"):
        logger.info("Pending updates left for a later run")
        console.info("Skipping updates for now. You can run again with --apply-updates.")
        return False

    logger.info("Operator accepted update install")
    console.action("Installing updates now...")
    install_updates(host, console)
    console.hint("If a restart is required, please reboot when convenient.")
    return True
