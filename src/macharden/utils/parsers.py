"""Parsers for interpreting macOS command outputs.

Each collaborator gets one narrow parser that maps its text onto the
tri-state model. All string matching against tool output lives here.
"""
from __future__ import annotations

import re
from typing import Mapping

from ..subsystems.types import State

BOOLEAN_TRUE = {"1", "true", "yes", "on", "enabled"}
BOOLEAN_FALSE = {"0", "false", "no", "off", "disabled"}

_STATE_NUMBER = re.compile(r"state\s*=\s*(\d)")


def parse_defaults_bool(value: str | None) -> bool | None:
    """Interpret a defaults plist boolean-style output."""

    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in BOOLEAN_TRUE:
        return True
    if normalized in BOOLEAN_FALSE:
        return False
    return None


def parse_key_value_output(output: str) -> Mapping[str, str]:
    """Parse simple "Key: Value" outputs."""

    data: dict[str, str] = {}
    pattern = re.compile(r"^\s*([^:]+):\s*(.+)$")
    for line in output.splitlines():
        match = pattern.match(line)
        if match:
            key, value = match.groups()
            data[key.strip()] = value.strip()
    return data


def parse_firewall_global(output: str) -> State:
    """`socketfilterfw --getglobalstate`.

    Examples: "Firewall is enabled. (State = 1)", "Firewall is blocking all
    non-essential incoming connections. (State = 2)".
    """
    text = output.lower()
    match = _STATE_NUMBER.search(text)
    if match:
        return State.DISABLED if match.group(1) == "0" else State.ENABLED
    if "disabled" in text:
        return State.DISABLED
    if "enabled" in text or "blocking" in text:
        return State.ENABLED
    return State.UNKNOWN


def parse_firewall_stealth(output: str) -> State:
    """`socketfilterfw --getstealthmode`.

    Examples: "Stealth mode enabled", "Firewall stealth mode is on",
    "Stealth mode is off".
    """
    text = output.lower()
    if "disabled" in text or "mode is off" in text:
        return State.DISABLED
    if "enabled" in text or "mode is on" in text:
        return State.ENABLED
    return State.UNKNOWN


def parse_firewall_block_all(output: str) -> State:
    """`socketfilterfw --getblockall`.

    Examples: "Block all INCOMING connections is enabled",
    "Firewall has block all state set to disabled.", "Block all DISABLED!".
    """
    text = output.lower()
    if "disabled" in text or " is off" in text:
        return State.DISABLED
    if "enabled" in text or " is on" in text:
        return State.ENABLED
    return State.UNKNOWN


def parse_gatekeeper(output: str) -> State:
    """`spctl --status`: "assessments enabled" / "assessments disabled"."""
    text = output.lower()
    if "assessments disabled" in text or text.strip() == "disabled":
        return State.DISABLED
    if "assessments enabled" in text or text.strip() == "enabled":
        return State.ENABLED
    return State.UNKNOWN


def parse_systemsetup_onoff(output: str) -> State:
    """`systemsetup -get...` queries: "Remote Login: On", "Wake On Network Access: Off".

    systemsetup prints "You need administrator access to run this tool" when
    not root; that is not a state.
    """
    values = parse_key_value_output(output)
    for value in reversed(list(values.values())):
        normalized = value.strip().rstrip(".").lower()
        if normalized == "on":
            return State.ENABLED
        if normalized == "off":
            return State.DISABLED
    return State.UNKNOWN


def parse_launchctl_service(output: str, returncode: int) -> State:
    """`launchctl print system/<label>`.

    A printed service definition means the service is loaded. "Could not find
    service" (exit 113) means it is not.
    """
    text = output.lower()
    if "could not find service" in text:
        return State.DISABLED
    if returncode == 0:
        return State.ENABLED
    return State.UNKNOWN


def parse_sip_status(output: str) -> State:
    """`csrutil status`: "System Integrity Protection status: enabled."."""
    text = output.lower()
    if "status: enabled" in text:
        return State.ENABLED
    if "status: disabled" in text:
        return State.DISABLED
    return State.UNKNOWN


def parse_filevault_status(output: str) -> State:
    """`fdesetup status`: "FileVault is On." / "FileVault is Off."."""
    text = output.lower()
    if "filevault is off" in text:
        return State.DISABLED
    if "filevault is on" in text:
        return State.ENABLED
    return State.UNKNOWN


def parse_airport_ssid(output: str) -> str | None:
    """Extract the SSID from `airport -I` output (the " SSID" line, not "BSSID")."""
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "SSID":
            ssid = value.strip()
            return ssid or None
    return None


def parse_networksetup_ssid(output: str) -> str | None:
    """Extract the SSID from `networksetup -getairportnetwork <device>`."""
    prefix = "current wi-fi network:"
    for line in output.splitlines():
        if line.strip().lower().startswith(prefix):
            ssid = line.strip()[len(prefix):].strip()
            return ssid or None
    return None


def updates_available(listing: str) -> bool:
    """Whether a `softwareupdate -l` listing offers anything to install.

    An empty listing offers nothing.
    """
    return bool(listing.strip()) and "no new software available" not in listing.lower()
