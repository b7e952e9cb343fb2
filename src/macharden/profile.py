"""Network-trust profile resolution."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .core.interfaces import HostInterface
from .errors import ProfileError
from .utils.parsers import parse_airport_ssid, parse_networksetup_ssid

logger = logging.getLogger(__name__)

AIRPORT = (
    "/System/Library/PrivateFrameworks/Apple80211.framework/Versions/Current/Resources/airport"
)
NETWORKSETUP = "/usr/sbin/networksetup"
WIFI_DEVICE = "en0"
UNKNOWN_NETWORK = "unknown"

PROMPT_TEXT = "Are you on Public Wi-Fi or Home Wi-Fi? [public/home] (default: home): "


class Profile(str, Enum):
    """Named network-trust context."""

    HOME = "home"
    PUBLIC = "public"


@dataclass(frozen=True, slots=True)
class EffectivePolicy:
    """Profile plus strict modifier, fixed for the whole run."""

    profile: Profile
    strict: bool = False

    @property
    def locked_down(self) -> bool:
        """Public-level targets apply: public profile, or strict on any profile."""
        return self.profile is Profile.PUBLIC or self.strict

    def describe(self) -> str:
        return f"profile={self.profile.value}; strict={int(self.strict)}"


def normalize_profile(value: str) -> Profile:
    """Trim and lower-case a profile name; anything but home/public is fatal."""
    normalized = value.strip().lower()
    try:
        return Profile(normalized)
    except ValueError:
        raise ProfileError(value.strip()) from None


def detect_network_name(host: HostInterface) -> str:
    """Best-effort Wi-Fi network name; "unknown" on any failure."""
    try:
        if host.executable_exists(AIRPORT):
            result = host.run([AIRPORT, "-I"])
            if result.ok:
                ssid = parse_airport_ssid(result.stdout)
                if ssid:
                    return ssid
        if host.executable_exists(NETWORKSETUP):
            result = host.run([NETWORKSETUP, "-getairportnetwork", WIFI_DEVICE])
            if result.ok:
                ssid = parse_networksetup_ssid(result.stdout)
                if ssid:
                    return ssid
    except Exception:  # noqa: BLE001 - lookup must never block the prompt
        logger.debug("Network name lookup failed", exc_info=True)
    return UNKNOWN_NETWORK


def resolve_profile(
    explicit: Optional[str],
    strict: bool,
    *,
    prompt: Callable[[str], str] = input,
    network_lookup: Optional[Callable[[], str]] = None,
    announce: Callable[[str], None] = print,
) -> EffectivePolicy:
    """Determine the effective policy for this run.

    An explicit profile wins. Without one the operator is asked, after being
    shown the detected network name; empty input means home.

    Raises:
        ProfileError: The profile is not home or public.
    """
    if explicit is not None and explicit.strip():
        profile = normalize_profile(explicit)
    else:
        network = UNKNOWN_NETWORK
        if network_lookup is not None:
            try:
                network = network_lookup() or UNKNOWN_NETWORK
            except Exception:  # noqa: BLE001
                logger.debug("Network lookup raised", exc_info=True)
        announce("")
        announce(f"Detected Wi-Fi SSID: {network}")
        try:
            answer = prompt(PROMPT_TEXT)
        except EOFError:
            answer = ""
        profile = normalize_profile(answer) if answer.strip() else Profile.HOME

    policy = EffectivePolicy(profile=profile, strict=strict)
    logger.debug("Resolved policy: %s", policy.describe())
    return policy
