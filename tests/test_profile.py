"""Tests for network-trust profile resolution."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from macharden.errors import HardenError, ProfileError
from macharden.profile import (
    AIRPORT,
    PROMPT_TEXT,
    EffectivePolicy,
    Profile,
    detect_network_name,
    normalize_profile,
    resolve_profile,
)


class TestNormalizeProfile:
    """Profile names are trimmed and lower-cased."""

    @pytest.mark.parametrize("value", ["Public", "PUBLIC", " public ", "public\n"])
    def test_public_variants(self, value):
        assert normalize_profile(value) is Profile.PUBLIC

    @pytest.mark.parametrize("value", ["home", "Home", "  HOME"])
    def test_home_variants(self, value):
        assert normalize_profile(value) is Profile.HOME

    @pytest.mark.parametrize("value", ["office", "", "pub", "home office"])
    def test_invalid_is_fatal(self, value):
        """Test anything else raises ProfileError."""
        with pytest.raises(ProfileError) as excinfo:
            normalize_profile(value)
        assert isinstance(excinfo.value, HardenError)
        assert isinstance(excinfo.value, ValueError)

    def test_error_message(self):
        with pytest.raises(ProfileError, match=r"Invalid profile: office \(use 'public' or 'home'\)"):
            normalize_profile(" office ")


class TestEffectivePolicy:
    """The resolved profile plus strict modifier."""

    def test_home_is_not_locked_down(self):
        assert not EffectivePolicy(Profile.HOME).locked_down

    @pytest.mark.parametrize("policy", [
        EffectivePolicy(Profile.PUBLIC),
        EffectivePolicy(Profile.PUBLIC, strict=True),
        EffectivePolicy(Profile.HOME, strict=True),
    ])
    def test_locked_down(self, policy):
        assert policy.locked_down

    def test_describe(self):
        assert EffectivePolicy(Profile.HOME, strict=True).describe() == "profile=home; strict=1"

    def test_is_immutable(self):
        policy = EffectivePolicy(Profile.HOME)
        with pytest.raises(AttributeError):
            policy.strict = True  # type: ignore[misc]


class TestResolveProfile:
    """Explicit argument or interactive prompt."""

    def test_explicit_profile_skips_prompt(self):
        prompt = MagicMock()
        policy = resolve_profile("Public", strict=False, prompt=prompt)

        assert policy == EffectivePolicy(Profile.PUBLIC, strict=False)
        prompt.assert_not_called()

    def test_explicit_invalid_profile(self):
        with pytest.raises(ProfileError):
            resolve_profile("office", strict=False, prompt=MagicMock())

    def test_prompt_shows_network_name(self):
        """The detected SSID is announced before the question."""
        announced = []
        prompt = MagicMock(return_value="public")

        policy = resolve_profile(
            None, strict=True, prompt=prompt,
            network_lookup=lambda: "Cafe Guest", announce=announced.append,
        )

        assert policy == EffectivePolicy(Profile.PUBLIC, strict=True)
        assert "Detected Wi-Fi SSID: Cafe Guest" in announced
        prompt.assert_called_once_with(PROMPT_TEXT)

    @pytest.mark.parametrize("answer", ["", "   "])
    def test_empty_answer_defaults_to_home(self, answer):
        policy = resolve_profile(None, strict=False, prompt=lambda _: answer, announce=lambda _: None)
        assert policy.profile is Profile.HOME

    def test_end_of_input_defaults_to_home(self):
        def closed(_):
            raise EOFError

        policy = resolve_profile(None, strict=False, prompt=closed, announce=lambda _: None)
        assert policy.profile is Profile.HOME

    def test_invalid_answer_is_fatal(self):
        with pytest.raises(ProfileError):
            resolve_profile(None, strict=False, prompt=lambda _: "office", announce=lambda _: None)

    def test_network_lookup_failure_does_not_block(self):
        """A broken lookup degrades to 'unknown' and the prompt still runs."""
        announced = []

        def broken():
            raise OSError("no wifi")

        policy = resolve_profile(
            None, strict=False, prompt=lambda _: "home",
            network_lookup=broken, announce=announced.append,
        )

        assert policy.profile is Profile.HOME
        assert "Detected Wi-Fi SSID: unknown" in announced


class TestDetectNetworkName:
    """SSID lookup through the host."""

    def test_airport(self, make_host):
        host = make_host(ssid="HomeNet")
        assert detect_network_name(host) == "HomeNet"

    def test_no_tools(self, make_host):
        host = make_host(missing={AIRPORT, "/usr/sbin/networksetup"})
        assert detect_network_name(host) == "unknown"

    def test_host_error(self):
        host = MagicMock()
        host.executable_exists.side_effect = RuntimeError("boom")
        assert detect_network_name(host) == "unknown"
