"""Unit tests for graceful degradation."""
from __future__ import annotations

import logging
import unittest

from macharden.core.resilience import with_graceful_degradation


class TestGracefulDegradation(unittest.TestCase):
    """Test with_graceful_degradation decorator."""

    def test_returns_value_on_success(self) -> None:
        @with_graceful_degradation(default_return="default")
        def succeeds() -> str:
            return "ok"

        self.assertEqual(succeeds(), "ok")

    def test_returns_default_on_error(self) -> None:
        @with_graceful_degradation(default_return="default", error_message="Stage failed")
        def fails() -> str:
            raise RuntimeError("boom")

        with self.assertLogs("macharden.core.resilience", level=logging.ERROR) as logs:
            self.assertEqual(fails(), "default")
        self.assertIn("Stage failed: RuntimeError - boom", logs.output[0])

    def test_silent_when_logging_disabled(self) -> None:
        @with_graceful_degradation(default_return=None, log_errors=False)
        def fails() -> None:
            raise ValueError("quiet")

        self.assertIsNone(fails())

    def test_preserves_metadata(self) -> None:
        @with_graceful_degradation(default_return=None)
        def documented() -> None:
            """Docstring."""

        self.assertEqual(documented.__name__, "documented")
        self.assertEqual(documented.__doc__, "Docstring.")
