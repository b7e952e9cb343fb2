"""Resilience patterns for graceful degradation.

The hardening pass must finish even when an individual stage breaks:

1. No single stage failure should abort the run
2. Errors are captured and logged, not propagated
3. Fatal preconditions are checked before any stage starts
"""
from __future__ import annotations

import functools
import logging
import traceback
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_graceful_degradation(
    default_return: T,
    log_errors: bool = True,
    error_message: str = "Operation failed",
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for graceful degradation on errors.

    Wraps a function to catch all exceptions and return a default
    value instead of propagating the error.

    Args:
        default_return: Value to return on error
        log_errors: Whether to log caught errors
        error_message: Message to log with errors
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001 - stage boundary
                if log_errors:
                    logger.error(
                        "%s: %s - %s",
                        error_message,
                        type(exc).__name__,
                        str(exc),
                    )
                    logger.debug("Traceback: %s", traceback.format_exc())
                return default_return

        return wrapper

    return decorator
