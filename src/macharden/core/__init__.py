"""Core architectural components for macharden.

This module provides:
- The host interface every probe and apply goes through
- Dependency injection so tests can substitute the host
- Graceful degradation for non-essential stages
"""

from .interfaces import HostInterface, ListeningSocket
from .injection import DependencyContainer, RealHost, get_container, set_container
from .resilience import with_graceful_degradation

__all__ = [
    # Interfaces
    "HostInterface",
    "ListeningSocket",
    # Dependency Injection
    "DependencyContainer",
    "RealHost",
    "get_container",
    "set_container",
    # Resilience
    "with_graceful_degradation",
]
