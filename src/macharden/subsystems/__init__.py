"""Hardenable subsystem descriptors."""
from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, List, Type

if TYPE_CHECKING:
    from .base import Subsystem

_SUBSYSTEM_MODULES: tuple[str, ...] = (
    "firewall",
    "gatekeeper",
    "remote",
    "sharing",
    "browser",
)


def load_subsystems() -> List[Type["Subsystem"]]:
    """Import all subsystem modules to populate the registry."""

    for module_name in _SUBSYSTEM_MODULES:
        import_module(f"{__name__}.{module_name}")
    from .base import SubsystemRegistry

    return SubsystemRegistry.get_all()
