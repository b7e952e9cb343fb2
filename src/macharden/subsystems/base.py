"""Base classes and utilities for hardenable subsystems."""
from __future__ import annotations

import abc
import logging
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Type

from ..core.injection import get_container
from ..core.interfaces import HostInterface
from ..policy import SUBSYSTEM_ORDER, desired_state
from ..profile import EffectivePolicy
from ..utils.commands import CommandExecutionError, CommandResult
from .types import ProbeResult, State, Target

logger = logging.getLogger(__name__)


class SubsystemRegistry:
    """Registry for all subsystem descriptors."""

    _registry: ClassVar[Dict[str, Type["Subsystem"]]] = {}

    @classmethod
    def register(cls, subsystem_cls: Type["Subsystem"]) -> None:
        name = subsystem_cls.name
        if not name:
            raise ValueError(f"Subsystem {subsystem_cls.__name__} must define a name")
        if name in cls._registry:
            raise ValueError(f"Duplicate subsystem name registered: {name}")
        cls._registry[name] = subsystem_cls
        logger.debug("Registered subsystem: %s", name)

    @classmethod
    def get_all(cls) -> List[Type["Subsystem"]]:
        """Registered descriptors in policy-table order; unknown names sort last."""
        return sorted(cls._registry.values(), key=_table_position)


def _table_position(subsystem_cls: Type["Subsystem"]) -> Tuple[int, str]:
    try:
        return (SUBSYSTEM_ORDER.index(subsystem_cls.name), subsystem_cls.name)
    except ValueError:
        return (len(SUBSYSTEM_ORDER), subsystem_cls.name)


class SubsystemMeta(abc.ABCMeta):
    """Metaclass that auto-registers concrete subsystems."""

    def __new__(mcls, name: str, bases: Tuple[type, ...], namespace: Dict[str, Any]):
        cls = super().__new__(mcls, name, bases, namespace)
        auto_register = namespace.get("auto_register", True)
        if auto_register and not inspect_is_abstract(cls):
            SubsystemRegistry.register(cls)
        return cls


def inspect_is_abstract(cls: type) -> bool:
    """Helper to determine whether a class is abstract."""

    abstract_methods = getattr(cls, "__abstractmethods__", set())
    return bool(abstract_methods)


class Subsystem(metaclass=SubsystemMeta):
    """One independently reconcilable host-security facility.

    Concrete subclasses supply ``probe`` (read-only, never raises for host
    trouble, returns UNKNOWN instead) and ``apply`` (raises
    CommandExecutionError when the host refuses the change).
    """

    auto_register: ClassVar[bool] = True
    name: str = ""
    label: str = ""
    category: str = "general"
    # Collaborator whose absence makes the subsystem unsupported
    binary: str = ""
    # Act only when the probe positively reports the facility active
    reactive: bool = False

    def __init__(self, host: Optional[HostInterface] = None) -> None:
        self.host = host or get_container().host

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def is_supported(self) -> bool:
        if not self.binary:
            return True
        return self.host.executable_exists(self.binary)

    def desired(self, policy: EffectivePolicy) -> Target:
        return desired_state(self.name, policy)

    @abc.abstractmethod
    def probe(self) -> ProbeResult:
        """Read the current state."""

    @abc.abstractmethod
    def apply(self, desired: State) -> None:
        """Move the facility to the desired state."""

    def _query(
        self,
        args: Sequence[str],
        parser: Callable[[str], State],
        *,
        require_success: bool = True,
    ) -> ProbeResult:
        result = self.host.run(args)
        raw = result.output
        if require_success and not result.ok:
            logger.debug("%s probe exited %s: %s", self.name, result.returncode, raw)
            return ProbeResult.unknown(raw)
        state = parser(raw)
        if state is State.UNKNOWN:
            logger.debug("%s probe output not understood: %r", self.name, raw)
        return ProbeResult(state, raw)

    def _set(self, args: Sequence[str]) -> CommandResult:
        result = self.host.run(args)
        if not result.ok:
            raise CommandExecutionError(args, result.stdout, result.stderr, result.returncode)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def on_off(state: State) -> str:
    return "on" if state is State.ENABLED else "off"
