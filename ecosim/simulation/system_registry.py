"""System registration and lookup.

The engine registers its systems here in phase order. The registry does
not drive execution (the engine's phase methods do); it provides lookup
by name, runtime enable/disable and aggregated debug info.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from ecosim.exceptions import ConfigurationError
from ecosim.update_phases import UpdatePhase, get_system_phase

if TYPE_CHECKING:
    from ecosim.systems.base import BaseSystem

logger = logging.getLogger(__name__)


class SystemRegistry:
    """Registered systems in execution order.

    Example:
        registry = SystemRegistry()
        registry.register(movement_system)
        registry.set_enabled("Movement", False)
    """

    def __init__(self) -> None:
        self._systems: List["BaseSystem"] = []

    def register(self, system: "BaseSystem") -> None:
        """Append a system.

        Raises:
            ConfigurationError: If a system with the same name exists, or the
                new system's phase comes before the last registered phase
        """
        if self.get(system.name) is not None:
            raise ConfigurationError(f"System {system.name!r} is already registered")
        phase = get_system_phase(system)
        if phase is not None and self._systems:
            last = get_system_phase(self._systems[-1])
            if last is not None and phase.value < last.value:
                raise ConfigurationError(
                    f"System {system.name!r} ({phase.name}) registered after {last.name}"
                )
        self._systems.append(system)
        logger.debug("Registered system: %s", system.name)

    def get(self, name: str) -> Optional["BaseSystem"]:
        for system in self._systems:
            if system.name == name:
                return system
        return None

    def get_all(self) -> List["BaseSystem"]:
        return self._systems.copy()

    def in_phase(self, phase: UpdatePhase) -> List["BaseSystem"]:
        return [s for s in self._systems if get_system_phase(s) is phase]

    def set_enabled(self, name: str, enabled: bool) -> bool:
        """Enable or disable a system by name. Returns False if unknown."""
        system = self.get(name)
        if system is None:
            return False
        system.enabled = enabled
        logger.debug("System %s enabled=%s", name, enabled)
        return True

    def get_debug_info(self) -> Dict[str, Any]:
        return {system.name: system.get_debug_info() for system in self._systems}

    def __len__(self) -> int:
        return len(self._systems)

    def __iter__(self) -> Iterator["BaseSystem"]:
        return iter(self._systems)

    def __repr__(self) -> str:
        return f"SystemRegistry(systems={[s.name for s in self._systems]})"
