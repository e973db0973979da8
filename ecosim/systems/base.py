"""Base class and protocol for simulation systems.

Every system owns one step of the tick and is constructed with the engine
it operates on. The engine calls systems explicitly from its phase
methods; the phase a system declares through ``@runs_in_phase`` is used
for diagnostics and ordering checks.

Design Principles:
- One responsibility per system
- Systems can be disabled at runtime without removal
- Every update returns a SystemResult describing what happened
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, runtime_checkable

__all__ = [
    "SystemResult",
    "System",
    "BaseSystem",
]

if TYPE_CHECKING:
    from ecosim.simulation.engine import SimulationEngine
    from ecosim.update_phases import UpdatePhase


@dataclass
class SystemResult:
    """Result of one system update.

    Attributes:
        entities_affected: Entities modified in place
        entities_spawned: Entities created
        entities_removed: Entities marked for removal
        skipped: True when the system was disabled
        details: System-specific counters (e.g. ``{"meals": 3}``)
    """

    entities_affected: int = 0
    entities_spawned: int = 0
    entities_removed: int = 0
    skipped: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def skipped_result() -> "SystemResult":
        return SystemResult(skipped=True)

    @staticmethod
    def empty() -> "SystemResult":
        return SystemResult()


@runtime_checkable
class System(Protocol):
    """Anything the engine can update once per tick."""

    @property
    def name(self) -> str: ...

    @property
    def enabled(self) -> bool: ...

    def update(self, frame: int) -> SystemResult: ...


class BaseSystem(ABC):
    """Abstract base for simulation systems.

    Handles the enabled flag and update counting; subclasses implement
    ``_do_update``.

    Example:
        @runs_in_phase(UpdatePhase.LIFECYCLE)
        class AgeingSystem(BaseSystem):
            def __init__(self, engine):
                super().__init__(engine, "Ageing")

            def _do_update(self, frame: int) -> SystemResult:
                for creature in self.engine.store.iter_creatures():
                    creature.age += 1
                return SystemResult.empty()
    """

    _phase: Optional["UpdatePhase"] = None

    def __init__(self, engine: "SimulationEngine", name: str) -> None:
        self._engine = engine
        self._name = name
        self._enabled = True
        self._update_count = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    @property
    def engine(self) -> "SimulationEngine":
        return self._engine

    @property
    def update_count(self) -> int:
        return self._update_count

    @property
    def phase(self) -> Optional["UpdatePhase"]:
        return self._phase

    def update(self, frame: int) -> SystemResult:
        """Run one update if enabled.

        Args:
            frame: Current tick number

        Returns:
            SystemResult describing what the system did
        """
        if not self._enabled:
            return SystemResult.skipped_result()

        result = self._do_update(frame)
        self._update_count += 1
        if result is None:
            return SystemResult.empty()
        return result

    @abstractmethod
    def _do_update(self, frame: int) -> Optional[SystemResult]:
        """System-specific update logic."""

    def get_debug_info(self) -> Dict[str, Any]:
        """Debug information about this system's state.

        Subclasses extend the base dictionary with their own counters.
        """
        return {
            "name": self._name,
            "enabled": self._enabled,
            "update_count": self._update_count,
            "phase": self._phase.name if self._phase else None,
        }

    def __repr__(self) -> str:
        phase_str = f", phase={self._phase.name}" if self._phase else ""
        return f"{self.__class__.__name__}(name={self._name!r}, enabled={self._enabled}{phase_str})"
