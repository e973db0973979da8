"""Update phase definitions for explicit execution ordering.

The engine runs one method per phase, in the order declared here. Systems
tag themselves with the phase they belong to so diagnostics can report
"what ran where" and tests can assert the ordering.

Ordering constraints:
- Intents are computed from the perception recorded on the previous tick
  (ENTITY_THINK), then applied (ENTITY_ACT).
- The spatial index is rebuilt after movement and before any query
  (SPATIAL_INDEX).
- Satiation decay, sensing and feeding share one pass (INTERACTION).
- Entities marked for removal are only freed in CLEANUP, so every phase
  before it sees a stable arena.

Usage:
------
    @runs_in_phase(UpdatePhase.INTERACTION)
    class PerceptionSystem(BaseSystem):
        ...
"""

from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Dict, Optional

__all__ = [
    "UpdatePhase",
    "PHASE_DESCRIPTIONS",
    "runs_in_phase",
    "get_system_phase",
]

if TYPE_CHECKING:
    from ecosim.systems.base import BaseSystem


class UpdatePhase(Enum):
    """Phases of a simulation tick, in execution order."""

    FRAME_START = auto()  # Reset per-tick counters
    ENTITY_THINK = auto()  # Intent hooks read last tick's perception
    ENTITY_ACT = auto()  # Movement and boundary policy
    SPATIAL_INDEX = auto()  # Rebuild the grid from the store
    INTERACTION = auto()  # Decay, perception, feeding
    SPAWN = auto()  # Food spawning
    LIFECYCLE = auto()  # Meat spoilage, ageing
    REPRODUCTION = auto()  # Mating and offspring
    CLEANUP = auto()  # Store compaction
    FRAME_END = auto()  # Statistics


PHASE_DESCRIPTIONS: Dict[UpdatePhase, str] = {
    UpdatePhase.FRAME_START: "Initializing tick, resetting counters",
    UpdatePhase.ENTITY_THINK: "Creatures choosing intents",
    UpdatePhase.ENTITY_ACT: "Creatures moving",
    UpdatePhase.SPATIAL_INDEX: "Rebuilding the spatial index",
    UpdatePhase.INTERACTION: "Sensing, decaying and feeding",
    UpdatePhase.SPAWN: "Spawning food",
    UpdatePhase.LIFECYCLE: "Spoiling meat and ageing creatures",
    UpdatePhase.REPRODUCTION: "Handling reproduction",
    UpdatePhase.CLEANUP: "Compacting the entity store",
    UpdatePhase.FRAME_END: "Recording statistics",
}


def runs_in_phase(phase: UpdatePhase) -> Callable:
    """Decorator to declare which phase a system runs in.

    Example:
        @runs_in_phase(UpdatePhase.SPAWN)
        class FoodSpawningSystem(BaseSystem):
            def _do_update(self, frame: int) -> None:
                ...
    """

    def decorator(cls):
        cls._phase = phase
        return cls

    return decorator


def get_system_phase(system: "BaseSystem") -> Optional[UpdatePhase]:
    """Get the phase a system is declared to run in."""
    return getattr(system, "_phase", None)
