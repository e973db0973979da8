"""What a creature sensed during the last interaction phase.

A perception is an immutable record built by the perception system and
read by the intent hook on the following tick. It holds handles, never
entity references, so a neighbour that has since been removed simply
fails its store lookup.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ecosim.entities.base import EntityKind
from ecosim.entity_ids import EntityHandle
from ecosim.math_utils import Vector2


@dataclass(frozen=True, eq=False)
class PerceivedEntity:
    """One sensed neighbour.

    Attributes:
        handle: Neighbour handle at sensing time
        kind: Creature or food
        position: Neighbour position at sensing time
        offset: Shortest vector from the sensing creature to the neighbour
        distance: Length of ``offset``
    """

    handle: EntityHandle
    kind: EntityKind
    position: Vector2
    offset: Vector2
    distance: float


@dataclass(frozen=True, eq=False)
class Perception:
    """Neighbours sensed on one tick, each group sorted by distance then handle."""

    tick: int = -1
    food: Tuple[PerceivedEntity, ...] = ()
    creatures: Tuple[PerceivedEntity, ...] = ()

    @classmethod
    def empty(cls) -> "Perception":
        return cls()

    def nearest_food(self) -> Optional[PerceivedEntity]:
        return self.food[0] if self.food else None

    def sees(self, handle: EntityHandle) -> bool:
        """True if ``handle`` was among the sensed creatures or food."""
        return any(p.handle == handle for p in self.creatures) or any(
            p.handle == handle for p in self.food
        )
