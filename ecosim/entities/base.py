"""Base entity classes for the simulation."""

from enum import Enum
from typing import Any, Dict, Optional

from ecosim.entity_ids import EntityHandle
from ecosim.math_utils import Vector2


class EntityKind(Enum):
    """Top-level kind tag stored with every entity."""

    CREATURE = "creature"
    FOOD = "food"


class LifecycleStatus(Enum):
    """Lifecycle of an entity slot.

    ``PENDING_REMOVAL`` entities stay in the store until the end-of-tick
    compaction, but no system treats them as present.
    """

    ALIVE = "alive"
    PENDING_REMOVAL = "pending_removal"


class Entity:
    """Base class for everything the entity store owns (pure data, no rendering)."""

    kind: EntityKind

    def __init__(self, handle: EntityHandle, position: Vector2, born_tick: int = 0) -> None:
        self.handle = handle
        self.position = position
        self.status = LifecycleStatus.ALIVE
        self.removal_reason: Optional[str] = None
        self.born_tick = born_tick

    @property
    def is_alive(self) -> bool:
        return self.status is LifecycleStatus.ALIVE

    @property
    def is_pending_removal(self) -> bool:
        return self.status is LifecycleStatus.PENDING_REMOVAL

    def mark_pending_removal(self, reason: str) -> bool:
        """Flag the entity for removal at the end of the tick.

        Returns:
            True if the entity was alive and is now pending, False if it was
            already pending (the first reason wins)
        """
        if self.status is LifecycleStatus.PENDING_REMOVAL:
            return False
        self.status = LifecycleStatus.PENDING_REMOVAL
        self.removal_reason = reason
        return True

    def snapshot_attributes(self) -> Dict[str, Any]:
        """Key attributes exported in world snapshots."""
        return {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.handle}, pos=({self.position.x:.2f}, "
            f"{self.position.y:.2f}), {self.status.value})"
        )
