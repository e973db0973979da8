"""Arena storage for every entity in the simulation.

The EntityStore is the single source of truth for entity existence.
Entities live in numbered slots; a slot's generation counts how many times
it has been freed. Handles carry the generation they were issued with, so
a handle to a removed entity is detected instead of aliasing whatever
occupies the slot later.

Design Decisions:
-----------------
1. Removal is two-step. ``mark_for_removal`` only flags the entity; the
   slot is freed in ``compact()`` at the end of the tick. Systems running
   later in the same tick still see a stable arena, and a marked entity is
   ignored by every iterator and lookup helper that filters on ALIVE.

2. Freed indices go to a min-heap, so the lowest free index is reused
   first. Combined with ascending-handle iteration this keeps runs
   reproducible for a given seed.

3. Mutations are locked while a read-only phase runs on worker threads.
"""

import heapq
import logging
import math
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ecosim.entities.base import Entity, EntityKind
from ecosim.entities.creature import Creature, CreatureAttributes
from ecosim.entities.food import Food, FoodAttributes
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import InvalidAttributeError, SimulationError, StaleHandleError
from ecosim.math_utils import Vector2
from ecosim.spatial.bounds import WorldBounds

logger = logging.getLogger(__name__)

Attributes = Union[CreatureAttributes, FoodAttributes]


class MutationLockError(SimulationError):
    """Raised when the store is mutated while mutations are locked.

    Read-only phases (which may run on worker threads) lock the store. Any
    create, compact or removal attempted during such a phase is a bug in
    the calling system.
    """


class _Slot:
    __slots__ = ("generation", "entity")

    def __init__(self) -> None:
        self.generation = 0
        self.entity: Optional[Entity] = None


class EntityStore:
    """Generational arena of creatures and food.

    Example:
        store = EntityStore()
        handle = store.create(EntityKind.FOOD, FoodAttributes(FoodKind.PLANT, 10.0), Vector2(5, 5))
        store.mark_for_removal(handle, "eaten")
        store.compact()
        assert store.get(handle) is None
    """

    def __init__(
        self,
        trait_ranges: Optional[Mapping[str, Tuple[float, float]]] = None,
        bounds: Optional[WorldBounds] = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            trait_ranges: Optional ``{trait: (min, max)}`` enforced when
                creatures are created
            bounds: Optional world bounds. Positions are wrapped into a
                periodic world and must lie inside a clamped one.
        """
        self.bounds = bounds
        self._slots: List[_Slot] = []
        self._free: List[int] = []
        self._trait_ranges = dict(trait_ranges) if trait_ranges else {}
        self._alive_count = 0
        self._pending: Dict[EntityHandle, str] = {}
        self._mutation_locked = False
        self._mutation_lock_phase = ""

    # ------------------------------------------------------------------
    # Mutation lock
    # ------------------------------------------------------------------

    @property
    def mutation_locked(self) -> bool:
        return self._mutation_locked

    def lock_mutations(self, phase: str) -> None:
        self._mutation_locked = True
        self._mutation_lock_phase = phase

    def unlock_mutations(self) -> None:
        self._mutation_locked = False
        self._mutation_lock_phase = ""

    def _check_unlocked(self, operation: str) -> None:
        if self._mutation_locked:
            raise MutationLockError(
                f"Cannot {operation} during locked phase '{self._mutation_lock_phase}'"
            )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self,
        kind: EntityKind,
        attrs: Attributes,
        position: Vector2,
        **kwargs: Any,
    ) -> EntityHandle:
        """Validate attributes and insert a new entity.

        Extra keyword arguments are forwarded to the entity constructor
        (``satiation``, ``velocity``, ``intent_strategy``, ``parents``,
        ``lineage_generation``, ``born_tick``).

        Returns:
            Handle of the new entity

        Raises:
            InvalidAttributeError: If the attributes do not match ``kind``,
                are out of range, or the position is not finite or lies
                outside a clamped world
        """
        self._check_unlocked("create entities")

        if not position.is_finite():
            raise InvalidAttributeError("position", position, "must be finite")
        if self.bounds is not None:
            if self.bounds.periodic:
                position = self.bounds.normalize(position)
            elif not self.bounds.is_valid_position(position.x, position.y):
                raise InvalidAttributeError("position", position, f"outside {self.bounds!r}")

        if kind is EntityKind.CREATURE:
            if not isinstance(attrs, CreatureAttributes):
                raise InvalidAttributeError("attrs", attrs, "creatures need CreatureAttributes")
            attrs.validate(self._trait_ranges)
        elif kind is EntityKind.FOOD:
            if not isinstance(attrs, FoodAttributes):
                raise InvalidAttributeError("attrs", attrs, "food needs FoodAttributes")
            attrs.validate()
        else:
            raise InvalidAttributeError("kind", kind, "unknown entity kind")

        index = self._allocate_slot()
        slot = self._slots[index]
        handle = EntityHandle(index, slot.generation)

        try:
            if kind is EntityKind.CREATURE:
                entity: Entity = Creature(handle, position.copy(), attrs, **kwargs)
            else:
                entity = Food(handle, position.copy(), attrs, **kwargs)
        except Exception:
            heapq.heappush(self._free, index)
            raise

        slot.entity = entity
        self._alive_count += 1
        return handle

    def _allocate_slot(self) -> int:
        if self._free:
            return heapq.heappop(self._free)
        self._slots.append(_Slot())
        return len(self._slots) - 1

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _resolve(self, handle: EntityHandle) -> Optional[Entity]:
        if not 0 <= handle.index < len(self._slots):
            return None
        slot = self._slots[handle.index]
        if slot.generation != handle.generation:
            return None
        return slot.entity

    def get(self, handle: EntityHandle) -> Optional[Entity]:
        """Resolve a handle. Returns None when the entity is gone.

        Entities pending removal are still returned; callers that need a
        live entity use ``get_alive``.
        """
        return self._resolve(handle)

    def get_alive(self, handle: EntityHandle) -> Optional[Entity]:
        entity = self._resolve(handle)
        if entity is None or not entity.is_alive:
            return None
        return entity

    def require(self, handle: EntityHandle) -> Entity:
        """Resolve a handle or raise.

        Raises:
            StaleHandleError: If the handle's generation no longer matches
        """
        entity = self._resolve(handle)
        if entity is None:
            raise StaleHandleError(handle)
        return entity

    def is_alive(self, handle: EntityHandle) -> bool:
        return self.get_alive(handle) is not None

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, EntityHandle) and self._resolve(handle) is not None

    def __len__(self) -> int:
        """Number of occupied slots, pending removals included."""
        return self._alive_count

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def mark_for_removal(self, handle: EntityHandle, reason: str = "removed") -> bool:
        """Flag an entity for removal at the next ``compact()``.

        Returns:
            True if this call flagged the entity, False if it was stale or
            already pending
        """
        entity = self._resolve(handle)
        if entity is None:
            return False
        if not entity.mark_pending_removal(reason):
            return False
        self._pending[handle] = reason
        return True

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def compact(self) -> List[Tuple[EntityHandle, Entity]]:
        """Free every slot whose entity is pending removal.

        Each freed slot's generation is incremented, invalidating all
        outstanding handles to it.

        Returns:
            ``(handle, entity)`` pairs removed, in ascending handle order
        """
        self._check_unlocked("compact the store")
        removed: List[Tuple[EntityHandle, Entity]] = []
        for handle in sorted(self._pending):
            slot = self._slots[handle.index]
            entity = slot.entity
            if entity is None or slot.generation != handle.generation:
                continue
            slot.entity = None
            slot.generation += 1
            heapq.heappush(self._free, handle.index)
            self._alive_count -= 1
            removed.append((handle, entity))
        self._pending.clear()
        if removed:
            logger.debug("Compacted %d entities", len(removed))
        return removed

    # ------------------------------------------------------------------
    # Iteration (ascending handle order, ALIVE only)
    # ------------------------------------------------------------------

    def iter_alive(self) -> Iterator[Entity]:
        for slot in self._slots:
            entity = slot.entity
            if entity is not None and entity.is_alive:
                yield entity

    def iter_creatures(self) -> Iterator[Creature]:
        for entity in self.iter_alive():
            if isinstance(entity, Creature):
                yield entity

    def iter_food(self) -> Iterator[Food]:
        for entity in self.iter_alive():
            if isinstance(entity, Food):
                yield entity

    def alive_handles(self) -> List[EntityHandle]:
        return [entity.handle for entity in self.iter_alive()]

    def count(self, kind: Optional[EntityKind] = None) -> int:
        """Count alive entities, optionally of one kind."""
        return sum(1 for e in self.iter_alive() if kind is None or e.kind is kind)

    def index_entries(self) -> Iterator[Tuple[EntityHandle, Vector2]]:
        """``(handle, position)`` for every alive entity with a finite position."""
        for entity in self.iter_alive():
            if math.isfinite(entity.position.x) and math.isfinite(entity.position.y):
                yield entity.handle, entity.position

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return (
            f"EntityStore({self._alive_count} occupied, {len(self._free)} free, "
            f"{len(self._pending)} pending)"
        )
