"""Entity lifecycle system.

Owns the end of an entity's life:
- Meat loses nutrition every tick and is removed once spoiled
- Creatures age
- At the end of the tick, ``compact()`` frees every slot whose entity was
  marked for removal (starved, eaten, spoiled) and records the removals

Systems never free slots themselves; they only mark entities. This keeps
the arena stable for the whole tick and puts every removal statistic in
one place.
"""

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from ecosim.entities.base import Entity, EntityKind
from ecosim.entities.food import FoodKind
from ecosim.entity_ids import EntityHandle
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, runs_in_phase

if TYPE_CHECKING:
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)

SPOILED = "spoiled"


@runs_in_phase(UpdatePhase.LIFECYCLE)
class EntityLifecycleSystem(BaseSystem):
    """Spoilage, ageing and store compaction.

    Attributes:
        _removed_by_reason: Removal counts keyed by ``"<kind>:<reason>"``
    """

    def __init__(self, engine: "SimulationEngine") -> None:
        super().__init__(engine, "EntityLifecycle")
        self._removed_by_reason: Counter = Counter()
        self._removed_last_tick = 0

    def _do_update(self, frame: int) -> SystemResult:
        engine = self._engine
        spoil_amount = engine.config.food.meat_spoil_rate * engine.dt
        spoiled = 0

        if spoil_amount > 0:
            for food in engine.store.iter_food():
                if food.food_kind is not FoodKind.MEAT:
                    continue
                if food.spoil(spoil_amount) and engine.store.mark_for_removal(
                    food.handle, SPOILED
                ):
                    spoiled += 1

        aged = 0
        for creature in engine.store.iter_creatures():
            creature.age += 1
            aged += 1

        return SystemResult(
            entities_affected=aged,
            entities_removed=spoiled,
            details={"spoiled": spoiled},
        )

    def compact(self) -> List[Tuple[EntityHandle, Entity]]:
        """Free pending slots and record why each entity left."""
        removed = self._engine.store.compact()
        stats = self._engine.stats
        for _, entity in removed:
            reason = entity.removal_reason or "removed"
            self._removed_by_reason[f"{entity.kind.value}:{reason}"] += 1
            if entity.kind is EntityKind.CREATURE:
                stats.record_death(reason)
            elif reason == SPOILED:
                stats.food_spoiled += 1
        self._removed_last_tick = len(removed)
        return removed

    def get_debug_info(self) -> Dict[str, Any]:
        return {
            **super().get_debug_info(),
            "removed_last_tick": self._removed_last_tick,
            "removed_by_reason": dict(self._removed_by_reason),
        }
