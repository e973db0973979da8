"""Perception and interaction system.

Runs once per tick after the spatial index has been rebuilt. For every
alive creature, in ascending handle order:

1. Satiation decays by ``base_decay * metabolism * dt`` plus a movement
   cost proportional to the square of the speed actually moved this tick.
   A creature that reaches zero is marked for removal (starvation) and
   does nothing else this tick. The per-tick meal count is then reset.
2. The creature senses every entity within its sense radius. The result
   is stored on the creature as a Perception and drives next tick's intent.
3. The creature eats the nearest food within the collision radius that no
   earlier creature has already eaten this tick. Eaten food is marked for
   removal immediately, so each food item is consumed at most once.

The neighbour queries are read-only and may run on the engine's worker
pool; steps 1-3 are always applied serially.
"""

import logging
import math
from typing import TYPE_CHECKING, List, Optional, Tuple

from ecosim.entities.base import EntityKind
from ecosim.entities.creature import Creature
from ecosim.entities.food import Food
from ecosim.entities.perception import PerceivedEntity, Perception
from ecosim.math_utils import Vector2, closest_point_parameter
from ecosim.spatial.grid import Neighbor
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, runs_in_phase

if TYPE_CHECKING:
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)

STARVATION = "starvation"
EATEN = "eaten"


@runs_in_phase(UpdatePhase.INTERACTION)
class PerceptionSystem(BaseSystem):
    """Decay, sensing and feeding for every creature."""

    def __init__(self, engine: "SimulationEngine") -> None:
        super().__init__(engine, "Perception")
        self._total_meals = 0
        self._total_starved = 0

    def _do_update(self, frame: int) -> SystemResult:
        engine = self._engine
        creatures = list(engine.store.iter_creatures())
        if not creatures:
            return SystemResult.empty()

        engine.store.lock_mutations(UpdatePhase.INTERACTION.name)
        try:
            executor = engine.executor
            if executor is not None and len(creatures) > 1:
                sensed = list(executor.map(self._query, creatures))
            else:
                sensed = [self._query(creature) for creature in creatures]
        finally:
            engine.store.unlock_mutations()

        meals = 0
        starved = 0
        failures = 0
        for creature, neighbors in zip(creatures, sensed):
            try:
                if self.apply_decay(creature):
                    starved += 1
                    continue
                creature.perception = self.build_perception(creature, neighbors, frame)
                creature.meals_this_tick = 0
                meals += self.feed(creature)
            except Exception:
                # One bad creature never aborts the tick for the others
                logger.exception("Interaction failed for creature %s", creature.handle)
                engine.stats.entity_failures += 1
                failures += 1

        self._total_meals += meals
        self._total_starved += starved
        return SystemResult(
            entities_affected=len(creatures),
            entities_removed=meals + starved,
            details={"meals": meals, "starved": starved, "failures": failures},
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _query(self, creature: Creature) -> List[Neighbor]:
        return self._engine.grid.neighbors(creature.position, creature.attributes.sense_radius)

    def decay_amount(self, creature: Creature) -> float:
        config = self._engine.config.creatures
        dt = self._engine.dt
        # Charged on the distance actually moved this tick
        moved_sq = creature.displacement.length_squared()
        return (
            config.base_satiation_decay * creature.attributes.metabolism * dt
            + config.movement_cost * moved_sq / dt
        )

    def apply_decay(self, creature: Creature) -> bool:
        """Drain satiation. Returns True if the creature starved."""
        creature.drain(self.decay_amount(creature))
        if not creature.is_starving():
            return False
        if self._engine.store.mark_for_removal(creature.handle, STARVATION):
            logger.debug("Creature %s starved at tick %d", creature.handle, self._engine.tick)
        return True

    def build_perception(
        self, creature: Creature, neighbors: List[Neighbor], frame: int
    ) -> Perception:
        store = self._engine.store
        bounds = self._engine.bounds
        food: List[PerceivedEntity] = []
        others: List[PerceivedEntity] = []
        for handle, position, distance_sq in neighbors:
            if handle == creature.handle:
                continue
            entity = store.get_alive(handle)
            if entity is None:
                continue
            seen = PerceivedEntity(
                handle=handle,
                kind=entity.kind,
                position=position,
                offset=bounds.displacement(creature.position, position),
                distance=math.sqrt(distance_sq),
            )
            if entity.kind is EntityKind.FOOD:
                food.append(seen)
            else:
                others.append(seen)
        return Perception(tick=frame, food=tuple(food), creatures=tuple(others))

    def feed(self, creature: Creature) -> int:
        """Eat up to the per-tick meal limit. Returns the number of meals."""
        interaction = self._engine.config.interaction
        meals = 0
        while creature.meals_this_tick < interaction.max_meals_per_tick:
            food = self.find_meal(creature)
            if food is None:
                break
            gained = creature.feed(food.nutrition)
            self._engine.store.mark_for_removal(food.handle, EATEN)
            self._engine.stats.record_meal(food.food_kind, gained)
            creature.meals_this_tick += 1
            meals += 1
        return meals

    def find_meal(self, creature: Creature) -> Optional[Food]:
        """Nearest uneaten food within the collision radius.

        With swept feeding the distance is measured to the segment the
        creature travelled this tick, so fast creatures cannot skip over
        food lying on their path.
        """
        engine = self._engine
        radius = engine.config.interaction.collision_radius
        bounds = engine.bounds

        if engine.config.interaction.swept_feeding:
            start = creature.previous_position
            path = creature.displacement
            half = path * 0.5
            center = bounds.normalize(start + half)
            query_radius = half.length() + radius
        else:
            start = creature.position
            path = Vector2(0.0, 0.0)
            center = creature.position
            query_radius = radius

        best: Optional[Tuple[float, Food]] = None
        radius_sq = radius * radius
        for neighbor in engine.grid.neighbors(center, query_radius):
            entity = engine.store.get_alive(neighbor.handle)
            if not isinstance(entity, Food):
                continue
            offset = bounds.displacement(start, neighbor.position)
            s = closest_point_parameter(Vector2(0.0, 0.0), path, offset)
            gap = offset - path * s
            dist_sq = gap.length_squared()
            if dist_sq > radius_sq:
                continue
            if best is None or (dist_sq, entity.handle) < (best[0], best[1].handle):
                best = (dist_sq, entity)
        return best[1] if best is not None else None

    def get_debug_info(self):
        return {
            **super().get_debug_info(),
            "total_meals": self._total_meals,
            "total_starved": self._total_starved,
        }
