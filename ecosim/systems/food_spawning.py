"""Food spawning system.

Spawns plants and meat at configured per-kind rates. Rates are expressed
in items per tick and may be fractional: the remainder accumulates, so a
rate of 0.25 yields one item every fourth tick.

Architecture Notes:
- Extends BaseSystem and runs in UpdatePhase.SPAWN
- Uses the engine RNG only, so spawning is reproducible for a given seed
- New food never lands within the collision radius of existing food; when
  no spot is found within the attempt limit the spawn is skipped and a
  SpawnPlacementExhausted soft failure is logged and counted
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ecosim.config.food import PlacementRule
from ecosim.entities.base import EntityKind
from ecosim.entities.food import FoodAttributes, FoodKind
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import SpawnPlacementExhausted
from ecosim.math_utils import Vector2
from ecosim.result import Err, Ok, Result
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, runs_in_phase

if TYPE_CHECKING:
    from ecosim.config.simulation_config import FoodConfig
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


@runs_in_phase(UpdatePhase.SPAWN)
class FoodSpawningSystem(BaseSystem):
    """Keeps the world stocked with food.

    Attributes:
        config: Food configuration (rates, nutrition, placement)
        _accumulators: Fractional spawn credit carried between ticks, per kind
        _placed_this_tick: Food created since the index was last rebuilt;
            the grid does not know about it yet
    """

    def __init__(self, engine: "SimulationEngine", config: Optional["FoodConfig"] = None) -> None:
        super().__init__(engine, "FoodSpawning")
        self.config = config if config is not None else engine.config.food
        self._accumulators: Dict[FoodKind, float] = {kind: 0.0 for kind in FoodKind}
        self._placed_this_tick: List[Tuple[EntityHandle, Vector2]] = []
        self._total_spawned: Dict[FoodKind, int] = {kind: 0 for kind in FoodKind}
        self._total_exhausted = 0

    def _rate(self, kind: FoodKind) -> float:
        if kind is FoodKind.PLANT:
            return self.config.plant_spawn_rate
        return self.config.meat_spawn_rate

    def _nutrition_range(self, kind: FoodKind) -> Tuple[float, float]:
        if kind is FoodKind.PLANT:
            return self.config.plant_nutrition_range
        return self.config.meat_nutrition_range

    def _do_update(self, frame: int) -> SystemResult:
        if not self.config.auto_spawn_enabled:
            return SystemResult.skipped_result()

        self._placed_this_tick = []
        spawned = 0
        exhausted = 0
        capped = 0
        for kind in FoodKind:
            self._accumulators[kind] += self._rate(kind)
            while self._accumulators[kind] >= 1.0:
                self._accumulators[kind] -= 1.0
                if self.at_capacity():
                    capped += 1
                    continue
                result = self.spawn(kind)
                if result.is_ok():
                    spawned += 1
                else:
                    exhausted += 1

        return SystemResult(
            entities_spawned=spawned,
            details={"exhausted": exhausted, "capped": capped},
        )

    def at_capacity(self) -> bool:
        cap = self.config.max_food
        return cap > 0 and self._engine.store.count(EntityKind.FOOD) >= cap

    def spawn(
        self, kind: FoodKind, position: Optional[Vector2] = None
    ) -> Result[EntityHandle, SpawnPlacementExhausted]:
        """Create one food item.

        Args:
            kind: Plant or meat
            position: Fixed position; when omitted one is chosen by the
                placement rule

        Returns:
            Ok(handle) or Err(SpawnPlacementExhausted)
        """
        if position is None:
            found = self.find_position()
            if found.is_err():
                self._total_exhausted += 1
                self._engine.stats.placement_exhausted += 1
                logger.debug("Skipping %s spawn: %s", kind.value, found.error)
                return found
            position = found.unwrap()

        lo, hi = self._nutrition_range(kind)
        attrs = FoodAttributes(kind, self._engine.rng.uniform(lo, hi))
        handle = self._engine.store.create(
            EntityKind.FOOD, attrs, position, born_tick=self._engine.tick
        )
        placed = self._engine.store.require(handle).position
        self._placed_this_tick.append((handle, placed.copy()))
        self._total_spawned[kind] += 1
        self._engine.stats.food_spawned[kind.value] += 1
        return Ok(handle)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def find_position(self) -> Result[Vector2, SpawnPlacementExhausted]:
        """Pick a free position using the configured placement rule."""
        attempts = self.config.max_placement_attempts
        for _ in range(attempts):
            if self.config.placement_rule is PlacementRule.LOW_DENSITY:
                candidate = self._least_crowded_candidate()
            else:
                candidate = self._engine.bounds.random_position(self._engine.rng)
            if candidate is not None and not self.overlaps_food(candidate):
                return Ok(candidate)
        return Err(SpawnPlacementExhausted(attempts))

    def _least_crowded_candidate(self) -> Optional[Vector2]:
        best: Optional[Tuple[int, Vector2]] = None
        for _ in range(self.config.low_density_candidates):
            candidate = self._engine.bounds.random_position(self._engine.rng)
            crowd = self.food_density(candidate, self.config.low_density_radius)
            if best is None or crowd < best[0]:
                best = (crowd, candidate)
        return best[1] if best is not None else None

    def food_density(self, position: Vector2, radius: float) -> int:
        """Number of food items within ``radius`` of ``position``."""
        engine = self._engine
        count = 0
        for neighbor in engine.grid.neighbors(position, radius):
            entity = engine.store.get_alive(neighbor.handle)
            if entity is not None and entity.kind is EntityKind.FOOD:
                count += 1
        radius_sq = radius * radius
        for handle, placed in self._placed_this_tick:
            if handle in engine.grid or not engine.store.is_alive(handle):
                continue
            if engine.bounds.distance_sq(position, placed) <= radius_sq:
                count += 1
        return count

    def overlaps_food(self, position: Vector2) -> bool:
        radius = self._engine.config.interaction.collision_radius
        return self.food_density(position, radius) > 0

    def get_debug_info(self) -> Dict[str, Any]:
        return {
            **super().get_debug_info(),
            "total_spawned": {kind.value: n for kind, n in self._total_spawned.items()},
            "total_exhausted": self._total_exhausted,
            "accumulators": {kind.value: acc for kind, acc in self._accumulators.items()},
            "config": {
                "plant_spawn_rate": self.config.plant_spawn_rate,
                "meat_spawn_rate": self.config.meat_spawn_rate,
                "placement_rule": self.config.placement_rule.value,
                "max_food": self.config.max_food,
            },
        }
