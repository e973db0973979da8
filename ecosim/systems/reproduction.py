"""Reproduction system.

Pairs creatures that perceived each other this tick and are close, well
fed and off cooldown. Pairs are formed greedily in ascending handle order
and every creature mates at most once per tick, so the outcome is fixed
for a given seed.

A parent must hold more than ``cost`` satiation, so paying it never leaves
the parent starving. Each parent pays ``cost``; the offspring starts with
the sum of what its parents paid (capped at its max satiation). It is
placed at the wrap-aware midpoint of its parents plus a small jitter and
gets its attributes from the engine's InheritanceStrategy.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

from ecosim.entities.base import EntityKind
from ecosim.entities.creature import Creature
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import EntityError
from ecosim.math_utils import Vector2
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, runs_in_phase

if TYPE_CHECKING:
    from ecosim.config.simulation_config import ReproductionConfig
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


@runs_in_phase(UpdatePhase.REPRODUCTION)
class ReproductionSystem(BaseSystem):
    """Mating and offspring creation."""

    def __init__(
        self, engine: "SimulationEngine", config: Optional["ReproductionConfig"] = None
    ) -> None:
        super().__init__(engine, "Reproduction")
        self.config = config if config is not None else engine.config.reproduction
        self._total_births = 0
        self._capped = 0

    def _do_update(self, frame: int) -> SystemResult:
        if not self.config.enabled:
            return SystemResult.skipped_result()

        pairs = self.find_pairs(frame)
        births = 0
        for parent_a, parent_b in pairs:
            if self.population_full():
                self._capped += 1
                break
            try:
                child = self.breed(parent_a, parent_b, frame)
            except EntityError:
                logger.exception(
                    "Offspring of %s and %s could not be created",
                    parent_a.handle,
                    parent_b.handle,
                )
                self._engine.stats.entity_failures += 1
                continue
            births += 1
            logger.debug(
                "Creature %s born to %s and %s at tick %d",
                child,
                parent_a.handle,
                parent_b.handle,
                frame,
            )

        self._total_births += births
        return SystemResult(
            entities_affected=2 * births,
            entities_spawned=births,
            details={"pairs": len(pairs), "births": births},
        )

    def is_eligible(self, creature: Creature, frame: int) -> bool:
        threshold = self.config.satiation_fraction * creature.max_satiation
        return (
            creature.is_alive
            and creature.satiation >= threshold
            and creature.satiation > self.config.cost
            and creature.can_mate(frame, self.config.cooldown)
        )

    def find_pairs(self, frame: int) -> List[Tuple[Creature, Creature]]:
        """Greedy handle-ordered pairing of mutually perceived, eligible creatures."""
        store = self._engine.store
        mated: Set[EntityHandle] = set()
        pairs: List[Tuple[Creature, Creature]] = []
        for creature in store.iter_creatures():
            if creature.handle in mated or not self.is_eligible(creature, frame):
                continue
            for seen in creature.perception.creatures:
                if seen.distance > self.config.mating_radius:
                    break
                if seen.handle in mated:
                    continue
                partner = store.get_alive(seen.handle)
                if not isinstance(partner, Creature) or not self.is_eligible(partner, frame):
                    continue
                if not partner.perception.sees(creature.handle):
                    continue
                mated.add(creature.handle)
                mated.add(partner.handle)
                pairs.append((creature, partner))
                break
        return pairs

    def population_full(self) -> bool:
        cap = self.config.max_creatures
        if cap <= 0:
            return False
        return self._engine.store.count(EntityKind.CREATURE) >= cap

    def breed(self, parent_a: Creature, parent_b: Creature, frame: int) -> EntityHandle:
        """Create one offspring and charge both parents."""
        engine = self._engine
        rng = engine.rng
        attrs = engine.inheritance.inherit(
            parent_a.attributes, parent_b.attributes, self.config.mutation_rate, rng
        )

        jitter = self.config.offspring_jitter
        offset = Vector2(rng.uniform(-jitter, jitter), rng.uniform(-jitter, jitter))
        midpoint = engine.bounds.midpoint(parent_a.position, parent_b.position)
        position = engine.bounds.normalize(midpoint + offset)

        cost = self.config.cost
        paid = min(cost, parent_a.satiation) + min(cost, parent_b.satiation)
        handle = engine.store.create(
            EntityKind.CREATURE,
            attrs,
            position,
            satiation=min(attrs.max_satiation, paid),
            velocity=Vector2(0.0, 0.0),
            parents=(parent_a.handle, parent_b.handle),
            lineage_generation=max(parent_a.lineage_generation, parent_b.lineage_generation) + 1,
            born_tick=frame,
        )
        parent_a.drain(cost)
        parent_b.drain(cost)
        parent_a.last_mated_tick = frame
        parent_b.last_mated_tick = frame
        engine.stats.births += 1
        return handle

    def get_debug_info(self) -> Dict[str, Any]:
        return {
            **super().get_debug_info(),
            "total_births": self._total_births,
            "capped": self._capped,
        }
