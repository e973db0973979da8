"""Intent and movement systems.

IntentSystem (ENTITY_THINK) asks each creature's intent strategy for a
desired velocity, using the perception recorded on the previous tick.
Strategies only read shared state, so when the engine has a worker pool
the calls are spread across threads; each creature gets its own RNG
stream drawn serially in handle order, and the results are applied
serially, so the outcome does not depend on thread scheduling.

MovementSystem (ENTITY_ACT) integrates positions and applies the boundary
policy.
"""

import logging
import math
from typing import TYPE_CHECKING, List, Tuple

from ecosim.math_utils import Vector2
from ecosim.movement_strategy import IntentContext, safe_compute
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, runs_in_phase
from ecosim.util.rng import derive_rng

if TYPE_CHECKING:
    from ecosim.entities.creature import Creature
    from ecosim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


@runs_in_phase(UpdatePhase.ENTITY_THINK)
class IntentSystem(BaseSystem):
    """Sets every creature's velocity from its intent strategy."""

    def __init__(self, engine: "SimulationEngine") -> None:
        super().__init__(engine, "Intent")
        self._parallel_batches = 0

    def _do_update(self, frame: int) -> SystemResult:
        engine = self._engine
        store = engine.store
        creatures = list(store.iter_creatures())
        if not creatures:
            return SystemResult.empty()

        # RNG streams are drawn in handle order before any work is scheduled
        jobs: List[Tuple["Creature", IntentContext]] = []
        for creature in creatures:
            context = IntentContext(
                tick=frame,
                dt=engine.dt,
                bounds=engine.bounds,
                rng=derive_rng(engine.rng, creature.handle.index),
                is_alive=store.is_alive,
            )
            jobs.append((creature, context))

        store.lock_mutations(UpdatePhase.ENTITY_THINK.name)
        try:
            executor = engine.executor
            if executor is not None and len(jobs) > 1:
                self._parallel_batches += 1
                velocities = list(executor.map(self._compute, jobs))
            else:
                velocities = [self._compute(job) for job in jobs]
        finally:
            store.unlock_mutations()

        for (creature, _), velocity in zip(jobs, velocities):
            creature.velocity = velocity

        return SystemResult(entities_affected=len(jobs))

    def _compute(self, job: Tuple["Creature", IntentContext]) -> Vector2:
        creature, context = job
        strategy = creature.intent_strategy or self._engine.default_intent
        return safe_compute(strategy, creature, creature.perception, context)

    def get_debug_info(self):
        return {**super().get_debug_info(), "parallel_batches": self._parallel_batches}


@runs_in_phase(UpdatePhase.ENTITY_ACT)
class MovementSystem(BaseSystem):
    """Moves creatures by ``velocity * dt`` and applies the boundary policy.

    Velocity is clamped to the creature's speed first. A creature whose
    new position would not be finite is logged and held in place with its
    velocity zeroed; the rest of the population is unaffected.
    """

    def __init__(self, engine: "SimulationEngine") -> None:
        super().__init__(engine, "Movement")
        self._held_in_place = 0
        self._boundary_hits = 0

    def _do_update(self, frame: int) -> SystemResult:
        engine = self._engine
        bounds = engine.bounds
        dt = engine.dt
        moved = 0
        held = 0
        hits = 0

        for creature in engine.store.iter_creatures():
            position = creature.position
            creature.previous_position = position.copy()
            velocity = creature.velocity.limit_inplace(creature.attributes.speed)

            new_x = position.x + velocity.x * dt
            new_y = position.y + velocity.y * dt
            if not (math.isfinite(new_x) and math.isfinite(new_y)):
                logger.warning(
                    "Non-finite position for creature %s (velocity %r); holding in place",
                    creature.handle,
                    velocity,
                )
                velocity.update(0.0, 0.0)
                creature.displacement = Vector2(0.0, 0.0)
                engine.stats.movement_faults += 1
                held += 1
                continue

            step = Vector2(new_x - position.x, new_y - position.y)
            position.update(new_x, new_y)
            if bounds.apply(position, velocity):
                hits += 1
                if not bounds.periodic:
                    step = position - creature.previous_position

            creature.displacement = step
            if velocity.length_squared() > 0.0:
                creature.facing = velocity.angle()
            moved += 1

        self._held_in_place += held
        self._boundary_hits += hits
        return SystemResult(
            entities_affected=moved,
            details={"held_in_place": held, "boundary_hits": hits},
        )

    def get_debug_info(self):
        return {
            **super().get_debug_info(),
            "held_in_place": self._held_in_place,
            "boundary_hits": self._boundary_hits,
        }
