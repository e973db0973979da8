"""Simulation engine - the slim orchestrator.

The engine owns the world state (entity store, spatial index, RNG, clock)
and runs one tick as a fixed sequence of phases. All per-entity logic
lives in the systems; the engine only decides when each one runs.

Design Decisions:
-----------------
1. The engine is a COORDINATOR, not a DOER. Each phase method delegates
   to exactly one system or one store/index operation.

2. Phase order is fixed (see UpdatePhase):
       FRAME_START -> ENTITY_THINK -> ENTITY_ACT -> SPATIAL_INDEX ->
       INTERACTION -> SPAWN -> LIFECYCLE -> REPRODUCTION -> CLEANUP ->
       FRAME_END
   Intents read the perception recorded on the previous tick, so sensing
   and acting are one tick apart.

3. Determinism: one seeded RNG drives everything. Entities are processed
   in ascending handle order, and read-only phases that use the optional
   worker pool draw their randomness serially before fanning out. Two
   engines with equal configs and seeds produce identical snapshots,
   with or without the pool.

4. The spatial index is rebuilt from the store every tick and entries
   freed during CLEANUP are dropped from it, so every indexed handle
   refers to an alive entity.
"""

import logging
import math
import random
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from ecosim.config.simulation_config import SimulationConfig
from ecosim.entities.base import EntityKind
from ecosim.entities.creature import HERITABLE_TRAITS, CreatureAttributes
from ecosim.entities.food import FoodKind
from ecosim.entity_ids import EntityHandle
from ecosim.evolution.inheritance import BlendInheritance, InheritanceStrategy
from ecosim.exceptions import SimulationError, SpawnPlacementExhausted
from ecosim.math_utils import Vector2
from ecosim.movement_strategy import ForagingIntent, IntentStrategy
from ecosim.result import Result
from ecosim.simulation import diagnostics
from ecosim.simulation.diagnostics import SimulationStats
from ecosim.simulation.entity_store import EntityStore
from ecosim.simulation.system_registry import SystemRegistry
from ecosim.snapshots import EntitySnapshot, WorldSnapshot
from ecosim.spatial.bounds import WorldBounds
from ecosim.spatial.grid import SpatialGrid
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.systems.entity_lifecycle import EntityLifecycleSystem
from ecosim.systems.food_spawning import FoodSpawningSystem
from ecosim.systems.movement import IntentSystem, MovementSystem
from ecosim.systems.perception import PerceptionSystem
from ecosim.systems.reproduction import ReproductionSystem
from ecosim.update_phases import PHASE_DESCRIPTIONS, UpdatePhase

logger = logging.getLogger(__name__)


class SimulationEngine:
    """A headless ecosystem simulation engine.

    Architecture:
        SimulationEngine (coordinator)
        ├── EntityStore (generational arena, source of truth)
        ├── SpatialGrid (rebuilt every tick, lookup only)
        ├── SystemRegistry (system lookup and enable/disable)
        └── Systems (Intent, Movement, Perception, FoodSpawning,
                     EntityLifecycle, Reproduction)

    Attributes:
        config: Simulation configuration
        rng: The only source of randomness in the run
        tick: Ticks completed
        time: Simulated time (tick * timestep)
        paused: When True, update() does nothing

    Example:
        with SimulationEngine(SimulationConfig.headless_fast(), seed=7) as engine:
            engine.setup()
            for _ in range(100):
                engine.update()
            print(engine.get_stats()["creature_count"])
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        """Initialize the simulation engine.

        Args:
            config: Aggregate simulation configuration
            rng: Shared random number generator for deterministic runs
            seed: Optional seed (used if rng is not provided)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config = config or SimulationConfig.production()
        self.config.validate()

        if rng is not None:
            self.rng: random.Random = rng
            self.seed: Optional[int] = None
        elif seed is not None:
            self.rng = random.Random(seed)
            self.seed = seed
        else:
            self.rng = random.Random()
            self.seed = None

        self.run_id: str = str(uuid.uuid4())
        logger.info("SimulationEngine initialized with run_id=%s seed=%s", self.run_id, self.seed)

        self.tick: int = 0
        self.time: float = 0.0
        self._tick_dt: float = self.config.world.timestep
        self.paused: bool = False
        self.start_time: float = time.time()

        world = self.config.world
        self.bounds = WorldBounds(world.width, world.height, world.boundary_policy)
        self.grid = SpatialGrid(self.bounds, world.spatial_cell_size)
        self.store = EntityStore(self.config.creatures.trait_ranges, self.bounds)
        self.stats = SimulationStats()

        self.default_intent: IntentStrategy = self.config.intent_strategy or ForagingIntent()
        self.inheritance: InheritanceStrategy = (
            self.config.inheritance_strategy
            or BlendInheritance(self.config.creatures.trait_ranges)
        )
        self.executor: Optional[ThreadPoolExecutor] = None

        # Systems, registered in phase order
        self._system_registry = SystemRegistry()
        self.intent_system = IntentSystem(self)
        self.movement_system = MovementSystem(self)
        self.perception_system = PerceptionSystem(self)
        self.food_spawning_system = FoodSpawningSystem(self)
        self.lifecycle_system = EntityLifecycleSystem(self)
        self.reproduction_system = ReproductionSystem(self)
        for system in (
            self.intent_system,
            self.movement_system,
            self.perception_system,
            self.food_spawning_system,
            self.lifecycle_system,
            self.reproduction_system,
        ):
            self._system_registry.register(system)

        self._is_setup = False
        self._current_phase: Optional[UpdatePhase] = None
        self.last_phase_order: List[UpdatePhase] = []
        self.last_results: Dict[str, SystemResult] = {}

    @property
    def dt(self) -> float:
        """Length of the current tick in time units."""
        return self._tick_dt

    # =========================================================================
    # Setup and teardown
    # =========================================================================

    def setup(self) -> None:
        """Start the worker pool (if configured) and create the initial population.

        Calling setup more than once has no further effect.
        """
        if self._is_setup:
            return
        self._is_setup = True

        workers = self.config.world.parallel_workers
        if workers > 1:
            self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ecosim")
            logger.debug("Started worker pool with %d threads", workers)

        self.create_initial_entities()
        self.grid.rebuild(self.store.index_entries())

    def close(self) -> None:
        """Shut down the worker pool."""
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None

    def __enter__(self) -> "SimulationEngine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # System Registry Methods
    # =========================================================================

    def get_systems(self) -> List[BaseSystem]:
        return self._system_registry.get_all()

    def get_system(self, name: str) -> Optional[BaseSystem]:
        return self._system_registry.get(name)

    def get_systems_debug_info(self) -> Dict[str, Any]:
        return self._system_registry.get_debug_info()

    def set_system_enabled(self, name: str, enabled: bool) -> bool:
        return self._system_registry.set_enabled(name, enabled)

    def get_current_phase(self) -> Optional[UpdatePhase]:
        """The phase being executed (None outside update())."""
        return self._current_phase

    def get_phase_description(self, phase: Optional[UpdatePhase] = None) -> str:
        if phase is None:
            phase = self._current_phase
        if phase is None:
            return "Not in update loop"
        return PHASE_DESCRIPTIONS.get(phase, phase.name)

    # =========================================================================
    # Entity creation
    # =========================================================================

    def random_attributes(self) -> CreatureAttributes:
        """Attributes sampled uniformly from the configured initial ranges."""
        creature_cfg = self.config.creatures
        traits: Dict[str, float] = {}
        for name in HERITABLE_TRAITS:
            lo, hi = creature_cfg.initial_trait_ranges[name]
            traits[name] = self.rng.uniform(lo, hi)
        traits["hunger_threshold"] = min(traits["hunger_threshold"], creature_cfg.max_satiation)
        return CreatureAttributes(max_satiation=creature_cfg.max_satiation, **traits)

    def create_creature(
        self,
        position: Optional[Vector2] = None,
        attributes: Optional[CreatureAttributes] = None,
        *,
        satiation: Optional[float] = None,
        velocity: Optional[Vector2] = None,
        intent_strategy: Optional[IntentStrategy] = None,
    ) -> EntityHandle:
        """Add a creature.

        Missing values are drawn from the engine RNG and configuration.

        Raises:
            InvalidAttributeError: If the attributes are out of range
        """
        if position is None:
            position = self.bounds.random_position(self.rng)
        if attributes is None:
            attributes = self.random_attributes()
        if satiation is None:
            satiation = attributes.max_satiation * self.config.creatures.initial_satiation_fraction
        return self.store.create(
            EntityKind.CREATURE,
            attributes,
            position,
            satiation=satiation,
            velocity=velocity,
            intent_strategy=intent_strategy,
            born_tick=self.tick,
        )

    def spawn_food(
        self, kind: FoodKind = FoodKind.PLANT, position: Optional[Vector2] = None
    ) -> Result[EntityHandle, SpawnPlacementExhausted]:
        """Add one food item at ``position`` or at a free spot."""
        return self.food_spawning_system.spawn(kind, position)

    def create_initial_entities(self) -> None:
        """Create the configured initial creatures, plants and meat."""
        for _ in range(self.config.creatures.initial_count):
            self.create_creature()

        food_cfg = self.config.food
        for kind, count in ((FoodKind.PLANT, food_cfg.initial_plants), (FoodKind.MEAT, food_cfg.initial_meat)):
            for _ in range(count):
                self.spawn_food(kind)

        logger.info(
            "Initial population: %d creatures, %d food",
            self.store.count(EntityKind.CREATURE),
            self.store.count(EntityKind.FOOD),
        )

    # =========================================================================
    # Core Update Loop
    # =========================================================================

    def update(self, dt: Optional[float] = None) -> None:
        """Advance the simulation by one tick.

        Args:
            dt: Length of this tick; defaults to the configured timestep

        Raises:
            SimulationError: If ``dt`` is not a positive finite number

        Phase Order:
            1. FRAME_START: Advance the clock
            2. ENTITY_THINK: Intent hooks set velocities from last tick's perception
            3. ENTITY_ACT: Movement and boundary policy
            4. SPATIAL_INDEX: Rebuild the grid from alive entities
            5. INTERACTION: Decay, perception, feeding
            6. SPAWN: Food spawning
            7. LIFECYCLE: Meat spoilage, ageing
            8. REPRODUCTION: Mating and offspring
            9. CLEANUP: Compact the store
            10. FRAME_END: Clear phase tracking
        """
        if self.paused:
            return
        if dt is None:
            dt = self.config.world.timestep
        elif not (math.isfinite(dt) and dt > 0):
            raise SimulationError(f"Timestep must be positive and finite, got {dt}")
        if not self._is_setup:
            self.setup()

        self._tick_dt = dt
        self.last_phase_order = []
        self.last_results = {}
        self._phase_frame_start()
        self._phase_entity_think()
        self._phase_entity_act()
        self._phase_spatial_index()
        self._phase_interaction()
        self._phase_spawn()
        self._phase_lifecycle()
        self._phase_reproduction()
        self._phase_cleanup()
        self._phase_frame_end()

    def step(self, ticks: int = 1) -> None:
        """Run ``ticks`` updates."""
        for _ in range(ticks):
            self.update()

    # -------------------------------------------------------------------------
    # Phase Implementations
    # -------------------------------------------------------------------------

    def _enter(self, phase: UpdatePhase) -> None:
        self._current_phase = phase
        self.last_phase_order.append(phase)

    def _run(self, system: BaseSystem) -> SystemResult:
        result = system.update(self.tick)
        self.last_results[system.name] = result
        return result

    def _phase_frame_start(self) -> None:
        """FRAME_START: Advance the clock."""
        self._enter(UpdatePhase.FRAME_START)
        self.tick += 1
        self.time += self.dt

    def _phase_entity_think(self) -> None:
        self._enter(UpdatePhase.ENTITY_THINK)
        self._run(self.intent_system)

    def _phase_entity_act(self) -> None:
        self._enter(UpdatePhase.ENTITY_ACT)
        self._run(self.movement_system)

    def _phase_spatial_index(self) -> None:
        """SPATIAL_INDEX: Re-derive the grid from the store."""
        self._enter(UpdatePhase.SPATIAL_INDEX)
        self.grid.rebuild(self.store.index_entries())

    def _phase_interaction(self) -> None:
        self._enter(UpdatePhase.INTERACTION)
        self._run(self.perception_system)

    def _phase_spawn(self) -> None:
        self._enter(UpdatePhase.SPAWN)
        self._run(self.food_spawning_system)

    def _phase_lifecycle(self) -> None:
        self._enter(UpdatePhase.LIFECYCLE)
        self._run(self.lifecycle_system)

    def _phase_reproduction(self) -> None:
        self._enter(UpdatePhase.REPRODUCTION)
        self._run(self.reproduction_system)

    def _phase_cleanup(self) -> None:
        """CLEANUP: Free removed entities and drop them from the index."""
        self._enter(UpdatePhase.CLEANUP)
        for handle, _ in self.lifecycle_system.compact():
            self.grid.discard(handle)

    def _phase_frame_end(self) -> None:
        self._enter(UpdatePhase.FRAME_END)
        self._current_phase = None

    # =========================================================================
    # Snapshots and Statistics
    # =========================================================================

    def snapshot(self, include_stats: bool = False) -> WorldSnapshot:
        """Frozen view of every alive entity plus world bounds."""
        entities = [
            EntitySnapshot(
                index=entity.handle.index,
                generation=entity.handle.generation,
                kind=entity.kind.value,
                x=entity.position.x,
                y=entity.position.y,
                attributes=entity.snapshot_attributes(),
            )
            for entity in self.store.iter_alive()
        ]
        return WorldSnapshot(
            tick=self.tick,
            time=self.time,
            width=self.bounds.width,
            height=self.bounds.height,
            boundary_policy=self.bounds.policy.value,
            entities=entities,
            stats=self.get_stats() if include_stats else None,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Current population and cumulative counters."""
        creatures = list(self.store.iter_creatures())
        food = list(self.store.iter_food())

        mean_traits: Dict[str, float] = {}
        if creatures:
            for name in HERITABLE_TRAITS:
                mean_traits[name] = sum(getattr(c.attributes, name) for c in creatures) / len(creatures)

        stats: Dict[str, Any] = {
            "run_id": self.run_id,
            "seed": self.seed,
            "tick": self.tick,
            "time": self.time,
            "creature_count": len(creatures),
            "food_count": len(food),
            "plant_count": sum(1 for f in food if f.food_kind is FoodKind.PLANT),
            "meat_count": sum(1 for f in food if f.food_kind is FoodKind.MEAT),
            "mean_satiation": (
                sum(c.satiation for c in creatures) / len(creatures) if creatures else 0.0
            ),
            "max_generation": max((c.lineage_generation for c in creatures), default=0),
            "mean_traits": mean_traits,
        }
        stats.update(self.stats.to_dict())
        return stats

    def export_stats_json(self, filename: str) -> None:
        diagnostics.export_stats_json(self, filename, self.start_time)

    def print_stats(self) -> None:
        diagnostics.print_simulation_stats(self, self.start_time)

    # =========================================================================
    # Run Methods
    # =========================================================================

    def run_headless(
        self,
        max_ticks: int = 10000,
        stats_interval: int = 250,
        export_json: Optional[str] = None,
        snapshot_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run without visualization, logging stats periodically.

        Returns:
            Final statistics
        """
        sep = "=" * self.config.world.separator_width
        logger.info(sep)
        logger.info("HEADLESS ECOSYSTEM SIMULATION")
        logger.info(sep)
        logger.info("Running for %d ticks (%.1f time units)", max_ticks, max_ticks * self.dt)
        if stats_interval > 0:
            logger.info("Stats will be logged every %d ticks", stats_interval)
        if export_json:
            logger.info("Stats will be exported to: %s", export_json)
        logger.info(sep)

        self.setup()
        try:
            for _ in range(max_ticks):
                self.update()
                if stats_interval > 0 and self.tick % stats_interval == 0:
                    self.print_stats()
                if self.store.count(EntityKind.CREATURE) == 0 and self.config.creatures.initial_count > 0:
                    logger.info("Population extinct at tick %d", self.tick)
                    break
        finally:
            self.close()

        logger.info(sep)
        logger.info("SIMULATION COMPLETE - Final Statistics")
        logger.info(sep)
        self.print_stats()

        if export_json:
            self.export_stats_json(export_json)
        if snapshot_path:
            self.snapshot(include_stats=True).write(snapshot_path)
            logger.info("Wrote snapshot to %s", snapshot_path)

        return self.get_stats()

    def run_collect_stats(self, max_ticks: int = 100) -> Dict[str, Any]:
        """Run for ``max_ticks`` ticks and return final stats."""
        self.setup()
        try:
            for _ in range(max_ticks):
                self.update()
        finally:
            self.close()
        return self.get_stats()


class HeadlessSimulator(SimulationEngine):
    """Simplified interface for CI and smoke tests.

    Uses the small ``headless_fast`` world and takes the tick limit in
    the constructor.
    """

    def __init__(self, max_ticks: int = 100, stats_interval: int = 0, seed: Optional[int] = None) -> None:
        super().__init__(config=SimulationConfig.headless_fast(), seed=seed)
        self.max_ticks = max_ticks
        self.stats_interval = stats_interval

    def run(self) -> Dict[str, Any]:
        return self.run_headless(max_ticks=self.max_ticks, stats_interval=self.stats_interval)
