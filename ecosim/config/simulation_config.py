"""Simulation configuration dataclasses.

Each dataclass groups one concern and takes its defaults from the constant
modules next to it. ``SimulationConfig`` aggregates them and is the single
value handed to the engine, so two engines built from equal configs and the
same seed produce identical runs.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ecosim.config import creatures as creature_defaults
from ecosim.config import food as food_defaults
from ecosim.config import interaction as interaction_defaults
from ecosim.config import reproduction as reproduction_defaults
from ecosim.config import world as world_defaults
from ecosim.config.food import PlacementRule
from ecosim.exceptions import ConfigurationError
from ecosim.spatial.bounds import BoundaryPolicy

if TYPE_CHECKING:
    from ecosim.evolution.inheritance import InheritanceStrategy
    from ecosim.movement_strategy import IntentStrategy

Range = Tuple[float, float]


@dataclass
class WorldConfig:
    """World geometry, clock and scheduling."""

    width: float = world_defaults.WORLD_WIDTH
    height: float = world_defaults.WORLD_HEIGHT
    boundary_policy: BoundaryPolicy = BoundaryPolicy(world_defaults.BOUNDARY_POLICY)
    timestep: float = world_defaults.TIMESTEP
    spatial_cell_size: float = world_defaults.SPATIAL_CELL_SIZE
    parallel_workers: int = world_defaults.PARALLEL_WORKERS
    separator_width: int = world_defaults.SEPARATOR_WIDTH


@dataclass
class CreatureConfig:
    """Initial creature population, trait ranges and metabolism."""

    initial_count: int = creature_defaults.INITIAL_CREATURES
    max_satiation: float = creature_defaults.MAX_SATIATION
    initial_satiation_fraction: float = creature_defaults.INITIAL_SATIATION_FRACTION
    trait_ranges: Dict[str, Range] = field(
        default_factory=lambda: dict(creature_defaults.TRAIT_RANGES)
    )
    initial_trait_ranges: Dict[str, Range] = field(
        default_factory=lambda: dict(creature_defaults.INITIAL_TRAIT_RANGES)
    )
    base_satiation_decay: float = creature_defaults.BASE_SATIATION_DECAY
    movement_cost: float = creature_defaults.MOVEMENT_COST


@dataclass
class FoodConfig:
    """Food spawning policy and nutrition."""

    auto_spawn_enabled: bool = True
    initial_plants: int = food_defaults.INITIAL_PLANTS
    initial_meat: int = food_defaults.INITIAL_MEAT
    plant_spawn_rate: float = food_defaults.PLANT_SPAWN_RATE
    meat_spawn_rate: float = food_defaults.MEAT_SPAWN_RATE
    plant_nutrition_range: Range = food_defaults.PLANT_NUTRITION_RANGE
    meat_nutrition_range: Range = food_defaults.MEAT_NUTRITION_RANGE
    meat_spoil_rate: float = food_defaults.MEAT_SPOIL_RATE
    max_food: int = food_defaults.MAX_FOOD
    max_placement_attempts: int = food_defaults.MAX_PLACEMENT_ATTEMPTS
    placement_rule: PlacementRule = food_defaults.PLACEMENT_RULE
    low_density_candidates: int = food_defaults.LOW_DENSITY_CANDIDATES
    low_density_radius: float = food_defaults.LOW_DENSITY_RADIUS


@dataclass
class InteractionConfig:
    """Perception and feeding thresholds."""

    collision_radius: float = interaction_defaults.COLLISION_RADIUS
    swept_feeding: bool = interaction_defaults.SWEPT_FEEDING
    max_meals_per_tick: int = interaction_defaults.MAX_MEALS_PER_TICK


@dataclass
class ReproductionConfig:
    """Mating rules and inheritance parameters."""

    enabled: bool = reproduction_defaults.REPRODUCTION_ENABLED
    satiation_fraction: float = reproduction_defaults.REPRODUCTION_SATIATION_FRACTION
    cost: float = reproduction_defaults.REPRODUCTION_COST
    mating_radius: float = reproduction_defaults.MATING_RADIUS
    cooldown: int = reproduction_defaults.REPRODUCTION_COOLDOWN
    mutation_rate: float = reproduction_defaults.MUTATION_RATE
    offspring_jitter: float = reproduction_defaults.OFFSPRING_JITTER
    max_creatures: int = reproduction_defaults.MAX_CREATURES


@dataclass
class SimulationConfig:
    """Aggregate configuration for one simulation run.

    Attributes:
        world: Geometry, boundary policy, timestep, scheduling
        creatures: Initial population and trait ranges
        food: Spawn policy
        interaction: Feeding thresholds
        reproduction: Mating rules
        intent_strategy: Default intent hook for creatures (None = foraging)
        inheritance_strategy: Offspring trait rule (None = blending)
    """

    world: WorldConfig = field(default_factory=WorldConfig)
    creatures: CreatureConfig = field(default_factory=CreatureConfig)
    food: FoodConfig = field(default_factory=FoodConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)
    intent_strategy: Optional["IntentStrategy"] = None
    inheritance_strategy: Optional["InheritanceStrategy"] = None

    @classmethod
    def production(cls) -> "SimulationConfig":
        """Default configuration used by the CLI."""
        return cls()

    @classmethod
    def headless_fast(cls) -> "SimulationConfig":
        """Small, quick world for CI and smoke runs."""
        return cls(
            world=WorldConfig(width=200.0, height=200.0, spatial_cell_size=50.0),
            creatures=CreatureConfig(initial_count=8),
            food=FoodConfig(initial_plants=15, max_food=80),
            reproduction=ReproductionConfig(max_creatures=40),
        )

    @classmethod
    def empty(cls, **world_overrides: Any) -> "SimulationConfig":
        """A world with no initial population and no automatic spawning.

        Handy for scenario setups that place every entity by hand.
        """
        return cls(
            world=WorldConfig(**world_overrides),
            creatures=CreatureConfig(initial_count=0),
            food=FoodConfig(auto_spawn_enabled=False, initial_plants=0, initial_meat=0),
            reproduction=ReproductionConfig(enabled=False),
        )

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """Return a copy with top-level fields replaced."""
        return dataclasses.replace(self, **overrides)

    def validate(self) -> None:
        """Check cross-field invariants.

        Raises:
            ConfigurationError: On the first invalid value found
        """
        world = self.world
        _require(world.width > 0 and world.height > 0, "world size must be positive")
        _require(world.timestep > 0, "timestep must be positive")
        _require(world.spatial_cell_size > 0, "spatial_cell_size must be positive")
        _require(world.parallel_workers >= 1, "parallel_workers must be >= 1")
        _require(
            isinstance(world.boundary_policy, BoundaryPolicy),
            f"unknown boundary policy {world.boundary_policy!r}",
        )

        creatures = self.creatures
        _require(creatures.initial_count >= 0, "initial creature count must be >= 0")
        _require(creatures.max_satiation > 0, "max_satiation must be positive")
        _require(
            0.0 <= creatures.initial_satiation_fraction <= 1.0,
            "initial_satiation_fraction must be in [0, 1]",
        )
        _require(creatures.base_satiation_decay >= 0, "base_satiation_decay must be >= 0")
        _require(creatures.movement_cost >= 0, "movement_cost must be >= 0")
        for name, (lo, hi) in creatures.trait_ranges.items():
            _require(lo <= hi, f"trait range for {name} is inverted")
        satiation_range = creatures.trait_ranges.get("max_satiation")
        if satiation_range is not None:
            _require(
                satiation_range[0] <= creatures.max_satiation <= satiation_range[1],
                "max_satiation must sit inside its trait range",
            )
        for name, (lo, hi) in creatures.initial_trait_ranges.items():
            bounds = creatures.trait_ranges.get(name)
            _require(bounds is not None, f"no trait range declared for {name}")
            _require(
                bounds[0] <= lo <= hi <= bounds[1],
                f"initial range for {name} must sit inside its trait range",
            )

        food = self.food
        _require(food.initial_plants >= 0 and food.initial_meat >= 0, "initial food must be >= 0")
        _require(food.plant_spawn_rate >= 0 and food.meat_spawn_rate >= 0, "spawn rates must be >= 0")
        for label, (lo, hi) in (
            ("plant", food.plant_nutrition_range),
            ("meat", food.meat_nutrition_range),
        ):
            _require(0 < lo <= hi, f"{label} nutrition range must be positive and ordered")
        _require(food.meat_spoil_rate >= 0, "meat_spoil_rate must be >= 0")
        _require(food.max_food >= 0, "max_food must be >= 0")
        _require(food.max_placement_attempts >= 1, "max_placement_attempts must be >= 1")
        _require(food.low_density_candidates >= 1, "low_density_candidates must be >= 1")

        interaction = self.interaction
        _require(interaction.collision_radius > 0, "collision_radius must be positive")
        _require(interaction.max_meals_per_tick >= 1, "max_meals_per_tick must be >= 1")
        sense_range = creatures.trait_ranges.get("sense_radius")
        if sense_range is not None:
            _require(
                interaction.collision_radius < sense_range[0],
                "collision_radius must be smaller than the minimum sense radius",
            )

        repro = self.reproduction
        _require(0.0 <= repro.satiation_fraction <= 1.0, "satiation_fraction must be in [0, 1]")
        _require(repro.cost >= 0, "reproduction cost must be >= 0")
        if repro.enabled and repro.cost > 0:
            _require(
                repro.cost < repro.satiation_fraction * creatures.max_satiation,
                "reproduction cost must be below the breeding satiation threshold",
            )
        _require(repro.mating_radius > 0, "mating_radius must be positive")
        _require(repro.cooldown >= 0, "cooldown must be >= 0")
        _require(repro.mutation_rate >= 0, "mutation_rate must be >= 0")
        _require(repro.max_creatures >= 0, "max_creatures must be >= 0")


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)
