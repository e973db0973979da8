"""Pytest configuration and fixtures for ecosystem tests."""

import random

import pytest

from ecosim.config.simulation_config import InteractionConfig, SimulationConfig
from ecosim.entities.creature import CreatureAttributes
from ecosim.entities.food import FoodAttributes, FoodKind
from ecosim.simulation.engine import SimulationEngine


def make_attributes(**overrides) -> CreatureAttributes:
    """Creature attributes inside every default trait range."""
    values = dict(
        speed=5.0,
        strength=1.0,
        sense_radius=30.0,
        max_satiation=100.0,
        dexterity=1.0,
        hunger_threshold=50.0,
        metabolism=1.0,
    )
    values.update(overrides)
    return CreatureAttributes(**values)


def plant(nutrition: float = 10.0) -> FoodAttributes:
    return FoodAttributes(FoodKind.PLANT, nutrition)


def quiet_config(**world_overrides) -> SimulationConfig:
    """Empty world with no satiation decay, for hand-placed scenarios."""
    config = SimulationConfig.empty(**world_overrides)
    config.creatures.base_satiation_decay = 0.0
    config.creatures.movement_cost = 0.0
    return config


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def empty_engine():
    """Engine on a 100x100 clamped world with nothing in it and no decay."""
    engine = SimulationEngine(quiet_config(width=100.0, height=100.0, spatial_cell_size=10.0), seed=42)
    engine.setup()
    yield engine
    engine.close()


@pytest.fixture
def periodic_engine():
    """Same as ``empty_engine`` but on a toroidal world."""
    from ecosim.spatial.bounds import BoundaryPolicy

    engine = SimulationEngine(
        quiet_config(
            width=100.0,
            height=100.0,
            spatial_cell_size=10.0,
            boundary_policy=BoundaryPolicy.PERIODIC,
        ),
        seed=42,
    )
    engine.setup()
    yield engine
    engine.close()


@pytest.fixture
def point_feeding_engine():
    """Empty engine that only eats food within 0.5 of the end position."""
    config = quiet_config(width=100.0, height=100.0, spatial_cell_size=10.0)
    config.interaction = InteractionConfig(collision_radius=0.5, swept_feeding=False)
    engine = SimulationEngine(config, seed=42)
    engine.setup()
    yield engine
    engine.close()


@pytest.fixture
def simulation_engine():
    """Setup a small populated simulation engine with a deterministic seed."""
    engine = SimulationEngine(SimulationConfig.headless_fast(), seed=42)
    engine.setup()
    yield engine
    engine.close()
