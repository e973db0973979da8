"""Tests for food spawning, placement and spoilage."""

import itertools

import pytest

from conftest import quiet_config
from ecosim.config.food import PlacementRule
from ecosim.config.simulation_config import FoodConfig
from ecosim.entities.base import EntityKind
from ecosim.entities.food import FoodAttributes, FoodKind
from ecosim.exceptions import SpawnPlacementExhausted
from ecosim.math_utils import Vector2
from ecosim.simulation.engine import SimulationEngine


def spawning_engine(**food_overrides):
    config = quiet_config(width=100.0, height=100.0, spatial_cell_size=10.0)
    values = dict(
        auto_spawn_enabled=True,
        initial_plants=0,
        initial_meat=0,
        plant_spawn_rate=0.0,
        meat_spawn_rate=0.0,
    )
    values.update(food_overrides)
    config.food = FoodConfig(**values)
    engine = SimulationEngine(config, seed=3)
    engine.setup()
    return engine


def test_fractional_rate_accumulates():
    engine = spawning_engine(plant_spawn_rate=0.25)
    counts = []
    for _ in range(8):
        engine.update()
        counts.append(engine.store.count(EntityKind.FOOD))
    assert counts == [0, 0, 0, 1, 1, 1, 1, 2]


def test_rates_are_per_kind():
    engine = spawning_engine(plant_spawn_rate=2.0, meat_spawn_rate=0.5)
    engine.step(2)
    stats = engine.get_stats()
    assert stats["plant_count"] == 4
    assert stats["meat_count"] == 1
    assert engine.stats.food_spawned == {"plant": 4, "meat": 1}


def test_spawning_stops_at_cap():
    engine = spawning_engine(plant_spawn_rate=5.0, max_food=3)
    engine.step(3)
    assert engine.store.count(EntityKind.FOOD) == 3
    assert engine.last_results["FoodSpawning"].details["capped"] == 5


def test_auto_spawn_disabled_spawns_nothing():
    engine = spawning_engine(auto_spawn_enabled=False, plant_spawn_rate=5.0)
    engine.step(5)
    assert engine.store.count(EntityKind.FOOD) == 0


def test_nutrition_drawn_from_kind_range():
    engine = spawning_engine(plant_nutrition_range=(10.0, 12.0), meat_nutrition_range=(40.0, 41.0))
    for _ in range(10):
        plant = engine.store.get(engine.spawn_food(FoodKind.PLANT).unwrap())
        meat = engine.store.get(engine.spawn_food(FoodKind.MEAT).unwrap())
        assert 10.0 <= plant.nutrition <= 12.0
        assert 40.0 <= meat.nutrition <= 41.0


@pytest.mark.parametrize("rule", list(PlacementRule))
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_new_food_never_overlaps_existing_food(rule, seed):
    config = quiet_config(width=100.0, height=100.0, spatial_cell_size=10.0)
    config.food = FoodConfig(
        auto_spawn_enabled=True,
        initial_plants=25,
        initial_meat=0,
        plant_spawn_rate=3.0,
        meat_spawn_rate=0.0,
        placement_rule=rule,
    )
    engine = SimulationEngine(config, seed=seed)
    engine.step(10)

    radius = engine.config.interaction.collision_radius
    food = list(engine.store.iter_food())
    assert len(food) > 25
    for a, b in itertools.combinations(food, 2):
        assert engine.bounds.distance(a.position, b.position) > radius


def test_placement_exhaustion_is_soft_failure():
    config = quiet_config(width=1.0, height=1.0, spatial_cell_size=1.0)
    engine = SimulationEngine(config, seed=5)
    engine.setup()
    engine.spawn_food(position=Vector2(0.5, 0.5)).unwrap()

    result = engine.spawn_food()

    assert result.is_err()
    assert isinstance(result.error, SpawnPlacementExhausted)
    assert result.error.attempts == engine.config.food.max_placement_attempts
    assert engine.stats.placement_exhausted == 1
    assert engine.store.count(EntityKind.FOOD) == 1


def test_meat_spoils_and_is_removed():
    engine = spawning_engine(meat_spoil_rate=0.05)
    meat = engine.store.create(EntityKind.FOOD, FoodAttributes(FoodKind.MEAT, 0.1), Vector2(50, 50))
    plant = engine.store.create(EntityKind.FOOD, FoodAttributes(FoodKind.PLANT, 0.1), Vector2(20, 20))

    engine.update()
    assert engine.store.get(meat).nutrition == pytest.approx(0.05)

    engine.step(2)
    assert engine.store.get(meat) is None
    assert engine.store.is_alive(plant)
    assert engine.stats.food_spoiled == 1


def test_low_density_prefers_empty_area():
    engine = spawning_engine(
        placement_rule=PlacementRule.LOW_DENSITY, low_density_candidates=8, low_density_radius=30.0
    )
    for x in range(5, 50, 5):
        for y in range(5, 100, 5):
            engine.spawn_food(position=Vector2(float(x), float(y))).unwrap()
    engine.grid.rebuild(engine.store.index_entries())
    spawner = engine.food_spawning_system
    spawner._placed_this_tick = []

    crowded = spawner.food_density(Vector2(25.0, 50.0), 30.0)
    position = spawner.find_position().unwrap()

    assert spawner.food_density(position, 30.0) < crowded
