"""Tests for intent strategies and the movement system."""

import random

import pytest

from conftest import make_attributes
from ecosim.entities.base import EntityKind
from ecosim.entities.perception import PerceivedEntity, Perception
from ecosim.entity_ids import EntityHandle
from ecosim.math_utils import Vector2, smoothstep
from ecosim.movement_strategy import (
    ForagingIntent,
    IntentContext,
    StationaryIntent,
    TargetIntent,
    WanderIntent,
    safe_compute,
    steer_towards,
)
from ecosim.spatial.bounds import WorldBounds


class FixedVelocity:
    """Always asks for the same velocity."""

    def __init__(self, x, y):
        self.velocity = Vector2(x, y)

    def compute(self, creature, perception, context):
        return self.velocity.copy()


class Exploding:
    def compute(self, creature, perception, context):
        raise RuntimeError("boom")


def context(bounds=None, is_alive=lambda handle: True):
    return IntentContext(
        tick=1,
        dt=1.0,
        bounds=bounds or WorldBounds(100.0, 100.0),
        rng=random.Random(0),
        is_alive=is_alive,
    )


class TestMovementSystem:
    def test_straight_line_to_target(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0), intent_strategy=TargetIntent(Vector2(20, 10))
        )
        creature = empty_engine.store.get(handle)

        empty_engine.update()
        assert creature.position == Vector2(15.0, 10.0)
        empty_engine.update()
        assert creature.position == Vector2(20.0, 10.0)
        empty_engine.update()
        assert creature.position == Vector2(20.0, 10.0)

    def test_velocity_clamped_to_speed(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0), intent_strategy=FixedVelocity(100.0, 0.0)
        )
        empty_engine.update()
        creature = empty_engine.store.get(handle)
        assert creature.position == Vector2(15.0, 10.0)
        assert creature.velocity.length() == pytest.approx(5.0)

    def test_clamp_stops_at_edge(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(98, 50), make_attributes(speed=5.0), intent_strategy=FixedVelocity(5.0, 0.0)
        )
        empty_engine.update()
        creature = empty_engine.store.get(handle)
        assert creature.position == Vector2(100.0, 50.0)
        assert creature.velocity.x == 0.0
        assert creature.displacement == Vector2(2.0, 0.0)

    def test_periodic_wraps_around(self, periodic_engine):
        handle = periodic_engine.create_creature(
            Vector2(98, 50), make_attributes(speed=5.0), intent_strategy=FixedVelocity(5.0, 0.0)
        )
        periodic_engine.update()
        creature = periodic_engine.store.get(handle)
        assert creature.position == Vector2(3.0, 50.0)
        assert creature.displacement == Vector2(5.0, 0.0)

    def test_non_finite_velocity_holds_creature(self, empty_engine):
        bad = empty_engine.create_creature(Vector2(10, 10), make_attributes())
        good = empty_engine.create_creature(Vector2(50, 50), make_attributes())
        empty_engine.store.get(bad).velocity = Vector2(float("inf"), 0.0)
        empty_engine.store.get(good).velocity = Vector2(1.0, 0.0)

        empty_engine.movement_system.update(empty_engine.tick)

        assert empty_engine.store.get(bad).position == Vector2(10.0, 10.0)
        assert empty_engine.store.get(bad).velocity == Vector2(0.0, 0.0)
        assert empty_engine.store.get(good).position == Vector2(51.0, 50.0)
        assert empty_engine.stats.movement_faults == 1

    def test_failing_intent_does_not_stop_others(self, empty_engine):
        broken = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(), intent_strategy=Exploding()
        )
        mover = empty_engine.create_creature(
            Vector2(50, 50), make_attributes(speed=2.0), intent_strategy=FixedVelocity(2.0, 0.0)
        )
        empty_engine.update()
        assert empty_engine.store.get(broken).position == Vector2(10.0, 10.0)
        assert empty_engine.store.get(mover).position == Vector2(52.0, 50.0)

    def test_facing_follows_velocity(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(50, 50), make_attributes(), intent_strategy=FixedVelocity(0.0, 1.0)
        )
        empty_engine.update()
        assert empty_engine.store.get(handle).facing == pytest.approx(1.5707963267948966)


class TestIntents:
    def test_stationary(self, empty_engine):
        handle = empty_engine.create_creature(Vector2(10, 10), make_attributes())
        creature = empty_engine.store.get(handle)
        assert StationaryIntent().compute(creature, Perception.empty(), context()) == Vector2(0, 0)

    def test_target_does_not_overshoot(self, empty_engine):
        handle = empty_engine.create_creature(Vector2(10, 10), make_attributes(speed=5.0))
        creature = empty_engine.store.get(handle)
        velocity = TargetIntent(Vector2(12, 10)).compute(creature, Perception.empty(), context())
        assert velocity == Vector2(2.0, 0.0)

    def test_target_takes_short_way_round_on_torus(self, periodic_engine):
        handle = periodic_engine.create_creature(Vector2(98, 50), make_attributes(speed=5.0))
        creature = periodic_engine.store.get(handle)
        velocity = TargetIntent(Vector2(2, 50)).compute(
            creature, Perception.empty(), context(periodic_engine.bounds)
        )
        assert velocity == Vector2(4.0, 0.0)

    def test_steering_change_limited_by_dexterity(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0, dexterity=1.0)
        )
        creature = empty_engine.store.get(handle)
        velocity = steer_towards(creature, Vector2(50.0, 0.0))
        assert velocity == Vector2(1.0, 0.0)

    def test_steering_slows_near_target(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0, dexterity=10.0)
        )
        creature = empty_engine.store.get(handle)
        far = steer_towards(creature, Vector2(40.0, 0.0))
        near = steer_towards(creature, Vector2(10.0, 0.0))
        assert far.length() == pytest.approx(5.0)
        assert near.length() < far.length()

    def test_steering_reports_arrival(self, empty_engine):
        handle = empty_engine.create_creature(Vector2(10, 10), make_attributes())
        creature = empty_engine.store.get(handle)
        assert steer_towards(creature, Vector2(3.0, 0.0)) is None

    def test_wander_target_inside_cone(self, empty_engine):
        handle = empty_engine.create_creature(Vector2(50, 50), make_attributes())
        creature = empty_engine.store.get(handle)
        creature.facing = 0.0
        wander = WanderIntent()
        for seed in range(20):
            ctx = context()
            ctx.rng = random.Random(seed)
            target = wander.pick_target(creature, ctx)
            offset = target - creature.position
            assert target.x >= creature.position.x
            assert offset.length() <= 80.0 + 1e-9

    def test_foraging_heads_for_food_when_hungry(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0, hunger_threshold=50.0), satiation=20.0
        )
        creature = empty_engine.store.get(handle)
        food_handle = EntityHandle(9)
        perception = Perception(
            tick=0,
            food=(
                PerceivedEntity(
                    handle=food_handle,
                    kind=EntityKind.FOOD,
                    position=Vector2(10, 30),
                    offset=Vector2(0, 20),
                    distance=20.0,
                ),
            ),
        )
        velocity = ForagingIntent().compute(creature, perception, context())
        assert velocity == Vector2(0.0, 5.0)

    def test_foraging_ignores_food_that_is_gone(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0), satiation=20.0
        )
        creature = empty_engine.store.get(handle)
        perception = Perception(
            tick=0,
            food=(
                PerceivedEntity(
                    handle=EntityHandle(9),
                    kind=EntityKind.FOOD,
                    position=Vector2(10, 30),
                    offset=Vector2(0, 20),
                    distance=20.0,
                ),
            ),
        )
        ForagingIntent().compute(creature, perception, context(is_alive=lambda h: False))
        assert creature.wander_target is not None

    def test_hungry_creature_reaches_food_in_engine(self, empty_engine):
        empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0, sense_radius=30.0), satiation=20.0
        )
        food = empty_engine.spawn_food(position=Vector2(10, 30)).unwrap()
        empty_engine.step(8)
        assert empty_engine.store.get(food) is None
        assert empty_engine.stats.food_eaten["plant"] == 1

    def test_safe_compute_rejects_non_finite(self, empty_engine):
        handle = empty_engine.create_creature(Vector2(10, 10), make_attributes())
        creature = empty_engine.store.get(handle)
        velocity = safe_compute(FixedVelocity(float("nan"), 0.0), creature, Perception.empty(), context())
        assert velocity == Vector2(0.0, 0.0)


def test_smoothstep_shape():
    assert smoothstep(-1.0) == 0.0
    assert smoothstep(0.5) == pytest.approx(0.5)
    assert smoothstep(2.0) == 1.0
    assert smoothstep(0.25) < 0.25
