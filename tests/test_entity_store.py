"""Tests for the generational entity store."""

import pytest

from conftest import make_attributes, plant
from ecosim.config.creatures import TRAIT_RANGES
from ecosim.entities.base import EntityKind, LifecycleStatus
from ecosim.entities.creature import Creature
from ecosim.entities.food import Food
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import InvalidAttributeError, StaleHandleError
from ecosim.math_utils import Vector2
from ecosim.simulation.entity_store import EntityStore, MutationLockError
from ecosim.spatial.bounds import BoundaryPolicy, WorldBounds


@pytest.fixture
def store():
    return EntityStore(TRAIT_RANGES)


def add_food(store, x=1.0, y=1.0):
    return store.create(EntityKind.FOOD, plant(), Vector2(x, y))


class TestCreate:
    def test_first_handles_are_sequential(self, store):
        first = add_food(store)
        second = store.create(EntityKind.CREATURE, make_attributes(), Vector2(5, 5))

        assert first == EntityHandle(0, 0)
        assert second == EntityHandle(1, 0)
        assert isinstance(store.get(first), Food)
        assert isinstance(store.get(second), Creature)
        assert len(store) == 2

    def test_creature_satiation_defaults_to_max(self, store):
        handle = store.create(EntityKind.CREATURE, make_attributes(max_satiation=80.0), Vector2(5, 5))
        assert store.get(handle).satiation == 80.0

    def test_position_is_copied(self, store):
        position = Vector2(3, 4)
        handle = store.create(EntityKind.FOOD, plant(), position)
        position.x = 99.0
        assert store.get(handle).position.x == 3.0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"speed": -1.0},
            {"speed": 0.0},
            {"sense_radius": float("nan")},
            {"metabolism": float("inf")},
            {"hunger_threshold": 150.0},
            {"speed": 50.0},  # above the configured range
        ],
    )
    def test_invalid_creature_attributes_rejected(self, store, overrides):
        with pytest.raises(InvalidAttributeError):
            store.create(EntityKind.CREATURE, make_attributes(**overrides), Vector2(5, 5))
        assert len(store) == 0
        assert store.capacity == 0

    def test_invalid_food_nutrition_rejected(self, store):
        with pytest.raises(InvalidAttributeError):
            store.create(EntityKind.FOOD, plant(0.0), Vector2(1, 1))

    def test_kind_mismatch_rejected(self, store):
        with pytest.raises(InvalidAttributeError):
            store.create(EntityKind.CREATURE, plant(), Vector2(1, 1))

    def test_non_finite_position_rejected(self, store):
        with pytest.raises(InvalidAttributeError):
            add_food(store, x=float("nan"))

    def test_failed_construction_returns_slot(self, store):
        with pytest.raises(InvalidAttributeError):
            store.create(EntityKind.CREATURE, make_attributes(), Vector2(5, 5), satiation=500.0)
        assert len(store) == 0

        handle = add_food(store)
        assert handle == EntityHandle(0, 0)

    def test_bad_constructor_argument_returns_slot(self, store):
        with pytest.raises(TypeError):
            store.create(EntityKind.FOOD, plant(), Vector2(1, 1), satiation=5.0)
        assert len(store) == 0

        assert add_food(store) == EntityHandle(0, 0)

    def test_periodic_store_wraps_position(self):
        store = EntityStore(TRAIT_RANGES, WorldBounds(100.0, 100.0, BoundaryPolicy.PERIODIC))
        handle = add_food(store, x=150.0, y=-20.0)
        assert store.get(handle).position == Vector2(50.0, 80.0)

    def test_clamped_store_rejects_position_outside_world(self):
        store = EntityStore(TRAIT_RANGES, WorldBounds(100.0, 100.0))
        with pytest.raises(InvalidAttributeError):
            add_food(store, x=150.0, y=50.0)
        assert len(store) == 0
        assert add_food(store, x=100.0, y=100.0) == EntityHandle(0, 0)

    def test_locked_store_refuses_create(self, store):
        store.lock_mutations("TEST")
        assert store.mutation_locked
        with pytest.raises(MutationLockError):
            add_food(store)
        store.unlock_mutations()
        assert not store.mutation_locked
        add_food(store)


class TestRemoval:
    def test_marked_entity_is_hidden_but_resolvable(self, store):
        handle = add_food(store)
        assert store.mark_for_removal(handle, "eaten")

        entity = store.get(handle)
        assert entity is not None
        assert entity.status is LifecycleStatus.PENDING_REMOVAL
        assert store.get_alive(handle) is None
        assert not store.is_alive(handle)
        assert list(store.iter_alive()) == []

    def test_mark_twice_is_noop(self, store):
        handle = add_food(store)
        assert store.mark_for_removal(handle)
        assert not store.mark_for_removal(handle)
        assert store.pending_count == 1

    def test_compact_invalidates_handle(self, store):
        handle = add_food(store)
        store.mark_for_removal(handle, "eaten")
        removed = store.compact()

        assert [h for h, _ in removed] == [handle]
        assert removed[0][1].removal_reason == "eaten"
        assert store.get(handle) is None
        assert handle not in store
        with pytest.raises(StaleHandleError):
            store.require(handle)

    def test_reused_slot_gets_new_generation(self, store):
        old = add_food(store)
        store.mark_for_removal(old)
        store.compact()

        new = add_food(store, x=7.0)
        assert new.index == old.index
        assert new.generation == old.generation + 1
        assert store.get(old) is None
        assert store.get(new).position.x == 7.0

    def test_lowest_free_index_reused_first(self, store):
        handles = [add_food(store, x=float(i)) for i in range(4)]
        for handle in (handles[3], handles[0], handles[2]):
            store.mark_for_removal(handle)
        store.compact()

        reused = [add_food(store).index for _ in range(4)]
        assert reused == [0, 2, 3, 4]

    def test_compact_returns_sorted_handles(self, store):
        handles = [add_food(store, x=float(i)) for i in range(5)]
        for handle in reversed(handles):
            store.mark_for_removal(handle)
        removed = store.compact()
        assert [h for h, _ in removed] == handles

    def test_locked_store_refuses_compact(self, store):
        store.lock_mutations("TEST")
        with pytest.raises(MutationLockError):
            store.compact()


class TestIteration:
    def test_iteration_is_in_handle_order_and_filtered(self, store):
        food = add_food(store)
        creature = store.create(EntityKind.CREATURE, make_attributes(), Vector2(5, 5))
        other_food = add_food(store, x=9.0)
        store.mark_for_removal(food)

        assert store.alive_handles() == [creature, other_food]
        assert [c.handle for c in store.iter_creatures()] == [creature]
        assert [f.handle for f in store.iter_food()] == [other_food]
        assert store.count() == 2
        assert store.count(EntityKind.FOOD) == 1

    def test_index_entries_cover_alive_entities(self, store):
        a = add_food(store, x=1.0)
        b = add_food(store, x=2.0)
        store.mark_for_removal(a)
        assert [(h, p.x) for h, p in store.index_entries()] == [(b, 2.0)]
