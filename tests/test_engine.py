"""Integration tests for the simulation engine."""

import json

import orjson
import pytest

from conftest import make_attributes
from ecosim.config.simulation_config import SimulationConfig, WorldConfig
from ecosim.entities.base import EntityKind
from ecosim.exceptions import SimulationError
from ecosim.math_utils import Vector2
from ecosim.movement_strategy import TargetIntent
from ecosim.simulation import HeadlessSimulator, SimulationEngine
from ecosim.snapshots import WorldSnapshot
from ecosim.spatial.bounds import BoundaryPolicy
from ecosim.update_phases import UpdatePhase


def fast_config(workers=1, policy=BoundaryPolicy.CLAMP):
    config = SimulationConfig.headless_fast()
    world = config.world
    config.world = WorldConfig(
        width=world.width,
        height=world.height,
        spatial_cell_size=world.spatial_cell_size,
        boundary_policy=policy,
        parallel_workers=workers,
    )
    return config


def run_snapshot(config, seed, ticks):
    with SimulationEngine(config, seed=seed) as engine:
        engine.step(ticks)
        return engine.snapshot().to_dict()


class TestDeterminism:
    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_same_seed_same_world(self, seed):
        assert run_snapshot(fast_config(), seed, 80) == run_snapshot(fast_config(), seed, 80)

    def test_different_seeds_diverge(self):
        assert run_snapshot(fast_config(), 1, 20) != run_snapshot(fast_config(), 2, 20)

    @pytest.mark.parametrize("policy", list(BoundaryPolicy))
    @pytest.mark.parametrize("seed", [3, 11])
    def test_worker_pool_matches_serial_run(self, seed, policy):
        serial = run_snapshot(fast_config(workers=1, policy=policy), seed, 60)
        parallel = run_snapshot(fast_config(workers=4, policy=policy), seed, 60)
        assert serial == parallel

    def test_stats_match_across_runs(self):
        first = SimulationEngine(fast_config(), seed=5).run_collect_stats(max_ticks=50)
        second = SimulationEngine(fast_config(), seed=5).run_collect_stats(max_ticks=50)
        first.pop("run_id")
        second.pop("run_id")
        assert first == second


class TestTickStructure:
    def test_phases_run_in_order(self, simulation_engine):
        simulation_engine.update()
        assert simulation_engine.last_phase_order == list(UpdatePhase)
        assert simulation_engine.get_current_phase() is None

    def test_systems_registered_in_phase_order(self, simulation_engine):
        names = [s.name for s in simulation_engine.get_systems()]
        assert names == [
            "Intent",
            "Movement",
            "Perception",
            "FoodSpawning",
            "EntityLifecycle",
            "Reproduction",
        ]

    def test_debug_info_and_phase_description(self, simulation_engine):
        simulation_engine.update()
        info = simulation_engine.get_systems_debug_info()
        assert info["Movement"]["phase"] == "ENTITY_ACT"
        assert info["Movement"]["update_count"] == 1
        assert simulation_engine.get_phase_description() == "Not in update loop"
        assert simulation_engine.get_phase_description(UpdatePhase.ENTITY_ACT) == "Creatures moving"

    def test_disabled_system_is_skipped(self, simulation_engine):
        assert simulation_engine.set_system_enabled("Reproduction", False)
        assert not simulation_engine.get_system("Reproduction").enabled
        simulation_engine.update()
        assert simulation_engine.last_results["Reproduction"].skipped

    def test_paused_engine_does_not_advance(self, simulation_engine):
        simulation_engine.paused = True
        before = simulation_engine.snapshot().to_dict()
        simulation_engine.update()
        assert simulation_engine.tick == 0
        assert simulation_engine.snapshot().to_dict() == before

    def test_clock_advances_by_timestep(self, simulation_engine):
        simulation_engine.step(3)
        assert simulation_engine.tick == 3
        assert simulation_engine.time == pytest.approx(3 * simulation_engine.dt)

    def test_setup_is_idempotent(self):
        engine = SimulationEngine(fast_config(), seed=1)
        engine.setup()
        count = len(engine.store)
        engine.setup()
        assert len(engine.store) == count
        assert engine.store.count(EntityKind.CREATURE) == engine.config.creatures.initial_count


class TestInvariants:
    @pytest.mark.parametrize("policy", list(BoundaryPolicy))
    def test_world_state_stays_valid(self, policy):
        engine = SimulationEngine(fast_config(policy=policy), seed=21)
        engine.setup()
        for _ in range(120):
            engine.update()
            for creature in engine.store.iter_creatures():
                assert 0.0 <= creature.satiation <= creature.max_satiation
                assert engine.bounds.is_valid_position(creature.position.x, creature.position.y)
            for handle, _ in engine.grid.entries():
                assert engine.store.is_alive(handle)
        engine.close()

    def test_creatures_find_food(self):
        engine = SimulationEngine(fast_config(), seed=2)
        engine.step(400)
        stats = engine.get_stats()
        assert sum(stats["food_eaten"].values()) > 0
        assert stats["satiation_gained"] > 0
        engine.close()


class TestSnapshots:
    def test_snapshot_lists_alive_entities(self, simulation_engine):
        simulation_engine.step(5)
        snapshot = simulation_engine.snapshot()

        assert isinstance(snapshot, WorldSnapshot)
        assert len(snapshot.entities) == simulation_engine.store.count()
        assert len(snapshot.creatures()) == simulation_engine.store.count(EntityKind.CREATURE)
        assert snapshot.boundary_policy == "clamp"
        assert snapshot.stats is None

    def test_snapshot_serialises_to_json(self, simulation_engine):
        simulation_engine.step(2)
        payload = orjson.loads(simulation_engine.snapshot(include_stats=True).to_json())

        assert payload["tick"] == 2
        assert payload["width"] == simulation_engine.bounds.width
        assert payload["stats"]["tick"] == 2
        creature = next(e for e in payload["entities"] if e["kind"] == "creature")
        assert "satiation" in creature["attributes"]

    def test_snapshot_is_frozen(self, empty_engine):
        empty_engine.create_creature(Vector2(10, 10), make_attributes())
        snapshot = empty_engine.snapshot()
        with pytest.raises(Exception):
            snapshot.tick = 5


class TestHeadlessRun:
    def test_run_headless_exports_stats_and_snapshot(self, tmp_path):
        stats_path = tmp_path / "stats.json"
        snapshot_path = tmp_path / "snapshot.json"
        engine = SimulationEngine(fast_config(), seed=8)

        stats = engine.run_headless(
            max_ticks=30,
            stats_interval=10,
            export_json=str(stats_path),
            snapshot_path=str(snapshot_path),
        )

        assert stats["tick"] == 30
        exported = json.loads(stats_path.read_text())
        assert exported["tick"] == 30
        assert exported["seed"] == 8
        snapshot = json.loads(snapshot_path.read_text())
        assert snapshot["tick"] == 30
        assert engine.executor is None

    def test_run_stops_on_extinction(self):
        config = fast_config()
        config.creatures.initial_satiation_fraction = 0.0
        config.reproduction.enabled = False
        engine = SimulationEngine(config, seed=4)

        stats = engine.run_headless(max_ticks=50, stats_interval=0)

        assert stats["tick"] == 1
        assert stats["creature_count"] == 0
        assert stats["death_causes"]["starvation"] == config.creatures.initial_count

    def test_headless_simulator(self):
        stats = HeadlessSimulator(max_ticks=10, seed=3).run()
        assert stats["tick"] == 10


class TestVariableTimestep:
    def test_tick_length_scales_movement_and_clock(self, empty_engine):
        handle = empty_engine.create_creature(
            Vector2(10, 10), make_attributes(speed=5.0), intent_strategy=TargetIntent(Vector2(20, 10))
        )
        empty_engine.update(dt=0.5)

        assert empty_engine.store.get(handle).position == Vector2(12.5, 10.0)
        assert empty_engine.time == pytest.approx(0.5)
        empty_engine.update()
        assert empty_engine.time == pytest.approx(1.5)

    @pytest.mark.parametrize("dt", [0.0, -1.0, float("nan")])
    def test_invalid_tick_length_rejected(self, empty_engine, dt):
        with pytest.raises(SimulationError):
            empty_engine.update(dt=dt)
        assert empty_engine.tick == 0
