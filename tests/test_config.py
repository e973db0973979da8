"""Tests for simulation configuration and the system registry."""

import pytest

from ecosim.config.simulation_config import (
    CreatureConfig,
    InteractionConfig,
    ReproductionConfig,
    SimulationConfig,
    WorldConfig,
)
from ecosim.exceptions import ConfigurationError
from ecosim.simulation import SimulationEngine, SystemRegistry
from ecosim.systems.base import BaseSystem, SystemResult
from ecosim.update_phases import UpdatePhase, get_system_phase, runs_in_phase


@runs_in_phase(UpdatePhase.SPAWN)
class DummySpawnSystem(BaseSystem):
    def _do_update(self, frame):
        return SystemResult(entities_spawned=1)


@runs_in_phase(UpdatePhase.ENTITY_THINK)
class DummyThinkSystem(BaseSystem):
    def _do_update(self, frame):
        return None


class TestSimulationConfig:
    def test_presets_validate(self):
        SimulationConfig.production().validate()
        SimulationConfig.headless_fast().validate()
        SimulationConfig.empty().validate()

    def test_empty_preset_has_no_population(self):
        config = SimulationConfig.empty(width=50.0, height=50.0)
        assert config.world.width == 50.0
        assert config.creatures.initial_count == 0
        assert not config.food.auto_spawn_enabled
        assert not config.reproduction.enabled

    @pytest.mark.parametrize(
        "config",
        [
            SimulationConfig(world=WorldConfig(width=0.0)),
            SimulationConfig(world=WorldConfig(timestep=-1.0)),
            SimulationConfig(world=WorldConfig(parallel_workers=0)),
            SimulationConfig(creatures=CreatureConfig(initial_satiation_fraction=1.5)),
            SimulationConfig(interaction=InteractionConfig(collision_radius=0.0)),
            SimulationConfig(interaction=InteractionConfig(collision_radius=10.0)),
            SimulationConfig(interaction=InteractionConfig(max_meals_per_tick=0)),
            SimulationConfig(reproduction=ReproductionConfig(satiation_fraction=0.25, cost=25.0)),
            SimulationConfig(creatures=CreatureConfig(max_satiation=500.0)),
            SimulationConfig(
                creatures=CreatureConfig(
                    initial_trait_ranges={"speed": (0.0, 100.0)},
                )
            ),
        ],
    )
    def test_invalid_config_rejected(self, config):
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_engine_refuses_invalid_config(self):
        with pytest.raises(ConfigurationError):
            SimulationEngine(SimulationConfig(world=WorldConfig(height=-5.0)))

    def test_with_overrides_returns_copy(self):
        base = SimulationConfig.production()
        changed = base.with_overrides(world=WorldConfig(width=123.0))
        assert changed.world.width == 123.0
        assert base.world.width != 123.0
        assert changed.creatures is base.creatures


class TestSystemRegistry:
    def test_register_and_lookup(self, empty_engine):
        registry = SystemRegistry()
        think = DummyThinkSystem(empty_engine, "Think")
        spawn = DummySpawnSystem(empty_engine, "Spawn")
        registry.register(think)
        registry.register(spawn)

        assert registry.get("Spawn") is spawn
        assert registry.get("Missing") is None
        assert registry.in_phase(UpdatePhase.SPAWN) == [spawn]
        assert len(registry) == 2

    def test_duplicate_name_rejected(self, empty_engine):
        registry = SystemRegistry()
        registry.register(DummyThinkSystem(empty_engine, "Think"))
        with pytest.raises(ConfigurationError):
            registry.register(DummyThinkSystem(empty_engine, "Think"))

    def test_out_of_phase_order_rejected(self, empty_engine):
        registry = SystemRegistry()
        registry.register(DummySpawnSystem(empty_engine, "Spawn"))
        with pytest.raises(ConfigurationError):
            registry.register(DummyThinkSystem(empty_engine, "Think"))

    def test_set_enabled(self, empty_engine):
        registry = SystemRegistry()
        spawn = DummySpawnSystem(empty_engine, "Spawn")
        registry.register(spawn)

        assert registry.set_enabled("Spawn", False)
        assert not registry.set_enabled("Missing", False)
        assert spawn.update(1).skipped
        assert spawn.update_count == 0

    def test_none_result_becomes_empty(self, empty_engine):
        think = DummyThinkSystem(empty_engine, "Think")
        result = think.update(1)
        assert result.entities_affected == 0
        assert think.update_count == 1

    def test_phase_decorator(self):
        assert get_system_phase(DummySpawnSystem) is UpdatePhase.SPAWN
