"""Simulation package - orchestration components.

- engine.py: The slim SimulationEngine orchestrator
- entity_store.py: Generational arena owning every entity
- system_registry.py: System registration and lookup
- diagnostics.py: Statistics, console summaries and JSON export

Usage:
    from ecosim.simulation import SimulationEngine

    engine = SimulationEngine(config, seed=42)
    engine.run_headless(max_ticks=1000)
"""

from ecosim.simulation.engine import HeadlessSimulator, SimulationEngine
from ecosim.simulation.entity_store import EntityStore, MutationLockError
from ecosim.simulation.system_registry import SystemRegistry

__all__ = [
    "EntityStore",
    "HeadlessSimulator",
    "MutationLockError",
    "SimulationEngine",
    "SystemRegistry",
]
