"""Simulation systems, one per step of the tick."""

from ecosim.systems.base import BaseSystem, System, SystemResult
from ecosim.systems.entity_lifecycle import EntityLifecycleSystem
from ecosim.systems.food_spawning import FoodSpawningSystem
from ecosim.systems.movement import IntentSystem, MovementSystem
from ecosim.systems.perception import PerceptionSystem
from ecosim.systems.reproduction import ReproductionSystem

__all__ = [
    "BaseSystem",
    "EntityLifecycleSystem",
    "FoodSpawningSystem",
    "IntentSystem",
    "MovementSystem",
    "PerceptionSystem",
    "ReproductionSystem",
    "System",
    "SystemResult",
]
