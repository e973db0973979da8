"""Entity data types: creatures, food and what creatures perceive."""

from ecosim.entities.base import Entity, EntityKind, LifecycleStatus
from ecosim.entities.creature import HERITABLE_TRAITS, Creature, CreatureAttributes
from ecosim.entities.food import Food, FoodAttributes, FoodKind
from ecosim.entities.perception import PerceivedEntity, Perception

__all__ = [
    "Creature",
    "CreatureAttributes",
    "Entity",
    "EntityKind",
    "Food",
    "FoodAttributes",
    "FoodKind",
    "HERITABLE_TRAITS",
    "LifecycleStatus",
    "PerceivedEntity",
    "Perception",
]
