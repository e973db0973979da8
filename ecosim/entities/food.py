"""Food entities: plants and meat."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from ecosim.entities.base import Entity, EntityKind
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import InvalidAttributeError
from ecosim.math_utils import Vector2


class FoodKind(Enum):
    PLANT = "plant"
    MEAT = "meat"


@dataclass(frozen=True)
class FoodAttributes:
    food_kind: FoodKind
    nutrition: float

    def validate(self) -> None:
        if not isinstance(self.food_kind, FoodKind):
            raise InvalidAttributeError("food_kind", self.food_kind, "must be a FoodKind")
        if (
            not isinstance(self.nutrition, (int, float))
            or not math.isfinite(self.nutrition)
            or self.nutrition <= 0
        ):
            raise InvalidAttributeError("nutrition", self.nutrition, "must be finite and > 0")


class Food(Entity):
    """A food item. Meat loses nutrition over time; plants do not."""

    kind = EntityKind.FOOD

    def __init__(
        self,
        handle: EntityHandle,
        position: Vector2,
        attributes: FoodAttributes,
        born_tick: int = 0,
    ) -> None:
        super().__init__(handle, position, born_tick=born_tick)
        self.attributes = attributes
        self.nutrition = float(attributes.nutrition)

    @property
    def food_kind(self) -> FoodKind:
        return self.attributes.food_kind

    def spoil(self, amount: float) -> bool:
        """Lose ``amount`` nutrition. Returns True once nothing is left."""
        self.nutrition = max(0.0, self.nutrition - amount)
        return self.nutrition <= 0.0

    def snapshot_attributes(self) -> Dict[str, Any]:
        return {"food_kind": self.food_kind.value, "nutrition": self.nutrition}
