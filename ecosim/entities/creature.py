"""Creature entity and its heritable attributes."""

import dataclasses
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from ecosim.entities.base import Entity, EntityKind
from ecosim.entities.perception import Perception
from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import InvalidAttributeError
from ecosim.math_utils import Vector2

if TYPE_CHECKING:
    from ecosim.movement_strategy import IntentStrategy

# Numeric attributes passed from parents to offspring
HERITABLE_TRAITS: Tuple[str, ...] = (
    "speed",
    "strength",
    "sense_radius",
    "dexterity",
    "hunger_threshold",
    "metabolism",
)

# Attributes that must be strictly positive regardless of configured ranges
_POSITIVE_TRAITS = ("speed", "strength", "sense_radius", "max_satiation", "dexterity", "metabolism")


@dataclass(frozen=True)
class CreatureAttributes:
    """Fixed-at-birth creature attributes.

    Attributes:
        speed: Upper bound on velocity magnitude (units per unit time)
        strength: Reserved for competition resolution; carried and inherited
        sense_radius: Range of the perception query
        max_satiation: Upper bound of the satiation scale
        dexterity: Steering force limit; higher turns faster
        hunger_threshold: Satiation at or below which the creature seeks food
        metabolism: Multiplier on the base satiation decay
    """

    speed: float
    strength: float
    sense_radius: float
    max_satiation: float = 100.0
    dexterity: float = 1.0
    hunger_threshold: float = 50.0
    metabolism: float = 1.0

    def validate(self, trait_ranges: Optional[Mapping[str, Tuple[float, float]]] = None) -> None:
        """Check every attribute, raising on the first invalid one.

        Raises:
            InvalidAttributeError: For non-finite, non-positive or out-of-range values
        """
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidAttributeError(f.name, value, "must be a number")
            if not math.isfinite(value):
                raise InvalidAttributeError(f.name, value, "must be finite")

        for name in _POSITIVE_TRAITS:
            value = getattr(self, name)
            if value <= 0:
                raise InvalidAttributeError(name, value, "must be > 0")

        if not 0 <= self.hunger_threshold <= self.max_satiation:
            raise InvalidAttributeError(
                "hunger_threshold", self.hunger_threshold, f"must be in [0, {self.max_satiation}]"
            )

        if trait_ranges:
            for name in HERITABLE_TRAITS + ("max_satiation",):
                bounds = trait_ranges.get(name)
                if bounds is None:
                    continue
                value = getattr(self, name)
                lo, hi = bounds
                if not lo <= value <= hi:
                    raise InvalidAttributeError(name, value, f"outside range [{lo}, {hi}]")

    def traits(self) -> Dict[str, float]:
        """Heritable trait values by name."""
        return {name: getattr(self, name) for name in HERITABLE_TRAITS}

    def with_traits(self, **changes: float) -> "CreatureAttributes":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, float]:
        return dataclasses.asdict(self)


class Creature(Entity):
    """An autonomous agent that moves, senses, eats and reproduces.

    Satiation stays within ``[0, attributes.max_satiation]``; every change
    goes through ``feed`` or ``drain`` which enforce the bounds.
    """

    kind = EntityKind.CREATURE

    def __init__(
        self,
        handle: EntityHandle,
        position: Vector2,
        attributes: CreatureAttributes,
        satiation: Optional[float] = None,
        velocity: Optional[Vector2] = None,
        intent_strategy: Optional["IntentStrategy"] = None,
        parents: Tuple[EntityHandle, ...] = (),
        lineage_generation: int = 0,
        born_tick: int = 0,
    ) -> None:
        super().__init__(handle, position, born_tick=born_tick)
        self.attributes = attributes
        max_satiation = attributes.max_satiation
        if satiation is None:
            satiation = max_satiation
        if not math.isfinite(satiation) or not 0 <= satiation <= max_satiation:
            raise InvalidAttributeError("satiation", satiation, f"must be in [0, {max_satiation}]")
        self.satiation = float(satiation)
        self.velocity = velocity.copy() if velocity is not None else Vector2(0.0, 0.0)
        self.facing = self.velocity.angle() if self.velocity.length_squared() > 0 else 0.0
        self.intent_strategy = intent_strategy
        self.parents = parents
        self.lineage_generation = lineage_generation
        self.age = 0
        self.last_mated_tick: Optional[int] = None
        self.perception = Perception.empty()

        # Movement bookkeeping for swept feeding
        self.previous_position = position.copy()
        self.displacement = Vector2(0.0, 0.0)

        # Random-walk target kept between ticks by the wander intent
        self.wander_target: Optional[Vector2] = None

        # Meals taken this tick
        self.meals_this_tick = 0

    # ------------------------------------------------------------------
    # Satiation
    # ------------------------------------------------------------------

    @property
    def max_satiation(self) -> float:
        return self.attributes.max_satiation

    @property
    def satiation_fraction(self) -> float:
        return self.satiation / self.attributes.max_satiation

    def is_hungry(self) -> bool:
        return self.satiation <= self.attributes.hunger_threshold

    def is_starving(self) -> bool:
        return self.satiation <= 0.0

    def feed(self, nutrition: float) -> float:
        """Add nutrition, capped at max satiation.

        Returns:
            The satiation actually gained
        """
        before = self.satiation
        self.satiation = min(self.attributes.max_satiation, before + max(0.0, nutrition))
        return self.satiation - before

    def drain(self, amount: float) -> float:
        """Remove satiation, floored at zero. Returns the amount removed."""
        before = self.satiation
        self.satiation = max(0.0, before - max(0.0, amount))
        return before - self.satiation

    def can_mate(self, tick: int, cooldown: int) -> bool:
        if self.last_mated_tick is None:
            return True
        return tick - self.last_mated_tick >= cooldown

    def snapshot_attributes(self) -> Dict[str, Any]:
        attrs: Dict[str, Any] = self.attributes.to_dict()
        attrs["satiation"] = self.satiation
        attrs["velocity"] = self.velocity.as_tuple()
        attrs["facing"] = self.facing
        attrs["age"] = self.age
        attrs["generation"] = self.lineage_generation
        return attrs
