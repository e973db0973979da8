"""Intent strategies for creatures.

An intent strategy turns what a creature perceived last tick into the
velocity it wants this tick. Strategies only read: they never touch the
entity store or other creatures, which is what lets the engine evaluate
them on worker threads. The movement system clamps the returned velocity
to the creature's speed before applying it.

Provided strategies:
- StationaryIntent: stand still
- TargetIntent: straight-line seek toward a fixed point
- WanderIntent: random walk toward targets in a cone ahead of the creature
- ForagingIntent: seek the nearest perceived food when hungry, else wander

Wandering uses eased arrival steering: desired speed follows a smoothstep
inside the slowing radius and dexterity caps the velocity change per tick.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Protocol, runtime_checkable

from ecosim.config.creatures import (
    ARRIVAL_RADIUS,
    SLOWING_RADIUS,
    WANDER_CONE_RADIANS,
    WANDER_MAX_DISTANCE,
    WANDER_MIN_DISTANCE,
)
from ecosim.entity_ids import EntityHandle
from ecosim.math_utils import Vector2, smoothstep

if TYPE_CHECKING:
    from ecosim.entities.creature import Creature
    from ecosim.entities.perception import Perception
    from ecosim.spatial.bounds import WorldBounds

logger = logging.getLogger(__name__)


@dataclass
class IntentContext:
    """Read-only view of the world handed to intent strategies.

    Attributes:
        tick: Tick being computed
        dt: Timestep
        bounds: World bounds, for wrap-aware displacement
        rng: Random stream owned by this evaluation; never shared across threads
        is_alive: Lookup telling whether a perceived handle still exists
    """

    tick: int
    dt: float
    bounds: "WorldBounds"
    rng: random.Random
    is_alive: Callable[[EntityHandle], bool]


@runtime_checkable
class IntentStrategy(Protocol):
    """Computes a creature's desired velocity for one tick."""

    def compute(
        self, creature: "Creature", perception: "Perception", context: IntentContext
    ) -> Vector2:
        ...


class StationaryIntent:
    """Creature stays where it is."""

    def compute(self, creature, perception, context) -> Vector2:
        return Vector2(0.0, 0.0)


class TargetIntent:
    """Head straight for a fixed point at full speed without overshooting."""

    def __init__(self, target: Vector2) -> None:
        self.target = target.copy()

    def compute(self, creature, perception, context) -> Vector2:
        to_target = context.bounds.displacement(creature.position, self.target)
        distance = to_target.length()
        if distance == 0.0:
            return Vector2(0.0, 0.0)
        step = min(creature.attributes.speed, distance / context.dt)
        return to_target * (step / distance)

    def __repr__(self) -> str:
        return f"TargetIntent({self.target.x}, {self.target.y})"


def steer_towards(
    creature: "Creature",
    to_target: Vector2,
    arrival_radius: float = ARRIVAL_RADIUS,
    slowing_radius: float = SLOWING_RADIUS,
) -> Optional[Vector2]:
    """Velocity after one steering step toward a target offset.

    Desired speed eases off with a smoothstep inside ``slowing_radius`` and
    the change in velocity per tick is limited by the creature's dexterity.

    Returns:
        The new velocity, or None once the target is within ``arrival_radius``
    """
    distance_sq = to_target.length_squared()
    if distance_sq < arrival_radius * arrival_radius:
        return None

    t = distance_sq / (slowing_radius * slowing_radius)
    desired_speed = creature.attributes.speed * smoothstep(t)
    desired = to_target.normalize() * desired_speed

    steering = (desired - creature.velocity).clamp_length(creature.attributes.dexterity)
    return (creature.velocity + steering).clamp_length(creature.attributes.speed)


class WanderIntent:
    """Random walk.

    Picks a point 10-80 units ahead inside a cone around the current
    facing, steers there, and picks a new one on arrival. The target is
    kept on the creature between ticks.
    """

    def __init__(
        self,
        min_distance: float = WANDER_MIN_DISTANCE,
        max_distance: float = WANDER_MAX_DISTANCE,
        cone: float = WANDER_CONE_RADIANS,
    ) -> None:
        self.min_distance = min_distance
        self.max_distance = max_distance
        self.cone = cone

    def pick_target(self, creature: "Creature", context: IntentContext) -> Vector2:
        rng = context.rng
        distance = rng.uniform(self.min_distance, self.max_distance)
        angle = creature.facing + rng.uniform(-self.cone, self.cone)
        return context.bounds.normalize(creature.position + Vector2.from_angle(angle, distance))

    def compute(self, creature, perception, context) -> Vector2:
        if creature.wander_target is None:
            creature.wander_target = self.pick_target(creature, context)

        to_target = context.bounds.displacement(creature.position, creature.wander_target)
        velocity = steer_towards(creature, to_target)
        if velocity is None:
            creature.wander_target = None
            return Vector2(0.0, 0.0)
        return velocity


class ForagingIntent:
    """Seek food when hungry, wander otherwise.

    Hunger means satiation at or below the creature's hunger threshold.
    The nearest perceived food that still exists is chosen and approached
    in a straight line; with none in range the creature keeps wandering.
    """

    def __init__(self, wander: Optional[WanderIntent] = None) -> None:
        self.wander = wander if wander is not None else WanderIntent()

    def compute(self, creature, perception, context) -> Vector2:
        if creature.is_hungry():
            for seen in perception.food:
                if not context.is_alive(seen.handle):
                    continue
                creature.wander_target = None
                return TargetIntent(seen.position).compute(creature, perception, context)
        return self.wander.compute(creature, perception, context)


def default_intent() -> IntentStrategy:
    return ForagingIntent()


def safe_compute(
    strategy: IntentStrategy,
    creature: "Creature",
    perception: "Perception",
    context: IntentContext,
) -> Vector2:
    """Run a strategy, falling back to standing still if it fails.

    A broken strategy for one creature is logged and never aborts the tick.
    """
    try:
        velocity = strategy.compute(creature, perception, context)
    except Exception:
        logger.exception("Intent strategy %r failed for creature %s", strategy, creature.handle)
        return Vector2(0.0, 0.0)
    if not isinstance(velocity, Vector2) or not velocity.is_finite():
        logger.warning(
            "Intent strategy %r returned invalid velocity %r for creature %s",
            strategy,
            velocity,
            creature.handle,
        )
        return Vector2(0.0, 0.0)
    return velocity
