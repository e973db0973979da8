"""World boundary management and wrap-aware geometry."""

import math
import random
from enum import Enum
from typing import Any, Dict, Tuple

from ecosim.exceptions import ConfigurationError
from ecosim.math_utils import Vector2


class BoundaryPolicy(Enum):
    """How positions behave at the world edges."""

    CLAMP = "clamp"  # stop at the edge, zero the velocity on that axis
    PERIODIC = "periodic"  # wrap around (toroidal world)


class WorldBounds:
    """
    Manages the geometry and boundary behavior of the world.

    Under ``CLAMP`` the valid region is the closed rectangle
    ``[0, width] x [0, height]`` and distances are Euclidean. Under
    ``PERIODIC`` it is the half-open ``[0, width) x [0, height)`` and all
    distances use the minimum image (toroidal distance).
    """

    def __init__(
        self,
        width: float,
        height: float,
        policy: BoundaryPolicy = BoundaryPolicy.CLAMP,
    ):
        """
        Initialize the world bounds.

        Args:
            width: Width of the world in simulation units
            height: Height of the world in simulation units
            policy: Boundary policy applied to moving entities
        """
        if not (width > 0 and height > 0) or not (math.isfinite(width) and math.isfinite(height)):
            raise ConfigurationError(f"World size must be positive and finite, got {width}x{height}")
        self.width = float(width)
        self.height = float(height)
        self.policy = policy

    @property
    def periodic(self) -> bool:
        return self.policy is BoundaryPolicy.PERIODIC

    def is_valid_position(self, x: float, y: float) -> bool:
        """Check if a position lies inside the world under the active policy."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return False
        if self.periodic:
            return 0 <= x < self.width and 0 <= y < self.height
        return 0 <= x <= self.width and 0 <= y <= self.height

    # ------------------------------------------------------------------
    # Boundary application
    # ------------------------------------------------------------------

    def apply(self, position: Vector2, velocity: Vector2) -> bool:
        """Bring ``position`` back inside the world, in place.

        Returns:
            True if the position was changed by the boundary
        """
        if self.periodic:
            x, y = self._wrap(position.x, position.y)
            changed = x != position.x or y != position.y
            position.update(x, y)
            return changed

        changed = False
        if position.x < 0.0 or position.x > self.width:
            position.x = min(max(position.x, 0.0), self.width)
            velocity.x = 0.0
            changed = True
        if position.y < 0.0 or position.y > self.height:
            position.y = min(max(position.y, 0.0), self.height)
            velocity.y = 0.0
            changed = True
        return changed

    def normalize(self, position: Vector2) -> Vector2:
        """Return a copy of ``position`` moved inside the world."""
        if self.periodic:
            return Vector2(*self._wrap(position.x, position.y))
        return Vector2(
            min(max(position.x, 0.0), self.width),
            min(max(position.y, 0.0), self.height),
        )

    def _wrap(self, x: float, y: float) -> Tuple[float, float]:
        x = x % self.width
        y = y % self.height
        # A tiny negative value can round up to exactly width
        if x >= self.width:
            x = 0.0
        if y >= self.height:
            y = 0.0
        return x, y

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    def delta(self, dx: float, dy: float) -> Tuple[float, float]:
        """Reduce a raw coordinate difference to its minimum image."""
        if self.periodic:
            w = self.width
            h = self.height
            dx = dx - w * round(dx / w)
            dy = dy - h * round(dy / h)
        return dx, dy

    def displacement(self, origin: Vector2, target: Vector2) -> Vector2:
        """Shortest vector from ``origin`` to ``target``."""
        dx, dy = self.delta(target.x - origin.x, target.y - origin.y)
        return Vector2(dx, dy)

    def distance_sq(self, a: Vector2, b: Vector2) -> float:
        dx, dy = self.delta(b.x - a.x, b.y - a.y)
        return dx * dx + dy * dy

    def distance(self, a: Vector2, b: Vector2) -> float:
        return math.sqrt(self.distance_sq(a, b))

    def midpoint(self, a: Vector2, b: Vector2) -> Vector2:
        """Midpoint of the shortest segment between ``a`` and ``b``."""
        half = self.displacement(a, b) * 0.5
        return self.normalize(a + half)

    def random_position(self, rng: random.Random) -> Vector2:
        """Uniform random position inside the world."""
        x = rng.uniform(0.0, self.width)
        y = rng.uniform(0.0, self.height)
        return self.normalize(Vector2(x, y))

    def to_dict(self) -> Dict[str, Any]:
        """Bounds metadata exposed to renderers."""
        return {
            "width": self.width,
            "height": self.height,
            "boundary_policy": self.policy.value,
        }

    def __repr__(self) -> str:
        return f"WorldBounds({self.width}x{self.height}, {self.policy.value})"
