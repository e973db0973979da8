"""Centralized math utilities for the simulation.

This module provides pure Python mathematical utilities for the simulation,
including a Vector2 implementation for 2D vector operations.
"""

from __future__ import annotations

import math
from typing import Iterator


class Vector2:
    """A 2D vector class for mathematical operations."""

    __slots__ = ("x", "y")

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self.x: float = float(x)
        self.y: float = float(y)

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2":
        return Vector2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> "Vector2":
        return Vector2(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> "Vector2":
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalize(self) -> "Vector2":
        length = math.sqrt(self.x * self.x + self.y * self.y)
        if length == 0:
            return Vector2(0, 0)
        return Vector2(self.x / length, self.y / length)

    def dot(self, other: "Vector2") -> float:
        return self.x * other.x + self.y * other.y

    def is_finite(self) -> bool:
        """True when neither component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def clamp_length(self, max_length: float) -> "Vector2":
        """Return a copy scaled down so its length is at most ``max_length``."""
        return self.copy().limit_inplace(max_length)

    def angle(self) -> float:
        """Heading of this vector in radians (atan2 convention)."""
        return math.atan2(self.y, self.x)

    def update(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def copy(self) -> "Vector2":
        """Return a copy of this vector."""
        return Vector2(self.x, self.y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    @classmethod
    def from_angle(cls, angle: float, length: float = 1.0) -> "Vector2":
        """Build a vector of ``length`` pointing along ``angle`` radians."""
        return cls(math.cos(angle) * length, math.sin(angle) * length)

    def __eq__(self, other: object) -> bool:
        """Check if two vectors are equal."""
        if other.__class__ is not Vector2:
            return False
        return abs(self.x - other.x) < 1e-9 and abs(self.y - other.y) < 1e-9

    def __ne__(self, other: object) -> bool:
        """Check if two vectors are not equal."""
        return not self.__eq__(other)

    def __repr__(self) -> str:
        return f"Vector2({self.x}, {self.y})"

    def limit_inplace(self, max_length: float) -> "Vector2":
        """Limit the length of this vector in-place."""
        length_sq = self.x * self.x + self.y * self.y
        if length_sq > max_length * max_length and length_sq > 0:
            length = math.sqrt(length_sq)
            self.x = (self.x / length) * max_length
            self.y = (self.y / length) * max_length
        return self


def smoothstep(t: float) -> float:
    """Hermite smoothstep of ``t`` clamped to [0, 1]."""
    t = max(0.0, min(1.0, t))
    return t * t * (3.0 - 2.0 * t)


def closest_point_parameter(start: Vector2, delta: Vector2, point: Vector2) -> float:
    """Parameter in [0, 1] of the point on segment ``start + s*delta`` closest to ``point``."""
    denom = delta.length_squared()
    if denom <= 0.0:
        return 0.0
    s = ((point.x - start.x) * delta.x + (point.y - start.y) * delta.y) / denom
    return max(0.0, min(1.0, s))


__all__ = ["Vector2", "smoothstep", "closest_point_parameter"]
