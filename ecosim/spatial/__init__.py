"""Spatial indexing and world geometry."""

from ecosim.spatial.bounds import BoundaryPolicy, WorldBounds
from ecosim.spatial.grid import Neighbor, SpatialGrid

__all__ = [
    "BoundaryPolicy",
    "Neighbor",
    "SpatialGrid",
    "WorldBounds",
]
