"""Spatial indexing for efficient proximity queries."""

import math
from collections import defaultdict
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from ecosim.entity_ids import EntityHandle
from ecosim.exceptions import ConfigurationError
from ecosim.math_utils import Vector2
from ecosim.spatial.bounds import WorldBounds

Cell = Tuple[int, int]


class Neighbor(NamedTuple):
    """A query hit: the handle, its indexed position and squared distance."""

    handle: EntityHandle
    position: Vector2
    distance_sq: float

    @property
    def distance(self) -> float:
        return math.sqrt(self.distance_sq)


class SpatialGrid:
    """
    Spatial partitioning grid for efficient proximity queries.

    Divides the world into a grid of cells. Each cell holds the
    ``(handle, position)`` entries located within its bounds, so a radius
    query only measures distances for entries in the few cells the query
    circle overlaps.

    The grid stores handles only. It owns no entity data and is never the
    source of truth for liveness: the engine rebuilds it from the entity
    store every tick, so every indexed handle refers to an entity that was
    alive at rebuild time.

    Scaling limit: the whole grid is rebuilt every tick (O(n)). With a
    cell size near the largest sense radius each query touches O(1) cells
    and returns O(1) neighbours on average; an incremental update of moved
    entries would only pay off for much larger populations.
    """

    def __init__(self, bounds: WorldBounds, cell_size: float = 60.0):
        """
        Initialize the spatial grid.

        Args:
            bounds: World bounds; also decides Euclidean vs toroidal distance
            cell_size: Requested cell edge length. The grid rounds it up so a
                whole number of equal cells tiles the world exactly.
        """
        if not (cell_size > 0) or not math.isfinite(cell_size):
            raise ConfigurationError(f"cell_size must be positive, got {cell_size}")

        self.bounds = bounds
        self.cols = max(1, int(bounds.width // cell_size))
        self.rows = max(1, int(bounds.height // cell_size))
        # Equal cells are required for wrap-around cell arithmetic
        self.cell_width = bounds.width / self.cols
        self.cell_height = bounds.height / self.rows
        self._min_cell_dim = min(self.cell_width, self.cell_height)

        # Grid storage: dict of (col, row) -> list of (handle, position)
        self.grid: Dict[Cell, List[Tuple[EntityHandle, Vector2]]] = defaultdict(list)

        # Handle to indexed position, for point lookups and membership
        self.positions: Dict[EntityHandle, Vector2] = {}

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _get_cell(self, x: float, y: float) -> Cell:
        """Get the grid cell coordinates for a position."""
        col = max(0, min(self.cols - 1, int(math.floor(x / self.cell_width))))
        row = max(0, min(self.rows - 1, int(math.floor(y / self.cell_height))))
        return (col, row)

    def add(self, handle: EntityHandle, position: Vector2) -> None:
        """Add one entry. Positions are copied so later moves do not leak in.

        On a periodic world the position is wrapped first, so an entry
        given outside the world lands in the cell its minimum image uses.
        """
        frozen = self.bounds.normalize(position) if self.bounds.periodic else position.copy()
        self.grid[self._get_cell(frozen.x, frozen.y)].append((handle, frozen))
        self.positions[handle] = frozen

    def discard(self, handle: EntityHandle) -> bool:
        """Drop one entry if present. Returns True if it was indexed."""
        position = self.positions.pop(handle, None)
        if position is None:
            return False
        cell = self._get_cell(position.x, position.y)
        entries = self.grid.get(cell)
        if entries:
            entries[:] = [entry for entry in entries if entry[0] != handle]
        return True

    def clear(self) -> None:
        """Clear all entries from the grid."""
        self.grid.clear()
        self.positions.clear()

    def rebuild(self, entries: Iterable[Tuple[EntityHandle, Vector2]]) -> None:
        """Rebuild the entire grid from scratch."""
        self.clear()
        for handle, position in entries:
            self.add(handle, position)

    def __len__(self) -> int:
        return len(self.positions)

    def __contains__(self, handle: object) -> bool:
        return handle in self.positions

    def position_of(self, handle: EntityHandle) -> Optional[Vector2]:
        """Indexed position of a handle, or None if it is not indexed."""
        return self.positions.get(handle)

    # ------------------------------------------------------------------
    # Cell ranges
    # ------------------------------------------------------------------

    def _axis_range(self, lo: float, hi: float, size: float, count: int) -> List[int]:
        """Cell indices overlapped by ``[lo, hi]`` along one axis."""
        if not (math.isfinite(lo) and math.isfinite(hi)):
            return list(range(count))
        first = int(math.floor(lo / size))
        last = int(math.floor(hi / size))
        if self.bounds.periodic:
            if last - first + 1 >= count:
                return list(range(count))
            return [i % count for i in range(first, last + 1)]
        first = max(0, first)
        last = min(count - 1, last)
        return list(range(first, last + 1))

    def get_cells_in_radius(self, x: float, y: float, radius: float) -> List[Cell]:
        """Get all grid cells that intersect the bounding box of a circle."""
        cols = self._axis_range(x - radius, x + radius, self.cell_width, self.cols)
        rows = self._axis_range(y - radius, y + radius, self.cell_height, self.rows)
        return [(col, row) for col in cols for row in rows]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def neighbors(self, center: Vector2, radius: float) -> List[Neighbor]:
        """
        Get every entry within ``radius`` of ``center``.

        Results are sorted by distance, ties broken by handle order, so the
        output is deterministic regardless of insertion order.
        """
        if radius < 0 or math.isnan(radius):
            return []

        cx = center.x
        cy = center.y
        radius_sq = radius * radius
        delta = self.bounds.delta
        grid = self.grid

        result: List[Neighbor] = []
        result_append = result.append
        for cell in self.get_cells_in_radius(cx, cy, radius):
            cell_entries = grid.get(cell)
            if not cell_entries:
                continue
            for handle, pos in cell_entries:
                dx, dy = delta(pos.x - cx, pos.y - cy)
                dist_sq = dx * dx + dy * dy
                if dist_sq <= radius_sq:
                    result_append(Neighbor(handle, pos, dist_sq))

        result.sort(key=lambda n: (n.distance_sq, n.handle))
        return result

    def query_radius(self, center: Vector2, radius: float) -> List[EntityHandle]:
        """All handles whose indexed position lies within ``radius`` of ``center``.

        Returned in ascending handle order.
        """
        return sorted(n.handle for n in self.neighbors(center, radius))

    def _ring(self, col: int, row: int, k: int) -> Iterator[Cell]:
        """Cells on the Chebyshev ring of radius ``k`` around a cell."""
        if k == 0:
            yield (col, row)
            return
        for dc in range(-k, k + 1):
            yield (col + dc, row - k)
            yield (col + dc, row + k)
        for dr in range(-k + 1, k):
            yield (col - k, row + dr)
            yield (col + k, row + dr)

    def _resolve_cell(self, col: int, row: int) -> Optional[Cell]:
        if self.bounds.periodic:
            return (col % self.cols, row % self.rows)
        if 0 <= col < self.cols and 0 <= row < self.rows:
            return (col, row)
        return None

    def nearest(
        self,
        center: Vector2,
        predicate: Optional[Callable[[EntityHandle], bool]] = None,
        max_radius: Optional[float] = None,
    ) -> Optional[EntityHandle]:
        """Find the closest indexed handle accepted by ``predicate``.

        Searches outward ring by ring and stops once no unvisited cell can
        hold anything closer. Equidistant candidates resolve to the lowest
        handle.

        Args:
            center: Query point
            predicate: Optional filter on handles
            max_radius: Optional search limit (inclusive)
        """
        if max_radius is not None and (max_radius < 0 or math.isnan(max_radius)):
            return None

        clamped = self.bounds.normalize(center) if center.is_finite() else center
        if not clamped.is_finite():
            return None
        start_col, start_row = self._get_cell(clamped.x, clamped.y)
        limit_sq = None if max_radius is None else max_radius * max_radius
        delta = self.bounds.delta

        best: Optional[Tuple[float, EntityHandle]] = None
        visited: set = set()
        max_ring = max(self.cols, self.rows)

        for k in range(max_ring + 1):
            for raw_col, raw_row in self._ring(start_col, start_row, k):
                cell = self._resolve_cell(raw_col, raw_row)
                if cell is None or cell in visited:
                    continue
                visited.add(cell)
                for handle, pos in self.grid.get(cell, ()):
                    dx, dy = delta(pos.x - center.x, pos.y - center.y)
                    dist_sq = dx * dx + dy * dy
                    if limit_sq is not None and dist_sq > limit_sq:
                        continue
                    candidate = (dist_sq, handle)
                    if best is not None and candidate >= best:
                        continue
                    if predicate is not None and not predicate(handle):
                        continue
                    best = candidate

            # Anything in an unvisited cell is at least k cells away
            frontier = k * self._min_cell_dim
            if best is not None and best[0] < frontier * frontier:
                break
            if max_radius is not None and frontier > max_radius:
                break

        return best[1] if best is not None else None

    def entries(self) -> Iterator[Tuple[EntityHandle, Vector2]]:
        """Iterate every indexed entry in ascending handle order."""
        for handle in sorted(self.positions):
            yield handle, self.positions[handle]

    def __repr__(self) -> str:
        return (
            f"SpatialGrid({self.cols}x{self.rows} cells of "
            f"{self.cell_width:.1f}x{self.cell_height:.1f}, {len(self)} entries)"
        )
