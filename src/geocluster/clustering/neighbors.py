"""
Range queries over a fixed set of 2D points.

Two interchangeable indexes answer "which points lie within radius of P":
a brute-force scan and a uniform grid keyed by cell coordinates. Both filter
candidates with the same distance test, so their result sets are identical.
"""
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Set, Tuple

import numpy as np

from geocluster.clustering.distance import PointLike, as_coordinates, distances_from
from geocluster.core.exceptions import ClusteringError
from geocluster.utils.logger import logger


def range_query(points: np.ndarray, center: PointLike, radius: float) -> Set[int]:
    """
    Indices of all points within radius of center (inclusive).

    Args:
        points: Array of shape (n_points, 2)
        center: Query point
        radius: Search radius in coordinate units (degrees)

    Returns:
        Set of point indices, including the center's own index if present
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    if points.shape[0] == 0:
        return set()
    mask = distances_from(points, center) <= radius
    return {int(i) for i in np.flatnonzero(mask)}


class NeighborIndex(ABC):
    """Read-only spatial index over an (N, 2) coordinate array."""

    def __init__(self, coords: np.ndarray):
        self.coords = np.asarray(coords, dtype=float).reshape(-1, 2)

    def __len__(self) -> int:
        return self.coords.shape[0]

    @abstractmethod
    def range_query(self, center: PointLike, radius: float) -> Set[int]:
        """Return indices of all points within radius of center."""

    def neighbors_of(self, index: int, radius: float) -> Set[int]:
        """Neighborhood of an indexed point, the point itself included."""
        return self.range_query(self.coords[index], radius)


class BruteForceNeighborIndex(NeighborIndex):
    """O(N) scan per query."""

    def range_query(self, center: PointLike, radius: float) -> Set[int]:
        return range_query(self.coords, center, radius)


class GridNeighborIndex(NeighborIndex):
    """
    Uniform grid bucketing points into square cells.

    A query only inspects the cells overlapping the square that bounds the
    search circle. With cell_size equal to the clustering radius that is the
    3x3 block around the center (plus one ring, see below).
    """

    def __init__(self, coords: np.ndarray, cell_size: float):
        super().__init__(coords)
        if cell_size <= 0:
            raise ClusteringError(f"Grid cell size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self.cells: Dict[Tuple[int, int], List[int]] = defaultdict(list)

        keys = np.floor(self.coords / cell_size).astype(np.int64)
        for i, (row, col) in enumerate(keys):
            self.cells[(int(row), int(col))].append(i)

        logger.debug(
            "Built grid neighbor index",
            num_points=len(self),
            num_cells=len(self.cells),
            cell_size=cell_size,
        )

    def _cell_of(self, center: np.ndarray) -> Tuple[int, int]:
        row, col = np.floor(center / self.cell_size).astype(np.int64)
        return int(row), int(col)

    def range_query(self, center: PointLike, radius: float) -> Set[int]:
        if len(self) == 0:
            return set()

        center = as_coordinates(center)
        row, col = self._cell_of(center)
        # One extra ring absorbs rounding in the floor division.
        span = int(math.ceil(radius / self.cell_size)) + 1

        candidates: List[int] = []
        for r in range(row - span, row + span + 1):
            for c in range(col - span, col + span + 1):
                bucket = self.cells.get((r, c))
                if bucket:
                    candidates.extend(bucket)

        if not candidates:
            return set()

        candidates_arr = np.array(candidates, dtype=np.int64)
        mask = distances_from(self.coords[candidates_arr], center) <= radius
        return {int(i) for i in candidates_arr[mask]}


INDEX_KINDS = ("grid", "brute")


def build_neighbor_index(coords: np.ndarray, kind: str, cell_size: float) -> NeighborIndex:
    """
    Create a neighbor index of the requested kind.

    Raises:
        ClusteringError: If kind is not one of INDEX_KINDS
    """
    if kind == "brute":
        return BruteForceNeighborIndex(coords)
    if kind == "grid":
        return GridNeighborIndex(coords, cell_size)
    raise ClusteringError(
        f"Unknown neighbor index '{kind}'. Expected one of: {', '.join(INDEX_KINDS)}"
    )
