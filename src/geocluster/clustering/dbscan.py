"""
DBSCAN clustering implementation for geographic points.
Grows clusters from core points through an explicit worklist.
"""
from collections import deque
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from geocluster.clustering.neighbors import INDEX_KINDS, NeighborIndex, build_neighbor_index
from geocluster.clustering.summary import ClusterStats, NOISE, summarize_labels
from geocluster.core.exceptions import ClusteringError
from geocluster.core.models import ClusterAssignment, ClusterParameters, Location, Point
from geocluster.utils.logger import logger

UNVISITED = -2

PointsLike = Union[np.ndarray, Sequence[Point], Sequence[Location], Sequence[Sequence[float]]]


def to_coordinates(points: PointsLike) -> np.ndarray:
    """
    Convert points, locations or raw pairs to an (N, 2) float array.

    Raises:
        ClusteringError: If a row is not a (lat, lon) pair or holds a
            non-finite coordinate
    """
    rows = []
    for i, p in enumerate(points):
        if isinstance(p, Location):
            rows.append(p.point.as_tuple())
        elif isinstance(p, Point):
            rows.append(p.as_tuple())
        else:
            row = tuple(np.ravel(p))
            if len(row) != 2:
                raise ClusteringError(
                    f"Point {i} has {len(row)} values, expected a (lat, lon) pair"
                )
            rows.append(row)
    if not rows:
        return np.empty((0, 2), dtype=float)

    coords = np.asarray(rows, dtype=float)
    bad = np.flatnonzero(~np.isfinite(coords).all(axis=1))
    if bad.size:
        raise ClusteringError(f"Point {int(bad[0])} has a non-finite coordinate")
    return coords


class DBSCANClusterer:
    """
    Density-based clustering of (latitude, longitude) points.

    A point whose epsilon-neighborhood (itself included) holds at least
    min_samples points is a core point. Clusters grow from core points through
    their neighborhoods; non-core points reached this way become border points
    of the cluster that reaches them first. Everything else is noise (-1).

    Points are visited in input order, which fixes both the cluster ids and
    the cluster that claims a border point shared by two clusters.
    """

    def __init__(
        self,
        epsilon_km: float = 1.0,
        min_samples: int = 5,
        index_kind: str = "grid",
    ):
        """
        Initialize DBSCAN clusterer.

        Args:
            epsilon_km: Neighborhood radius in kilometers, converted to
                degrees at 111.0 km per degree.

            min_samples: Neighborhood size, including the point itself,
                required for a core point. 1 makes every point a core point.

            index_kind: Neighbor index used for range queries ("grid" or
                "brute"). Both give identical labels.

        Raises:
            pydantic.ValidationError: If epsilon_km <= 0 or min_samples < 1
            ClusteringError: If index_kind is not "grid" or "brute"
        """
        self.params = ClusterParameters(epsilon_km=epsilon_km, min_samples=min_samples)
        if index_kind not in INDEX_KINDS:
            raise ClusteringError(
                f"Unknown neighbor index '{index_kind}'. Expected one of: {', '.join(INDEX_KINDS)}"
            )
        self.index_kind = index_kind

        self.labels: Optional[np.ndarray] = None
        self.coords: Optional[np.ndarray] = None
        self.core_sample_indices: Optional[np.ndarray] = None

        logger.info(
            "Initialized DBSCANClusterer",
            epsilon_km=epsilon_km,
            epsilon_degrees=self.params.epsilon_degrees,
            min_samples=min_samples,
            index_kind=index_kind,
        )

    @property
    def epsilon_km(self) -> float:
        return self.params.epsilon_km

    @property
    def min_samples(self) -> int:
        return self.params.min_samples

    def fit(self, points: PointsLike) -> np.ndarray:
        """
        Run DBSCAN and return one label per point.

        Args:
            points: Array of shape (n_points, 2), or a sequence of Point,
                Location or (lat, lon) pairs

        Returns:
            Read-only label array (-1 for noise, cluster ids from 0)

        Raises:
            ClusteringError: If a point is not a finite (lat, lon) pair
        """
        coords = to_coordinates(points)
        n_points = coords.shape[0]

        logger.info("Starting DBSCAN clustering", num_points=n_points)

        if n_points < 2:
            labels = np.full(n_points, NOISE, dtype=np.int64)
            core = np.empty(0, dtype=np.int64)
        else:
            radius = self.params.epsilon_degrees
            index = build_neighbor_index(coords, self.index_kind, cell_size=radius)
            labels, core = self._expand_clusters(index, radius)

        labels.setflags(write=False)
        self.labels = labels
        self.coords = coords
        self.core_sample_indices = core

        stats = summarize_labels(labels)
        logger.info(
            "DBSCAN clustering complete",
            num_clusters=stats.num_clusters,
            num_noise_points=stats.num_noise_points,
            num_core_points=int(core.shape[0]),
            total_points=n_points,
        )

        return labels

    def _expand_clusters(self, index: NeighborIndex, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        n_points = len(index)
        labels = np.full(n_points, UNVISITED, dtype=np.int64)
        is_core = np.zeros(n_points, dtype=bool)
        cluster_id = -1

        for i in range(n_points):
            if labels[i] != UNVISITED:
                continue

            neighbors = index.neighbors_of(i, radius)
            if len(neighbors) < self.min_samples:
                # May still be claimed later as a border point
                labels[i] = NOISE
                continue

            cluster_id += 1
            labels[i] = cluster_id
            size = 1
            is_core[i] = True
            queue = deque(sorted(neighbors - {i}))

            while queue:
                q = queue.popleft()
                state = labels[q]

                if state == UNVISITED:
                    q_neighbors = index.neighbors_of(q, radius)
                    if len(q_neighbors) >= self.min_samples:
                        is_core[q] = True
                        queue.extend(
                            n for n in sorted(q_neighbors) if labels[n] != cluster_id
                        )

                if state == UNVISITED or state == NOISE:
                    labels[q] = cluster_id
                    size += 1

            logger.debug(
                "Expanded cluster",
                cluster_id=cluster_id,
                size=size,
            )

        return labels, np.flatnonzero(is_core)

    def _require_fit(self) -> np.ndarray:
        if self.labels is None:
            raise ClusteringError("Clustering hasn't been fit yet")
        return self.labels

    def get_cluster_of(self, index: int) -> int:
        """
        Cluster id of a point, -1 for noise.

        Raises:
            ClusteringError: If not fit yet or index is out of range
        """
        labels = self._require_fit()
        if not 0 <= index < labels.shape[0]:
            raise ClusteringError(
                f"Point index {index} out of range for {labels.shape[0]} points"
            )
        return int(labels[index])

    def get_stats(self) -> ClusterStats:
        """
        Get clustering statistics.

        Raises:
            ClusteringError: If clustering hasn't been run yet
        """
        return summarize_labels(self._require_fit())

    def get_cluster_members(self, cluster_id: int) -> np.ndarray:
        """
        Get indices of points in a cluster.

        Args:
            cluster_id: Cluster ID (-1 for noise)

        Returns:
            Array of indices
        """
        labels = self._require_fit()
        return np.flatnonzero(labels == cluster_id)

    def get_cluster_center(self, cluster_id: int) -> np.ndarray:
        """
        Get the mean (latitude, longitude) of a cluster.

        Raises:
            ClusteringError: If cluster doesn't exist or is noise
        """
        if cluster_id == NOISE:
            raise ClusteringError("Cannot get center of noise cluster (-1)")

        self._require_fit()
        members = self.get_cluster_members(cluster_id)
        if len(members) == 0:
            raise ClusteringError(f"Cluster {cluster_id} has no members")

        return self.coords[members].mean(axis=0)

    def cluster_locations(
        self,
        locations: List[Location],
    ) -> Tuple[List[ClusterAssignment], ClusterStats]:
        """
        Cluster input records and return assignments with statistics.

        Args:
            locations: Records in input order

        Returns:
            Tuple of (one ClusterAssignment per location, ClusterStats)
        """
        labels = self.fit(locations)
        stats = self.get_stats()

        assignments = []
        for i, label in enumerate(labels):
            cluster_id = int(label)
            cluster_size = stats.cluster_sizes.get(cluster_id) if cluster_id != NOISE else None
            assignments.append(
                ClusterAssignment(index=i, cluster_id=cluster_id, cluster_size=cluster_size)
            )

        logger.info(
            "Created cluster assignments",
            num_assignments=len(assignments),
            num_clusters=stats.num_clusters,
            num_noise=stats.num_noise_points,
        )

        return assignments, stats
