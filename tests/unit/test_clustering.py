"""
Unit tests for DBSCAN clustering.
"""
import pytest
import numpy as np
from pydantic import ValidationError

from geocluster.clustering.dbscan import DBSCANClusterer
from geocluster.clustering.distance import euclidean_distance, km_to_degrees
from geocluster.clustering.summary import ClusterStats
from geocluster.core.exceptions import ClusteringError
from geocluster.core.models import Location, Point


@pytest.fixture
def sample_points():
    """Three dense blobs about 50 km apart plus scattered noise."""
    rng = np.random.default_rng(42)
    centers = [(10.0, 10.0), (10.5, 10.5), (11.0, 10.0)]

    points = []
    for lat, lon in centers:
        # ~0.1 km spread around each center
        blob = rng.normal(0.0, 0.001, size=(15, 2)) + (lat, lon)
        points.extend(blob.tolist())

    noise = rng.uniform(12.0, 20.0, size=(5, 2))
    points.extend(noise.tolist())
    return np.array(points)


@pytest.fixture
def shared_border_points():
    """
    Two 4-point groups along the equator with a single point between them.

    With epsilon 1 km (~0.009 degrees) and min_samples 4 the middle point is
    within reach of one core point from each group but is not a core point.
    """
    left = [(0.0, 0.000), (0.0, 0.001), (0.0, 0.002), (0.0, 0.003)]
    border = [(0.0, 0.0115)]
    right = [(0.0, 0.020), (0.0, 0.021), (0.0, 0.022), (0.0, 0.023)]
    return left, border, right


def assert_contiguous(labels):
    cluster_ids = {int(l) for l in labels if l != -1}
    assert cluster_ids == set(range(len(cluster_ids)))


class TestDBSCANClusterer:
    """Tests for DBSCANClusterer class."""

    def test_initialization(self):
        """Test clusterer initializes correctly."""
        clusterer = DBSCANClusterer()

        assert clusterer.epsilon_km == 1.0
        assert clusterer.min_samples == 5
        assert clusterer.index_kind == "grid"
        assert clusterer.labels is None
        assert clusterer.coords is None

    def test_custom_parameters(self):
        """Test initialization with custom parameters."""
        clusterer = DBSCANClusterer(epsilon_km=2.5, min_samples=3, index_kind="brute")

        assert clusterer.epsilon_km == 2.5
        assert clusterer.min_samples == 3
        assert clusterer.index_kind == "brute"
        assert clusterer.params.epsilon_degrees == pytest.approx(2.5 / 111.0)

    @pytest.mark.parametrize("epsilon_km,min_samples", [(0.0, 5), (-1.0, 5), (1.0, 0)])
    def test_invalid_parameters_rejected(self, epsilon_km, min_samples):
        """Test that non-positive epsilon and min_samples below 1 are rejected."""
        with pytest.raises(ValidationError):
            DBSCANClusterer(epsilon_km=epsilon_km, min_samples=min_samples)

    def test_scenario_chain_forms_one_cluster(self):
        """Three points 0.001 degrees apart join one cluster."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        labels = clusterer.fit([(0.0, 0.0), (0.0, 0.001), (0.0, 0.002)])

        assert labels.tolist() == [0, 0, 0]
        assert clusterer.get_stats().num_noise_points == 0

    def test_scenario_distant_points_are_noise(self):
        """Two far-apart points are both noise."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        labels = clusterer.fit([(0.0, 0.0), (50.0, 50.0)])

        assert labels.tolist() == [-1, -1]

    def test_min_samples_one_makes_every_point_core(self, sample_points):
        """With min_samples 1 there is no noise and ids stay contiguous."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=1)

        labels = clusterer.fit(sample_points)

        assert np.all(labels >= 0)
        assert_contiguous(labels)
        assert len(clusterer.core_sample_indices) == len(sample_points)

    @pytest.mark.parametrize("points", [[], [(45.0, 7.0)]])
    def test_fewer_than_two_points_are_noise(self, points):
        """Empty and single-point inputs yield only noise labels."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=1)

        labels = clusterer.fit(points)

        assert len(labels) == len(points)
        assert all(l == -1 for l in labels)

    def test_fit_detects_blobs(self, sample_points):
        """Test that the three blobs become three clusters and scatter is noise."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=5)

        labels = clusterer.fit(sample_points)

        assert labels[:15].tolist() == [0] * 15
        assert labels[15:30].tolist() == [1] * 15
        assert labels[30:45].tolist() == [2] * 15
        assert labels[45:].tolist() == [-1] * 5

    def test_every_point_labeled(self, sample_points):
        """Test one terminal label per point."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=3)

        labels = clusterer.fit(sample_points)

        assert len(labels) == len(sample_points)
        assert np.all(labels >= -1)
        assert_contiguous(labels)

    def test_labels_are_read_only(self, sample_points):
        """Test that returned labels cannot be mutated."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=3)
        labels = clusterer.fit(sample_points)

        with pytest.raises(ValueError):
            labels[0] = 99

    def test_refit_is_deterministic(self, sample_points):
        """Test that repeated runs give identical labels."""
        first = DBSCANClusterer(epsilon_km=1.0, min_samples=3).fit(sample_points)
        second = DBSCANClusterer(epsilon_km=1.0, min_samples=3).fit(sample_points)

        assert np.array_equal(first, second)

    def test_clustered_points_are_reachable_from_core(self, sample_points):
        """Every clustered point is a core point or within epsilon of one in its cluster."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=4)
        labels = clusterer.fit(sample_points)
        radius = km_to_degrees(1.0)
        core = set(clusterer.core_sample_indices.tolist())

        for i, label in enumerate(labels):
            if label == -1:
                assert i not in core
                continue
            if i in core:
                continue
            assert any(
                labels[c] == label and euclidean_distance(sample_points[i], sample_points[c]) <= radius
                for c in core
            )

    def test_noise_never_decreases_with_min_samples(self, sample_points):
        """Test monotonicity of noise count in min_samples."""
        noise_counts = []
        for min_samples in range(1, 20):
            clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=min_samples)
            clusterer.fit(sample_points)
            noise_counts.append(clusterer.get_stats().num_noise_points)

        assert noise_counts == sorted(noise_counts)
        assert noise_counts[-1] == len(sample_points)

    def test_tiny_epsilon_makes_everything_noise(self, sample_points):
        """Test that a radius below every pairwise distance leaves only noise."""
        clusterer = DBSCANClusterer(epsilon_km=1e-9, min_samples=2)

        labels = clusterer.fit(sample_points)

        assert np.all(labels == -1)

    def test_tiny_epsilon_with_min_samples_one(self, sample_points):
        """Test that every point is its own cluster in input order."""
        clusterer = DBSCANClusterer(epsilon_km=1e-9, min_samples=1)

        labels = clusterer.fit(sample_points)

        assert labels.tolist() == list(range(len(sample_points)))

    def test_border_point_joins_first_cluster(self, shared_border_points):
        """Test that a border point goes to the first cluster that reaches it."""
        left, border, right = shared_border_points
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=4)

        labels = clusterer.fit(border + left + right)

        assert labels.tolist() == [0, 0, 0, 0, 0, 1, 1, 1, 1]

    def test_border_point_follows_input_order(self, shared_border_points):
        """Test that swapping group order swaps the claiming cluster."""
        left, border, right = shared_border_points
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=4)

        labels = clusterer.fit(right + border + left)

        assert labels.tolist() == [0, 0, 0, 0, 0, 1, 1, 1, 1]
        assert 4 not in clusterer.core_sample_indices

    def test_noise_promoted_to_border(self):
        """Test that a point first marked noise is later claimed by a cluster."""
        # Index 0 has only one neighbor; the group after it reaches it.
        points = [(0.0, 0.0), (0.0, 0.008), (0.0, 0.010), (0.0, 0.012)]
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=3)

        labels = clusterer.fit(points)

        assert labels.tolist() == [0, 0, 0, 0]
        assert 0 not in clusterer.core_sample_indices

    def test_grid_and_brute_force_agree(self, sample_points):
        """Test that both neighbor indexes give the same labels."""
        for min_samples in (1, 3, 5, 10):
            grid = DBSCANClusterer(epsilon_km=5.0, min_samples=min_samples, index_kind="grid")
            brute = DBSCANClusterer(epsilon_km=5.0, min_samples=min_samples, index_kind="brute")

            assert np.array_equal(grid.fit(sample_points), brute.fit(sample_points))

    @pytest.mark.parametrize("seed", range(10))
    def test_grid_and_brute_force_agree_on_random_layouts(self, seed):
        """Test index agreement with negative coordinates and points on cell edges."""
        rng = np.random.default_rng(seed)
        epsilon_km = float(rng.uniform(0.5, 3.0))
        radius = km_to_degrees(epsilon_km)

        scattered = rng.uniform(-0.1, 0.1, size=(150, 2)) + rng.uniform(-60.0, 60.0, size=2)
        # Grid cells have side radius, so integer multiples sit on cell edges
        steps = rng.integers(-20, 20, size=(60, 2))
        on_edges = steps * radius + np.floor(scattered[0] / radius) * radius
        points = np.vstack([scattered, on_edges])
        rng.shuffle(points)

        for min_samples in (1, 2, 4, 8):
            grid = DBSCANClusterer(epsilon_km=epsilon_km, min_samples=min_samples, index_kind="grid")
            brute = DBSCANClusterer(epsilon_km=epsilon_km, min_samples=min_samples, index_kind="brute")

            assert np.array_equal(grid.fit(points), brute.fit(points))

    def test_unknown_index_kind(self):
        """Test error on an unsupported neighbor index, before any data is seen."""
        with pytest.raises(ClusteringError):
            DBSCANClusterer(index_kind="kdtree")

    def test_rejects_rows_that_are_not_pairs(self):
        """Test that triples are not reshaped into extra points."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        with pytest.raises(ClusteringError):
            clusterer.fit([(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)])

        with pytest.raises(ClusteringError):
            clusterer.fit(np.zeros((2, 3)))

        assert clusterer.labels is None

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_rejects_non_finite_raw_coordinates(self, value):
        """Test that raw pairs get the same finiteness rule as Point."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        with pytest.raises(ClusteringError):
            clusterer.fit([(0.0, 0.0), (value, 1.0)])

        with pytest.raises(ClusteringError):
            clusterer.fit(np.array([[0.0, 0.0], [1.0, value]]))

    def test_many_singleton_clusters(self):
        """Test sizes when every point is its own cluster."""
        points = np.column_stack([np.arange(2000) * 1.0, np.zeros(2000)])
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=1)

        labels = clusterer.fit(points)
        stats = clusterer.get_stats()

        assert labels.tolist() == list(range(2000))
        assert stats.num_clusters == 2000
        assert stats.cluster_sizes == {i: 1 for i in range(2000)}
        assert stats.largest_cluster_size == stats.smallest_cluster_size == 1

    def test_accepts_points_and_locations(self):
        """Test that Point and Location inputs give the same labels as raw pairs."""
        pairs = [(0.0, 0.0), (0.0, 0.001), (0.0, 0.002), (5.0, 5.0)]
        points = [Point(latitude=lat, longitude=lon) for lat, lon in pairs]
        locations = [Location(point=p) for p in points]
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        expected = clusterer.fit(pairs).tolist()

        assert clusterer.fit(points).tolist() == expected
        assert clusterer.fit(locations).tolist() == expected

    def test_get_cluster_of(self):
        """Test per-index label lookup."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)
        clusterer.fit([(0.0, 0.0), (0.0, 0.001), (30.0, 30.0)])

        assert clusterer.get_cluster_of(0) == 0
        assert clusterer.get_cluster_of(1) == 0
        assert clusterer.get_cluster_of(2) == -1

        with pytest.raises(ClusteringError):
            clusterer.get_cluster_of(3)

    def test_get_stats(self, sample_points):
        """Test statistics retrieval."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=5)
        clusterer.fit(sample_points)

        stats = clusterer.get_stats()

        assert isinstance(stats, ClusterStats)
        assert stats.num_clusters == 3
        assert stats.num_noise_points == 5
        assert stats.total_points == len(sample_points)
        assert stats.cluster_sizes == {0: 15, 1: 15, 2: 15}

    def test_get_cluster_members(self, sample_points):
        """Test retrieving members of a cluster."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=5)
        clusterer.fit(sample_points)

        members = clusterer.get_cluster_members(1)

        assert members.tolist() == list(range(15, 30))

    def test_get_cluster_center(self, sample_points):
        """Test retrieving cluster center."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=5)
        clusterer.fit(sample_points)

        center = clusterer.get_cluster_center(0)

        assert center == pytest.approx([10.0, 10.0], abs=0.01)

    def test_get_cluster_center_noise_raises_error(self, sample_points):
        """Test that getting center of noise cluster raises error."""
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=5)
        clusterer.fit(sample_points)

        with pytest.raises(ClusteringError):
            clusterer.get_cluster_center(-1)

        with pytest.raises(ClusteringError):
            clusterer.get_cluster_center(42)

    def test_error_on_accessors_before_fit(self):
        """Test error when reading results before fitting."""
        clusterer = DBSCANClusterer()

        with pytest.raises(ClusteringError):
            clusterer.get_stats()

        with pytest.raises(ClusteringError):
            clusterer.get_cluster_of(0)

    def test_cluster_locations(self):
        """Test clustering records end-to-end."""
        pairs = [(0.0, 0.0), (0.0, 0.001), (0.0, 0.002), (5.0, 5.0)]
        locations = [
            Location(point=Point(latitude=lat, longitude=lon), attributes={"id": str(i)})
            for i, (lat, lon) in enumerate(pairs)
        ]
        clusterer = DBSCANClusterer(epsilon_km=1.0, min_samples=2)

        assignments, stats = clusterer.cluster_locations(locations)

        assert [a.index for a in assignments] == [0, 1, 2, 3]
        assert [a.cluster_id for a in assignments] == [0, 0, 0, -1]
        assert [a.cluster_size for a in assignments] == [3, 3, 3, None]
        assert assignments[3].is_noise
        assert stats.num_clusters == 1
        assert stats.num_noise_points == 1
