"""
Aggregate statistics over a finished label sequence.
"""
from dataclasses import dataclass
from typing import Dict, Sequence, Union

import numpy as np

NOISE = -1


@dataclass
class ClusterStats:
    """Statistics about clustering results."""

    num_clusters: int
    num_noise_points: int
    total_points: int
    cluster_sizes: Dict[int, int]
    avg_cluster_size: float
    largest_cluster_size: int
    smallest_cluster_size: int
    noise_fraction: float


def summarize_labels(labels: Union[Sequence[int], np.ndarray]) -> ClusterStats:
    """
    Derive cluster and noise counts from final labels.

    The cluster count is the largest label plus one, so an all-noise or empty
    sequence reports zero clusters.

    Args:
        labels: One label per point, -1 for noise

    Returns:
        ClusterStats for the sequence
    """
    labels = np.asarray(labels, dtype=np.int64)
    total_points = int(labels.shape[0])

    max_label = int(labels.max()) if total_points > 0 else NOISE
    num_clusters = max(max_label, NOISE) + 1
    num_noise = int(np.sum(labels == NOISE))

    counts = np.bincount(labels[labels >= 0], minlength=num_clusters)
    cluster_sizes: Dict[int, int] = {
        cluster_id: int(count) for cluster_id, count in enumerate(counts)
    }

    avg_cluster_size = float(np.mean(list(cluster_sizes.values()))) if cluster_sizes else 0.0
    largest_cluster = max(cluster_sizes.values()) if cluster_sizes else 0
    smallest_cluster = min(cluster_sizes.values()) if cluster_sizes else 0
    noise_fraction = num_noise / total_points if total_points > 0 else 0.0

    return ClusterStats(
        num_clusters=num_clusters,
        num_noise_points=num_noise,
        total_points=total_points,
        cluster_sizes=cluster_sizes,
        avg_cluster_size=avg_cluster_size,
        largest_cluster_size=largest_cluster,
        smallest_cluster_size=smallest_cluster,
        noise_fraction=noise_fraction,
    )
