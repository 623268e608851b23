"""
Planar distance between (latitude, longitude) pairs.

Coordinates are treated as Euclidean plane coordinates in degrees; kilometers
are mapped to degrees with a single equatorial scale factor.
"""
from typing import Sequence, Union

import numpy as np

from geocluster.core.models import Point, KM_PER_DEGREE

PointLike = Union[Point, Sequence[float], np.ndarray]


def km_to_degrees(km: float) -> float:
    """Convert a distance in kilometers to approximate degrees."""
    return km / KM_PER_DEGREE


def as_coordinates(point: PointLike) -> np.ndarray:
    """Return a point as a length-2 float array."""
    if isinstance(point, Point):
        return np.array(point.as_tuple(), dtype=float)
    return np.asarray(point, dtype=float).reshape(2)


def euclidean_distance(a: PointLike, b: PointLike) -> float:
    """Euclidean distance on the raw (lat, lon) pair, in degrees."""
    diff = as_coordinates(a) - as_coordinates(b)
    return float(np.sqrt(np.sum(diff ** 2)))


def distances_from(coords: np.ndarray, center: PointLike) -> np.ndarray:
    """
    Distances from every row of an (N, 2) array to a center point.

    Uses the same arithmetic as euclidean_distance, so thresholding either
    result gives identical membership.
    """
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    diff = coords - as_coordinates(center)
    return np.sqrt(np.sum(diff ** 2, axis=1))
