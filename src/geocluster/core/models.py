"""
Pydantic models for type-safe data handling.
Defines the contract for geographic points, CSV records and cluster output.
"""
import math
from typing import Optional, Dict
from pydantic import BaseModel, Field, field_validator, ConfigDict

KM_PER_DEGREE = 111.0


class Point(BaseModel):
    """A (latitude, longitude) pair. Immutable once read."""

    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")

    model_config = ConfigDict(frozen=True)

    @field_validator("latitude", "longitude")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        if not math.isfinite(v):
            raise ValueError("Coordinate must be a finite number")
        return v

    def as_tuple(self) -> tuple:
        return (self.latitude, self.longitude)


class Location(BaseModel):
    """
    One input record: its coordinates plus every column of the source row.

    Attributes are kept as opaque strings keyed by header name and include the
    coordinate columns themselves, so the output reproduces the input row.
    """

    point: Point = Field(..., description="Parsed coordinates")
    attributes: Dict[str, str] = Field(
        default_factory=dict,
        description="All source columns keyed by header",
    )

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude


class ClusterParameters(BaseModel):
    """
    DBSCAN parameters.

    epsilon_km is converted to degrees with a flat 111.0 km per degree, which
    is only accurate near the equator.
    """

    epsilon_km: float = Field(1.0, gt=0.0, description="Neighborhood radius in kilometers")
    min_samples: int = Field(5, ge=1, description="Neighborhood size (self included) for a core point")

    model_config = ConfigDict(frozen=True)

    @property
    def epsilon_degrees(self) -> float:
        return self.epsilon_km / KM_PER_DEGREE


class ClusterAssignment(BaseModel):
    """
    Assignment of an input point to a cluster.
    """

    index: int = Field(..., ge=0, description="Position of the point in the input")
    cluster_id: int = Field(..., ge=-1, description="Cluster label (-1 for noise)")
    cluster_size: Optional[int] = Field(None, ge=1, description="Total points in cluster")

    model_config = ConfigDict(validate_assignment=True)

    @property
    def is_noise(self) -> bool:
        """Check if this point is classified as noise."""
        return self.cluster_id == -1
