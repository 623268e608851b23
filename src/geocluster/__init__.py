"""
GeoCluster - Density-based clustering of geographic points.

This package groups latitude/longitude records into DBSCAN clusters,
separates sparse noise points, and annotates each CSV record with its cluster.
"""

__version__ = "0.1.0"

from geocluster.config import settings

__all__ = [
    "settings",
    "__version__",
]
