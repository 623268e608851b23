"""
Clustering module for geographic points using DBSCAN.
Provides density-based clustering with explicit noise classification.
"""

from geocluster.clustering.dbscan import DBSCANClusterer
from geocluster.clustering.summary import ClusterStats, summarize_labels

__all__ = ["DBSCANClusterer", "ClusterStats", "summarize_labels"]
