"""
src/spatial: Distance metrics, neighbour search and DBSCAN clustering.

This module provides a deterministic DBSCAN with a pluggable distance metric,
plus per-cluster summaries and run diagnostics.
"""

from .clustering import (
    ClusteringDiagnostics,
    ClusterInfo,
    diagnose,
    summarize_clusters,
)
from .dbscan import (
    NOISE,
    ClusterAssignment,
    ClusterParams,
    cluster,
)
from .distance import (
    EUCLIDEAN,
    HAVERSINE,
    DistanceMetric,
    as_metric,
    get_metric,
)

__all__ = [
    "NOISE",
    "ClusterAssignment",
    "ClusterParams",
    "cluster",
    "EUCLIDEAN",
    "HAVERSINE",
    "DistanceMetric",
    "as_metric",
    "get_metric",
    "ClusteringDiagnostics",
    "ClusterInfo",
    "diagnose",
    "summarize_clusters",
]
