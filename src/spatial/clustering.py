"""
Cluster summaries and quality diagnostics for a DBSCAN result.

This module provides:
1. Per-cluster info (size, members, centroid)
2. Run diagnostics (cluster/noise counts, sizes)
3. Silhouette-based quality assessment
4. Actionable suggestions for tuning epsilon/min_points
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from sklearn.metrics import silhouette_score

from src.ingest.models import FeatureCollection

from .dbscan import NOISE, ClusterAssignment, ClusterParams


@dataclass
class ClusterInfo:
    """Information about a single cluster."""

    cluster_id: int
    """Cluster ID (never NOISE)."""

    indices: List[int]
    """Feature indices belonging to this cluster."""

    centroid_lon: float
    """Longitude of cluster centroid."""

    centroid_lat: float
    """Latitude of cluster centroid."""

    size: int = 0
    """Number of points in cluster."""


@dataclass
class ClusteringDiagnostics:
    """Diagnostics for clustering quality assessment."""

    num_points: int
    """Total number of points clustered."""

    num_clusters: int
    """Number of clusters found (excluding noise)."""

    num_noise: int
    """Number of noise points."""

    cluster_sizes: List[int] = field(default_factory=list)
    """Size of each cluster, by cluster id."""

    silhouette_score: Optional[float] = None
    """Silhouette score (higher = better separation, range [-1, 1])."""

    suggestions: List[str] = field(default_factory=list)
    """Actionable suggestions for improving clustering."""

    params_used: Optional[ClusterParams] = None
    """Parameters the assignment was produced with."""


def summarize_clusters(
    collection: FeatureCollection,
    assignment: ClusterAssignment,
) -> List[ClusterInfo]:
    """
    Build one ``ClusterInfo`` per cluster, ordered by cluster id.

    Centroids are the plain mean of member coordinates.
    """
    coords = collection.coordinates()
    labels = assignment.to_array()

    clusters: List[ClusterInfo] = []
    for cid in assignment.cluster_ids:
        members = np.flatnonzero(labels == cid)
        centroid = coords[members].mean(axis=0)
        clusters.append(ClusterInfo(
            cluster_id=cid,
            indices=members.tolist(),
            centroid_lon=float(centroid[0]),
            centroid_lat=float(centroid[1]),
            size=len(members),
        ))
    return clusters


def _compute_cluster_quality(
    X: np.ndarray,
    labels: np.ndarray,
    num_clusters: int
) -> Optional[float]:
    """
    Compute silhouette score for cluster quality assessment.

    Returns None if quality cannot be computed (e.g., < 2 clusters).
    """
    if num_clusters < 2:
        return None

    # Only compute for non-noise points
    mask = labels != NOISE
    if mask.sum() <= num_clusters:
        return None

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return float(silhouette_score(X[mask], labels[mask]))


def diagnose(
    collection: FeatureCollection,
    assignment: ClusterAssignment,
    params: Optional[ClusterParams] = None,
) -> ClusteringDiagnostics:
    """
    Summarize a clustering run and suggest parameter changes.

    Args:
        collection: The clustered features
        assignment: Labels produced for ``collection``
        params: Parameters used (recorded in the diagnostics)
    """
    X = collection.coordinates()
    labels = assignment.to_array()
    num_points = len(labels)
    num_clusters = assignment.num_clusters
    num_noise = int((labels == NOISE).sum())
    cluster_sizes = [int((labels == cid).sum()) for cid in range(num_clusters)]

    silhouette = _compute_cluster_quality(X, labels, num_clusters)

    suggestions: List[str] = []
    if num_points and num_clusters == 0:
        suggestions.append(
            "No clusters found. Consider increasing epsilon or reducing min_points."
        )
    elif num_points and num_clusters == 1 and num_noise == 0 and num_points > 2:
        suggestions.append(
            "All points fell into a single cluster. Consider reducing epsilon."
        )

    if num_points and num_noise > num_points * 0.5:
        suggestions.append(
            f"High noise ratio ({num_noise}/{num_points} = {num_noise/num_points:.1%}). "
            "Consider increasing epsilon or reducing min_points."
        )

    if silhouette is not None and silhouette < 0.2:
        suggestions.append(
            f"Low silhouette score ({silhouette:.3f}). Clusters may be poorly separated."
        )

    return ClusteringDiagnostics(
        num_points=num_points,
        num_clusters=num_clusters,
        num_noise=num_noise,
        cluster_sizes=cluster_sizes,
        silhouette_score=silhouette,
        suggestions=suggestions,
        params_used=params,
    )
