"""
Epsilon-neighbourhood queries over a fixed point set.

Both index types return the same answer: every index whose distance to the
query point is ``<= epsilon``, the query point itself included, in ascending
index order. Only their cost differs.
"""

from __future__ import annotations

from typing import Union

import numpy as np
from sklearn.neighbors import BallTree, KDTree

from .distance import EARTH_RADIUS_KM, DistanceMetric


# Above this many points the "auto" strategy switches to a tree index
TREE_INDEX_THRESHOLD = 2000

STRATEGIES = ("auto", "brute", "tree")


class BruteForceNeighbors:
    """O(n) vectorised distance scan per query."""

    def __init__(self, coords: np.ndarray, metric: DistanceMetric, epsilon: float):
        self._coords = coords
        self._metric = metric
        self._epsilon = epsilon

    def query(self, index: int) -> np.ndarray:
        mask = self._metric(self._coords[index], self._coords) <= self._epsilon
        mask[index] = True
        return np.flatnonzero(mask)


class TreeNeighbors:
    """scikit-learn KD/Ball tree radius queries."""

    def __init__(self, coords: np.ndarray, metric: DistanceMetric, epsilon: float):
        if metric.tree_metric == "euclidean":
            self._points = coords
            self._tree = KDTree(coords, metric="euclidean")
            self._radius = epsilon
        elif metric.tree_metric == "haversine":
            # BallTree expects [lat, lon] in radians and returns radians
            self._points = np.radians(coords[:, ::-1])
            self._tree = BallTree(self._points, metric="haversine")
            self._radius = epsilon / EARTH_RADIUS_KM
        else:
            raise ValueError(f"Metric '{metric.name}' has no tree index counterpart")

    def query(self, index: int) -> np.ndarray:
        found = self._tree.query_radius(self._points[index : index + 1], r=self._radius)[0]
        return np.union1d(found, [index]).astype(int)


NeighborIndex = Union[BruteForceNeighbors, TreeNeighbors]


def build_neighbor_index(
    coords: np.ndarray,
    metric: DistanceMetric,
    epsilon: float,
    strategy: str = "auto",
) -> NeighborIndex:
    """
    Pick a neighbourhood index for ``coords``.

    Args:
        coords: ``(n, 2)`` array of ``[lon, lat]`` rows
        metric: Distance metric
        epsilon: Neighbourhood radius in the metric's units
        strategy: ``"brute"``, ``"tree"`` or ``"auto"`` (tree for large inputs
            when the metric supports it)

    Raises:
        ValueError: For an unknown strategy, or ``"tree"`` with a metric that
            has no tree counterpart
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown neighbour strategy '{strategy}'. Use one of {STRATEGIES}")

    use_tree = strategy == "tree" or (
        strategy == "auto"
        and metric.tree_metric is not None
        and len(coords) > TREE_INDEX_THRESHOLD
    )
    if use_tree:
        return TreeNeighbors(coords, metric, epsilon)
    return BruteForceNeighbors(coords, metric, epsilon)


__all__ = [
    "TREE_INDEX_THRESHOLD",
    "BruteForceNeighbors",
    "TreeNeighbors",
    "build_neighbor_index",
]
