"""
Density-based clustering (DBSCAN) over a ``FeatureCollection``.

Indices are visited in collection order and neighbourhoods are enumerated in
ascending index order, so for a fixed collection and parameters the cluster
ids are reproducible:

1. Skip indices that already carry a label.
2. If the neighbourhood (self included, distance ``<= epsilon``) has fewer
   than ``min_points`` members, mark the index noise provisionally.
3. Otherwise open the next cluster id and expand breadth-first. Core members
   push their own neighbourhoods; border members (non-core) are absorbed but
   not expanded. A point already in a cluster is never moved.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from src.ingest.models import FeatureCollection

from .distance import DistanceMetric, PairDistance, get_metric
from .neighbors import build_neighbor_index


logger = logging.getLogger(__name__)

NOISE = -1
_UNVISITED = -2

DEFAULT_EPSILON = 0.05
DEFAULT_MIN_POINTS = 2


@dataclass(frozen=True)
class ClusterParams:
    """DBSCAN parameters."""

    epsilon: float = DEFAULT_EPSILON
    """Neighbourhood radius, in the distance metric's units."""

    min_points: int = DEFAULT_MIN_POINTS
    """Minimum neighbourhood size (self included) for a core point."""

    def __post_init__(self):
        if isinstance(self.epsilon, bool) or not isinstance(self.epsilon, (int, float)):
            raise ValueError(f"epsilon must be a number, got {self.epsilon!r}")
        if not math.isfinite(self.epsilon) or self.epsilon <= 0:
            raise ValueError(f"epsilon must be a positive finite number, got {self.epsilon}")
        if isinstance(self.min_points, bool) or not isinstance(self.min_points, int):
            raise ValueError(f"min_points must be an integer, got {self.min_points!r}")
        if self.min_points < 1:
            raise ValueError(f"min_points must be >= 1, got {self.min_points}")


@dataclass(frozen=True)
class ClusterAssignment:
    """
    Per-feature cluster labels.

    ``labels[i]`` is the cluster id of feature ``i`` (dense, from 0, in
    discovery order) or ``NOISE``.
    """

    labels: Tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.labels)

    def __getitem__(self, index: int) -> int:
        return self.labels[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.labels)

    @property
    def num_clusters(self) -> int:
        return max(self.labels, default=NOISE) + 1

    @property
    def cluster_ids(self) -> List[int]:
        return list(range(self.num_clusters))

    @property
    def noise_indices(self) -> List[int]:
        return [i for i, label in enumerate(self.labels) if label == NOISE]

    def is_noise(self, index: int) -> bool:
        return self.labels[index] == NOISE

    def members(self, cluster_id: int) -> List[int]:
        """Feature indices in ``cluster_id``, ascending."""
        return [i for i, label in enumerate(self.labels) if label == cluster_id]

    def to_dict(self) -> Dict[int, int]:
        return dict(enumerate(self.labels))

    def to_array(self) -> np.ndarray:
        return np.array(self.labels, dtype=int)


def cluster(
    collection: FeatureCollection,
    params: Optional[ClusterParams] = None,
    distance: Union[str, DistanceMetric, PairDistance, None] = None,
    *,
    strategy: str = "auto",
) -> ClusterAssignment:
    """
    Run DBSCAN over the collection's coordinates.

    Args:
        collection: Features to cluster (read only)
        params: Epsilon and min_points (defaults: 0.05, 2)
        distance: Metric name, ``DistanceMetric`` or ``(a, b) -> float``
            function (default: planar Euclidean)
        strategy: Neighbour search strategy, see
            :func:`~src.spatial.neighbors.build_neighbor_index`

    Returns:
        ClusterAssignment with one label per feature
    """
    if params is None:
        params = ClusterParams()
    metric = get_metric(distance)

    coords = collection.coordinates()
    n = len(coords)
    if n == 0:
        return ClusterAssignment(())

    index = build_neighbor_index(coords, metric, params.epsilon, strategy)
    labels = np.full(n, _UNVISITED, dtype=int)
    next_id = 0

    for i in range(n):
        if labels[i] != _UNVISITED:
            continue

        neighbors = index.query(i)
        if len(neighbors) < params.min_points:
            labels[i] = NOISE
            continue

        cluster_id = next_id
        next_id += 1
        labels[i] = cluster_id

        queue = deque(neighbors)
        while queue:
            j = queue.popleft()
            if labels[j] == NOISE:
                # Known non-core: becomes a border point of this cluster
                labels[j] = cluster_id
                continue
            if labels[j] != _UNVISITED:
                continue

            labels[j] = cluster_id
            j_neighbors = index.query(j)
            if len(j_neighbors) >= params.min_points:
                queue.extend(j_neighbors)

    num_noise = int((labels == NOISE).sum())
    logger.info(
        "DBSCAN (%s, epsilon=%s, min_points=%d): %d points -> %d clusters, %d noise",
        metric.name,
        params.epsilon,
        params.min_points,
        n,
        next_id,
        num_noise,
    )
    return ClusterAssignment(tuple(int(label) for label in labels))


__all__ = [
    "NOISE",
    "DEFAULT_EPSILON",
    "DEFAULT_MIN_POINTS",
    "ClusterParams",
    "ClusterAssignment",
    "cluster",
]
