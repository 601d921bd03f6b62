"""
Pluggable distance metrics for neighbourhood queries.

Metrics are vectorised: ``func(point, points)`` takes one ``[lon, lat]`` row
and an ``(n, 2)`` array and returns ``n`` distances. Two are built in:

- ``EUCLIDEAN``: planar distance on raw coordinate differences (degrees).
  This is the default and matches ``epsilon = 0.05`` degree neighbourhoods.
- ``HAVERSINE``: great-circle distance in kilometres. ``epsilon`` is then a
  radius in km.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Union

import numpy as np


EARTH_RADIUS_KM = 6371.0088  # mean Earth radius (IUGG)

VectorDistance = Callable[[np.ndarray, np.ndarray], np.ndarray]
PairDistance = Callable[[Sequence[float], Sequence[float]], float]


@dataclass(frozen=True)
class DistanceMetric:
    """A named, vectorised distance function."""

    name: str
    func: VectorDistance
    tree_metric: Optional[str] = None
    """scikit-learn tree metric that reproduces ``func`` (enables tree indexes)."""

    def __call__(self, point: np.ndarray, points: np.ndarray) -> np.ndarray:
        return self.func(np.asarray(point, dtype=float), np.asarray(points, dtype=float))


def euclidean(point: np.ndarray, points: np.ndarray) -> np.ndarray:
    diff = points - point
    return np.hypot(diff[:, 0], diff[:, 1])


def haversine_km(point: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Great-circle distance in km between ``[lon, lat]`` degree rows."""
    lon1, lat1 = np.radians(point[0]), np.radians(point[1])
    lon2, lat2 = np.radians(points[:, 0]), np.radians(points[:, 1])

    a = (
        np.sin((lat2 - lat1) / 2.0) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


EUCLIDEAN = DistanceMetric("euclidean", euclidean, tree_metric="euclidean")
HAVERSINE = DistanceMetric("haversine", haversine_km, tree_metric="haversine")

METRICS: Dict[str, DistanceMetric] = {
    "euclidean": EUCLIDEAN,
    "haversine": HAVERSINE,
}


def as_metric(pair_distance: PairDistance, name: Optional[str] = None) -> DistanceMetric:
    """
    Wrap a scalar ``(a, b) -> float`` function as a ``DistanceMetric``.

    The result has no tree counterpart, so neighbourhoods are always found by
    brute force.
    """

    def func(point: np.ndarray, points: np.ndarray) -> np.ndarray:
        origin = tuple(point)
        return np.fromiter(
            (pair_distance(origin, tuple(p)) for p in points),
            dtype=float,
            count=len(points),
        )

    return DistanceMetric(name or getattr(pair_distance, "__name__", "custom"), func)


def get_metric(metric: Union[str, DistanceMetric, PairDistance, None] = None) -> DistanceMetric:
    """
    Resolve a metric name, instance or plain function.

    Raises:
        ValueError: If a name is not a known metric
    """
    if metric is None:
        return EUCLIDEAN
    if isinstance(metric, DistanceMetric):
        return metric
    if isinstance(metric, str):
        key = metric.strip().lower()
        if key not in METRICS:
            raise ValueError(
                f"Unknown distance metric '{metric}'. Available: {', '.join(METRICS)}"
            )
        return METRICS[key]
    if callable(metric):
        return as_metric(metric)
    raise ValueError(f"Cannot use {metric!r} as a distance metric")


__all__ = [
    "EARTH_RADIUS_KM",
    "DistanceMetric",
    "euclidean",
    "haversine_km",
    "EUCLIDEAN",
    "HAVERSINE",
    "METRICS",
    "as_metric",
    "get_metric",
]
