"""
Single entry point from a raw file buffer to labelled features.

    buffer -> route (parse + normalize) -> cluster -> PipelineResult

Ingestion errors propagate before clustering starts, so a caller never sees
a partially processed collection.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Union

from src.ingest.errors import DecodeWarning
from src.ingest.models import FeatureCollection
from src.ingest.parsers import Buffer
from src.ingest.router import route
from src.spatial.dbscan import ClusterAssignment, ClusterParams, cluster
from src.spatial.distance import DistanceMetric, PairDistance


logger = logging.getLogger(__name__)


class PipelineResult(NamedTuple):
    """Output of one ingestion-cluster cycle."""

    collection: FeatureCollection
    assignment: ClusterAssignment
    warnings: List[DecodeWarning]


def ingest_and_cluster(
    buffer: Buffer,
    filename_hint: str,
    params: Optional[ClusterParams] = None,
    distance: Union[str, DistanceMetric, PairDistance, None] = None,
) -> PipelineResult:
    """
    Parse, normalize and cluster one file.

    Args:
        buffer: Complete file contents
        filename_hint: Original filename (its extension selects the parser)
        params: DBSCAN parameters (default epsilon 0.05, min_points 2)
        distance: Distance metric (default planar Euclidean)

    Returns:
        PipelineResult(collection, assignment, warnings)

    Raises:
        IngestError: Any structural failure; nothing is clustered
        ValueError: If ``distance`` names an unknown metric
    """
    collection, warnings = route(buffer, filename_hint)
    assignment = cluster(collection, params, distance)

    logger.info(
        "Ingested %s: %d features, %d warnings, %d clusters",
        filename_hint,
        len(collection),
        len(warnings),
        assignment.num_clusters,
    )
    return PipelineResult(collection, assignment, warnings)
