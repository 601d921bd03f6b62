"""
src/pipeline: Ingestion -> clustering orchestration.

Usage:
    from src.pipeline import ingest_and_cluster, read_with_progress

    data = read_with_progress("points.kml", on_progress=print)
    collection, assignment, warnings = ingest_and_cluster(data, "points.kml")
"""

from .acquisition import ProgressEvent, read_with_progress
from .orchestrator import PipelineResult, ingest_and_cluster
from .session import IngestionSession

__all__ = [
    "ProgressEvent",
    "read_with_progress",
    "PipelineResult",
    "ingest_and_cluster",
    "IngestionSession",
]
