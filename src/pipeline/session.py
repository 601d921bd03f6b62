"""
Background execution of ingestions with stale-result suppression.

Each request gets a generation number. When a newer request starts before an
older one finishes, the older result is discarded on arrival instead of being
delivered, so the caller only ever sees the latest ingestion.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor
from typing import Optional, Union

from src.ingest.parsers import Buffer
from src.spatial.dbscan import ClusterParams
from src.spatial.distance import DistanceMetric, PairDistance

from .orchestrator import PipelineResult, ingest_and_cluster


logger = logging.getLogger(__name__)


class IngestionSession:
    """
    Runs ``ingest_and_cluster`` off the event loop, newest request wins.

    Intended to be driven from a single event loop; the generation counter is
    only touched from that loop.

    Example:
        >>> session = IngestionSession()
        >>> result = await session.run(data, "points.csv")
        >>> if result is None:
        ...     pass  # superseded by a newer drop
    """

    def __init__(self, executor: Optional[Executor] = None):
        self._executor = executor
        self._generation = 0

    @property
    def generation(self) -> int:
        """Generation number of the most recent request."""
        return self._generation

    def next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def run(
        self,
        buffer: Buffer,
        filename_hint: str,
        params: Optional[ClusterParams] = None,
        distance: Union[str, DistanceMetric, PairDistance, None] = None,
    ) -> Optional[PipelineResult]:
        """
        Ingest and cluster in a worker thread.

        Returns:
            The result, or None if a newer request was started meanwhile

        Raises:
            IngestError: For structural failures of a still-current request
        """
        generation = self.next_generation()
        loop = asyncio.get_running_loop()
        call = functools.partial(ingest_and_cluster, buffer, filename_hint, params, distance)

        try:
            result = await loop.run_in_executor(self._executor, call)
        except Exception:
            if not self.is_current(generation):
                logger.warning(
                    "Ignoring failure of superseded ingestion %d (%s)", generation, filename_hint
                )
                return None
            raise

        if not self.is_current(generation):
            logger.warning(
                "Discarding stale result of ingestion %d (%s); current is %d",
                generation,
                filename_hint,
                self._generation,
            )
            return None
        return result
