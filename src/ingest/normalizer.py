"""
Conversion of raw parser records into the canonical ``FeatureCollection``.

This is the only place coordinates are validated: a record survives when its
coordinates are exactly two finite real numbers. Anything else is dropped and
reported as a ``DecodeWarning``; values are never coerced to zero.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Iterable, List, Optional, Tuple

from .errors import DecodeWarning
from .models import Feature, FeatureCollection, RawRecord, coerce_property


logger = logging.getLogger(__name__)


def _coordinate_problem(coordinates: Any) -> Optional[str]:
    """Return why ``coordinates`` is unusable, or ``None`` if it is valid."""
    if coordinates is None:
        return "missing coordinates"
    if isinstance(coordinates, (str, bytes)) or not hasattr(coordinates, "__len__"):
        return f"coordinates must be a [lon, lat] pair, got {coordinates!r}"
    if len(coordinates) != 2:
        return f"expected 2 coordinate values, got {len(coordinates)}"

    for axis, value in zip(("longitude", "latitude"), coordinates):
        if value is None:
            return f"{axis} is empty"
        if isinstance(value, bool) or not isinstance(value, Real):
            return f"{axis} is not a number: {value!r}"
        try:
            number = float(value)
        except OverflowError:
            return f"{axis} is not finite: out of float range"
        if not math.isfinite(number):
            return f"{axis} is not finite: {value!r}"
    return None


def normalize(records: Iterable[RawRecord]) -> Tuple[FeatureCollection, List[DecodeWarning]]:
    """
    Validate raw records and build an immutable feature collection.

    Args:
        records: Parser output, in source order

    Returns:
        (collection, warnings) where the collection keeps the input order
        minus dropped records, and each dropped record has one warning
    """
    features: List[Feature] = []
    warnings: List[DecodeWarning] = []
    total = 0

    for record in records:
        total += 1
        problem = _coordinate_problem(record.coordinates)
        if problem is not None:
            warning = DecodeWarning(location=record.location or f"record {total - 1}", reason=problem)
            logger.debug("Dropping record: %s", warning)
            warnings.append(warning)
            continue

        lon, lat = record.coordinates
        features.append(
            Feature(
                coordinates=(float(lon), float(lat)),
                properties={str(k): coerce_property(v) for k, v in record.properties.items()},
            )
        )

    logger.info("Normalized %d of %d records (%d dropped)", len(features), total, len(warnings))
    return FeatureCollection(tuple(features)), warnings


__all__ = ["normalize"]
