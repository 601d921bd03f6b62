"""
Canonical point-feature model shared by every format parser.

Parsers emit ``RawRecord`` objects holding undecoded coordinates; the
normalizer turns them into immutable ``Feature`` objects grouped in a
``FeatureCollection``. Collections preserve ingestion order, which is the
index space used by cluster assignments.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd


Scalar = Union[str, int, float, bool, None]

POINT = "Point"

# Plain decimal or scientific notation; "nan"/"inf" spellings are text.
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def infer_scalar(text: Optional[str]) -> Scalar:
    """
    Type a raw cell value by its shape.

    Attempts are made in a fixed order: number, then boolean, then string.
    Empty (or whitespace-only) text is ``None``.

    Examples:
        >>> infer_scalar("42")
        42
        >>> infer_scalar("-0.5e2")
        -50.0
        >>> infer_scalar("TRUE")
        True
        >>> infer_scalar("Tokyo")
        'Tokyo'
    """
    if text is None:
        return None

    stripped = text.strip()
    if not stripped:
        return None

    if _NUMBER_RE.match(stripped):
        if _INTEGER_RE.match(stripped):
            return int(stripped)
        number = float(stripped)
        # Exponents past float range ("1e400") stay text, like "inf".
        if math.isfinite(number):
            return number
        return text

    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    return text


def coerce_property(value: Any) -> Scalar:
    """Map a decoded value (JSON, Arrow, XML) onto the scalar variant."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, np.generic):
        return coerce_property(value.item())
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
    return str(value)


@dataclass(frozen=True)
class RawRecord:
    """Parser output before coordinate validation."""

    coordinates: Any
    """Undecoded coordinate payload; expected to be ``[lon, lat]``."""

    properties: Dict[str, Any] = field(default_factory=dict)
    """Per-record metadata, not yet coerced to scalars."""

    location: str = ""
    """Human-readable position in the source (``row 5``, ``Placemark 2``)."""


@dataclass(frozen=True)
class Feature:
    """A single geographic point with scalar metadata."""

    coordinates: Tuple[float, float]
    properties: Mapping[str, Scalar] = field(default_factory=lambda: MappingProxyType({}))
    geometry_type: str = POINT

    def __post_init__(self):
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def __hash__(self):
        return hash((self.coordinates, frozenset(self.properties.items()), self.geometry_type))

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": {"type": self.geometry_type, "coordinates": list(self.coordinates)},
            "properties": dict(self.properties),
        }


@dataclass(frozen=True)
class FeatureCollection:
    """Ordered, immutable sequence of point features."""

    features: Tuple[Feature, ...] = ()

    def __post_init__(self):
        if not isinstance(self.features, tuple):
            object.__setattr__(self, "features", tuple(self.features))

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __getitem__(self, index: int) -> Feature:
        return self.features[index]

    def coordinates(self) -> np.ndarray:
        """Return an ``(n, 2)`` float array of ``[lon, lat]`` rows."""
        if not self.features:
            return np.empty((0, 2), dtype=float)
        return np.array([f.coordinates for f in self.features], dtype=float)

    def to_geojson(self, assignment: Optional[Sequence[int]] = None) -> Dict[str, Any]:
        """
        Render as a GeoJSON FeatureCollection.

        When ``assignment`` is given, each feature gets a ``cluster`` property
        holding its label (``-1`` for noise).
        """
        features: List[Dict[str, Any]] = []
        for index, feature in enumerate(self.features):
            data = feature.to_geojson()
            if assignment is not None:
                data["properties"]["cluster"] = int(assignment[index])
            features.append(data)
        return {"type": "FeatureCollection", "features": features}

    def to_dataframe(self, assignment: Optional[Sequence[int]] = None) -> pd.DataFrame:
        """Flatten into a dataframe with ``lon``, ``lat`` and property columns."""
        rows = []
        for feature in self.features:
            row: Dict[str, Any] = {"lon": feature.lon, "lat": feature.lat}
            row.update(feature.properties)
            rows.append(row)

        df = pd.DataFrame(rows, columns=None if rows else ["lon", "lat"])
        if assignment is not None:
            df["cluster"] = [int(assignment[i]) for i in range(len(self.features))]
        return df


__all__ = [
    "Scalar",
    "POINT",
    "infer_scalar",
    "coerce_property",
    "RawRecord",
    "Feature",
    "FeatureCollection",
]
