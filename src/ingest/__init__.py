"""
src/ingest: Format detection, parsing and normalization of point data.

Usage:
    from src.ingest import route

    result = route(open("points.csv", "rb").read(), "points.csv")
    result.collection   # FeatureCollection
    result.warnings     # records dropped during normalization
"""

from .errors import (
    IngestError,
    UnsupportedFormat,
    MalformedInput,
    MissingRequiredColumn,
    DecodeError,
    DecodeWarning,
)
from .models import (
    Feature,
    FeatureCollection,
    RawRecord,
    infer_scalar,
    coerce_property,
)
from .normalizer import normalize
from .parsers import (
    parse_geojson,
    parse_csv,
    parse_arrow,
    parse_kml,
    resolve_coordinate_columns,
)
from .router import (
    IngestResult,
    PARSERS,
    register_parser,
    supported_extensions,
    route,
)

__all__ = [
    # Errors
    "IngestError",
    "UnsupportedFormat",
    "MalformedInput",
    "MissingRequiredColumn",
    "DecodeError",
    "DecodeWarning",

    # Data model
    "Feature",
    "FeatureCollection",
    "RawRecord",
    "infer_scalar",
    "coerce_property",

    # Parsing
    "normalize",
    "parse_geojson",
    "parse_csv",
    "parse_arrow",
    "parse_kml",
    "resolve_coordinate_columns",

    # Dispatch
    "IngestResult",
    "PARSERS",
    "register_parser",
    "supported_extensions",
    "route",
]
