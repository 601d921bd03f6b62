"""
Extension-keyed dispatch from a filename hint to the matching parser.

The registry maps lower-case extensions to parsers. Dispatch never looks at
the payload itself: an unknown or absent extension is ``UnsupportedFormat``.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Dict, List, NamedTuple, Union

from .errors import DecodeWarning, IngestError, UnsupportedFormat
from .models import FeatureCollection
from .normalizer import normalize
from .parsers import Buffer, Parser, parse_arrow, parse_csv, parse_geojson, parse_kml


logger = logging.getLogger(__name__)


class IngestResult(NamedTuple):
    """Canonical features plus the records dropped on the way."""

    collection: FeatureCollection
    warnings: List[DecodeWarning]


# Registry of all parsers
PARSERS: Dict[str, Parser] = {
    ".json": parse_geojson,
    ".geojson": parse_geojson,
    ".csv": parse_csv,
    ".arrow": parse_arrow,
    ".kml": parse_kml,
}


def _normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    if not extension.startswith("."):
        extension = "." + extension
    return extension


def register_parser(extension: str, parser: Parser) -> None:
    """Register (or replace) the parser used for ``extension``."""
    PARSERS[_normalize_extension(extension)] = parser


def supported_extensions() -> List[str]:
    """Extensions accepted by :func:`route`, in registration order."""
    return list(PARSERS)


def extension_of(filename_hint: str) -> str:
    """Lower-case final suffix of ``filename_hint`` (``""`` when absent)."""
    return PurePath(filename_hint or "").suffix.lower()


def route(buffer: Union[Buffer, None], filename_hint: str) -> IngestResult:
    """
    Parse ``buffer`` with the parser registered for ``filename_hint``.

    Args:
        buffer: Raw file contents (bytes for binary formats, bytes or text otherwise)
        filename_hint: Original filename; only its extension is used

    Returns:
        IngestResult with the normalized collection and per-record warnings

    Raises:
        UnsupportedFormat: If the extension is not registered
        MalformedInput, MissingRequiredColumn, DecodeError: From the parser
    """
    extension = extension_of(filename_hint)
    parser = PARSERS.get(extension)
    if parser is None:
        raise UnsupportedFormat(
            f"Unsupported file extension '{extension or '(none)'}'. "
            f"Supported: {', '.join(supported_extensions())}",
            filename=filename_hint,
        )

    logger.debug("Routing %s to %s", filename_hint, getattr(parser, "__name__", parser))
    try:
        records = parser(buffer if buffer is not None else b"")
    except IngestError as exc:
        if exc.filename is None:
            exc.filename = filename_hint
        raise

    collection, warnings = normalize(records)
    return IngestResult(collection, warnings)


__all__ = [
    "IngestResult",
    "PARSERS",
    "register_parser",
    "supported_extensions",
    "extension_of",
    "route",
]
