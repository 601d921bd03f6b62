"""
Format decoders: GeoJSON, CSV, Arrow IPC and KML.

Every parser shares one contract::

    parse(buffer: bytes | str) -> list[RawRecord]

Parsers only decode. They raise on structural failures (see
``src.ingest.errors``) and hand every record, valid or not, to the
normalizer, which owns coordinate validation and warnings.
"""

from __future__ import annotations

import io
import json
import logging
import warnings
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd
import pyarrow as pa
import pyarrow.ipc as ipc

from .errors import DecodeError, MalformedInput, MissingRequiredColumn
from .models import RawRecord, infer_scalar


logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview, str]
Parser = Callable[[Buffer], List[RawRecord]]

LON_ALIASES: Tuple[str, ...] = ("lon", "longitude", "x")
LAT_ALIASES: Tuple[str, ...] = ("lat", "latitude", "y")


# -----------------------------
# Shared helpers
# -----------------------------

def _decode_text(buffer: Buffer) -> str:
    """Decode a UTF-8 payload, accepting a leading byte-order mark."""
    if isinstance(buffer, str):
        return buffer[1:] if buffer.startswith("\ufeff") else buffer
    try:
        return bytes(buffer).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInput(
            f"Input is not valid UTF-8: {exc.reason}",
            location=f"byte {exc.start}",
        ) from exc


def resolve_coordinate_columns(columns: Sequence[str]) -> Tuple[str, str]:
    """
    Find the longitude and latitude columns among ``columns``.

    Matching is case-insensitive and ignores surrounding whitespace. Aliases
    are tried in order (``lon``, ``longitude``, ``x`` and ``lat``,
    ``latitude``, ``y``), so ``lon`` wins over ``x`` when both are present.

    Raises:
        MissingRequiredColumn: If either axis cannot be resolved
    """
    by_key: Dict[str, str] = {}
    for column in columns:
        by_key.setdefault(str(column).strip().lower(), column)

    lon_col = next((by_key[a] for a in LON_ALIASES if a in by_key), None)
    lat_col = next((by_key[a] for a in LAT_ALIASES if a in by_key), None)

    missing = []
    if lon_col is None:
        missing.append(f"longitude ({'/'.join(LON_ALIASES)})")
    if lat_col is None:
        missing.append(f"latitude ({'/'.join(LAT_ALIASES)})")
    if missing:
        raise MissingRequiredColumn(
            f"No {' or '.join(missing)} column in header {list(columns)}",
            columns=[str(c) for c in columns],
        )
    return lon_col, lat_col


# -----------------------------
# GeoJSON passthrough
# -----------------------------

def parse_geojson(buffer: Buffer) -> List[RawRecord]:
    """Decode a GeoJSON FeatureCollection into raw point records."""
    text = _decode_text(buffer)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInput(
            f"Invalid JSON: {exc.msg}",
            location=f"offset {exc.pos} (line {exc.lineno}, column {exc.colno})",
        ) from exc

    if not isinstance(document, dict):
        raise MalformedInput("Top-level JSON value must be an object", location="$")

    features = document.get("features")
    if features is None:
        raise MalformedInput("Missing 'features' array", location="$.features")
    if not isinstance(features, list):
        raise MalformedInput(
            f"'features' must be an array, got {type(features).__name__}",
            location="$.features",
        )

    records = []
    for index, feature in enumerate(features):
        coordinates = None
        properties: Dict[str, Any] = {}
        if isinstance(feature, dict):
            geometry = feature.get("geometry")
            if isinstance(geometry, dict):
                coordinates = geometry.get("coordinates")
            if isinstance(feature.get("properties"), dict):
                properties = dict(feature["properties"])
        records.append(RawRecord(coordinates, properties, f"features[{index}]"))
    return records


# -----------------------------
# Tabular (CSV)
# -----------------------------

def parse_csv(buffer: Buffer) -> List[RawRecord]:
    """
    Decode CSV text with a header row.

    Cells are read as text and typed individually with
    :func:`~src.ingest.models.infer_scalar`, so typing depends on each value's
    shape rather than on a column schema.
    """
    text = _decode_text(buffer)
    try:
        # pandas only warns when the first data row is longer than the header
        # and drops the extra cells; treat that like any other overlong row.
        with warnings.catch_warnings():
            warnings.simplefilter("error", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
            )
    except pd.errors.EmptyDataError as exc:
        raise MalformedInput("CSV input has no header row") from exc
    except (pd.errors.ParserError, pd.errors.ParserWarning) as exc:
        raise MalformedInput(f"Unreadable CSV: {exc}") from exc

    columns = [str(c) for c in df.columns]
    lon_col, lat_col = resolve_coordinate_columns(columns)
    other_cols = [c for c in columns if c not in (lon_col, lat_col)]

    records = []
    # Header is line 1, so the first data row is "row 2" in the source file.
    for offset, row in enumerate(df.itertuples(index=False, name=None)):
        cells = {
            column: None if pd.isna(value) else infer_scalar(value)
            for column, value in zip(columns, row)
        }
        records.append(
            RawRecord(
                coordinates=[cells[lon_col], cells[lat_col]],
                properties={c: cells[c] for c in other_cols},
                location=f"row {offset + 2}",
            )
        )
    return records


# -----------------------------
# Columnar binary (Arrow IPC)
# -----------------------------

def _read_arrow_table(data: bytes) -> pa.Table:
    try:
        return ipc.open_file(pa.BufferReader(data)).read_all()
    except (pa.ArrowException, OSError) as file_exc:
        logger.debug("Not an Arrow IPC file (%s); trying stream format", file_exc)

    try:
        return ipc.open_stream(pa.BufferReader(data)).read_all()
    except (pa.ArrowException, OSError) as exc:
        raise DecodeError(f"Unreadable Arrow payload: {exc}") from exc


def parse_arrow(buffer: Buffer) -> List[RawRecord]:
    """
    Decode an Arrow IPC buffer (file or stream format).

    The whole file fails with ``DecodeError`` when the header or any batch is
    unreadable; partial decoding is never attempted.
    """
    if isinstance(buffer, str):
        raise DecodeError("Arrow payload must be binary, got text")

    table = _read_arrow_table(bytes(buffer))
    columns = list(table.column_names)
    duplicates = sorted({c for c in columns if columns.count(c) > 1})
    if duplicates:
        raise DecodeError(f"Duplicate column names: {', '.join(duplicates)}")
    lon_col, lat_col = resolve_coordinate_columns(columns)

    for column in (lon_col, lat_col):
        column_type = table.schema.field(column).type
        if pa.types.is_decimal(column_type):
            try:
                cast = table.column(column).cast(pa.float64())
            except pa.ArrowException as exc:
                raise DecodeError(f"Column '{column}' does not fit in float64: {exc}") from exc
            table = table.set_column(columns.index(column), column, cast)
        elif not (pa.types.is_integer(column_type) or pa.types.is_floating(column_type)):
            raise DecodeError(f"Column '{column}' must be numeric, got {column_type}")

    records = []
    for index, row in enumerate(table.to_pylist()):
        records.append(
            RawRecord(
                coordinates=[row.pop(lon_col), row.pop(lat_col)],
                properties=row,
                location=f"row {index}",
            )
        )
    return records


# -----------------------------
# XML (KML)
# -----------------------------

def _local(tag: Any) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next((c for c in element if _local(c.tag) == name), None)


def _descendants(element: ET.Element, name: str) -> Iterable[ET.Element]:
    return (e for e in element.iter() if _local(e.tag) == name)


def _kml_coordinates(placemark: ET.Element) -> Optional[List[Any]]:
    point = next(iter(_descendants(placemark, "Point")), None)
    if point is None:
        return None
    node = _child(point, "coordinates")
    if node is None or not (node.text or "").strip():
        return None

    # First "lon,lat[,alt]" tuple only; altitude is ignored.
    first_tuple = node.text.split()[0]
    values: List[Any] = []
    for token in first_tuple.split(",")[:2]:
        try:
            values.append(float(token))
        except ValueError:
            values.append(token)
    return values


def _kml_properties(placemark: ET.Element) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    for name in ("name", "description"):
        node = _child(placemark, name)
        if node is not None and node.text is not None:
            properties[name] = node.text.strip()

    extended = _child(placemark, "ExtendedData")
    if extended is None:
        return properties

    for data in _descendants(extended, "Data"):
        key = data.get("name")
        value = _child(data, "value")
        if key:
            properties[key] = infer_scalar(value.text if value is not None else None)
    for simple in _descendants(extended, "SimpleData"):
        key = simple.get("name")
        if key:
            properties[key] = infer_scalar(simple.text)
    return properties


def parse_kml(buffer: Buffer) -> List[RawRecord]:
    """
    Decode KML Placemarks into raw point records.

    Placemarks are collected at any depth (nested ``Folder``/``Document``
    elements included) in document order. Namespaces are ignored so both
    KML 2.2 and un-namespaced documents are accepted.
    """
    text = _decode_text(buffer)
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise MalformedInput(
            f"Invalid XML: {exc}",
            location=f"line {line}, column {column}" if line is not None else None,
        ) from exc

    records = []
    for index, placemark in enumerate(_descendants(root, "Placemark")):
        records.append(
            RawRecord(
                coordinates=_kml_coordinates(placemark),
                properties=_kml_properties(placemark),
                location=f"Placemark {index}",
            )
        )
    return records


__all__ = [
    "Buffer",
    "Parser",
    "LON_ALIASES",
    "LAT_ALIASES",
    "resolve_coordinate_columns",
    "parse_geojson",
    "parse_csv",
    "parse_arrow",
    "parse_kml",
]
