"""
Pytest configuration and shared fixtures for geo-point-clusters tests.

This file provides:
- Sample payloads for every supported format (GeoJSON, CSV, Arrow, KML)
- Collection builders for clustering tests
- Common test utilities
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

import pytest
import pyarrow as pa
import pyarrow.ipc as ipc

from src.ingest.models import Feature, FeatureCollection


# ==============================================================================
# Collection Builders
# ==============================================================================

def make_collection(points: Sequence[Tuple[float, float]]) -> FeatureCollection:
    """Build a collection from ``(lon, lat)`` pairs with no properties."""
    return FeatureCollection(tuple(Feature(coordinates=(float(x), float(y))) for x, y in points))


@pytest.fixture
def chain_collection() -> FeatureCollection:
    """Points 0.04 apart on a line: neighbours link, ends are 0.16 apart."""
    return make_collection([(0.0, 0.0), (0.04, 0.0), (0.08, 0.0), (0.12, 0.0), (0.16, 0.0)])


@pytest.fixture
def two_blobs_collection() -> FeatureCollection:
    """Two tight groups far apart, plus one isolated point between them."""
    return make_collection([
        (10.00, 10.00),
        (10.01, 10.00),
        (10.00, 10.01),
        (5.00, 5.00),
        (0.00, 0.00),
        (0.01, 0.01),
        (0.02, 0.00),
    ])


# ==============================================================================
# GeoJSON
# ==============================================================================

@pytest.fixture
def sample_geojson() -> Dict[str, Any]:
    """Well-formed FeatureCollection with Point geometries only."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [139.7671, 35.6812]},
                "properties": {"name": "Tokyo Station", "rating": 4.5, "open": True},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [139.7967, 35.7148]},
                "properties": {"name": "Senso-ji Temple", "rating": 4.4, "open": False},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [139.7004, 35.6595]},
                "properties": {"name": "Shibuya Crossing", "rating": None, "visits": 25000},
            },
        ],
    }


@pytest.fixture
def sample_geojson_text(sample_geojson) -> str:
    return json.dumps(sample_geojson)


# ==============================================================================
# CSV
# ==============================================================================

@pytest.fixture
def sample_csv_text() -> str:
    return (
        "name,Latitude,Longitude,active,visits\n"
        "Tokyo Station,35.6812,139.7671,true,50000\n"
        "Meiji Shrine,35.6764,139.6993,FALSE,40000\n"
        "Unknown,not-a-number,139.7,true,\n"
        "Skytree,35.7101,139.8107,true,60000\n"
    )


# ==============================================================================
# KML
# ==============================================================================

@pytest.fixture
def sample_kml_text() -> str:
    """KML 2.2 document with Placemarks nested at several Folder depths."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>Stations</name>
    <Placemark>
      <name>Tokyo Station</name>
      <description>Central terminal</description>
      <Point><coordinates>139.7671,35.6812,0</coordinates></Point>
    </Placemark>
    <Folder>
      <name>North</name>
      <Placemark>
        <name>Ueno</name>
        <ExtendedData>
          <Data name="lines"><value>12</value></Data>
          <Data name="operator"><value>JR East</value></Data>
        </ExtendedData>
        <Point><coordinates>139.7774,35.7138</coordinates></Point>
      </Placemark>
      <Folder>
        <name>Deep</name>
        <Placemark>
          <name>Akabane</name>
          <Point><coordinates> 139.7209,35.7776,10 </coordinates></Point>
        </Placemark>
      </Folder>
    </Folder>
  </Document>
</kml>
"""


@pytest.fixture
def kml_with_missing_coordinates() -> str:
    return """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark>
      <name>Valid</name>
      <Point><coordinates>139.7671,35.6812</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>No geometry</name>
      <description>Lost its Point</description>
    </Placemark>
  </Document>
</kml>
"""


# ==============================================================================
# Arrow
# ==============================================================================

def arrow_file_bytes(table: pa.Table) -> bytes:
    """Serialize ``table`` in the Arrow IPC file format."""
    sink = pa.BufferOutputStream()
    with ipc.new_file(sink, table.schema) as writer:
        writer.write_table(table)
    return sink.getvalue().to_pybytes()


def arrow_stream_bytes(table: pa.Table) -> bytes:
    """Serialize ``table`` in the Arrow IPC stream format."""
    sink = pa.BufferOutputStream()
    with ipc.new_stream(sink, table.schema) as writer:
        writer.write_table(table)
    return sink.getvalue().to_pybytes()


@pytest.fixture
def sample_arrow_table() -> pa.Table:
    return pa.table({
        "id": pa.array(["a", "b", "c"]),
        "LON": pa.array([139.7671, 139.7004, None], type=pa.float64()),
        "LAT": pa.array([35.6812, 35.6595, 35.7], type=pa.float64()),
        "count": pa.array([3, 5, 7], type=pa.int64()),
    })


@pytest.fixture
def sample_arrow_bytes(sample_arrow_table) -> bytes:
    return arrow_file_bytes(sample_arrow_table)


# ==============================================================================
# Utilities
# ==============================================================================

def labels_of(assignment) -> List[int]:
    """Assignment labels as a plain list."""
    return list(assignment)
