"""
Integration tests for the ingestion -> clustering pipeline.

These tests run complete files of every supported format through
``ingest_and_cluster`` and the command-line entrypoint.
"""

import json

import pytest
import pyarrow as pa

import cluster_file
from src.ingest import MissingRequiredColumn
from src.pipeline import ingest_and_cluster
from src.spatial import NOISE, ClusterParams
from src.tools.config_loader import PROFILE_ENV_VAR
from tests.conftest import arrow_file_bytes


# Same three points in every format: two neighbours and one outlier
POINTS = [(0.0, 0.0), (0.01, 0.0), (10.0, 10.0)]


def _as_geojson(points) -> str:
    return json.dumps({
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
                "properties": {"i": i},
            }
            for i, (lon, lat) in enumerate(points)
        ],
    })


def _as_csv(points) -> str:
    rows = ["i,lat,lon"] + [f"{i},{lat},{lon}" for i, (lon, lat) in enumerate(points)]
    return "\n".join(rows) + "\n"


def _as_arrow(points) -> bytes:
    return arrow_file_bytes(pa.table({
        "i": list(range(len(points))),
        "longitude": [p[0] for p in points],
        "latitude": [p[1] for p in points],
    }))


def _as_kml(points) -> str:
    placemarks = "".join(
        f"<Folder><Placemark><name>{i}</name>"
        f"<Point><coordinates>{lon},{lat},0</coordinates></Point></Placemark></Folder>"
        for i, (lon, lat) in enumerate(points)
    )
    return f'<kml xmlns="http://www.opengis.net/kml/2.2"><Document>{placemarks}</Document></kml>'


@pytest.mark.integration
class TestEndToEndPipeline:
    """Test complete flow from raw buffer to labelled features."""

    @pytest.mark.parametrize("buffer,hint", [
        (_as_geojson(POINTS), "points.geojson"),
        (_as_csv(POINTS).encode("utf-8"), "points.csv"),
        (_as_arrow(POINTS), "points.arrow"),
        (_as_kml(POINTS), "points.kml"),
    ])
    def test_every_format_clusters_alike(self, buffer, hint):
        collection, assignment, warnings = ingest_and_cluster(
            buffer, hint, ClusterParams(epsilon=0.05, min_points=2)
        )
        assert [f.coordinates for f in collection] == POINTS
        assert list(assignment) == [0, 0, NOISE]
        assert warnings == []

    def test_geojson_round_trip(self, sample_geojson, sample_geojson_text):
        collection, assignment, warnings = ingest_and_cluster(sample_geojson_text, "tokyo.json")

        assert warnings == []
        assert collection.to_geojson() == sample_geojson
        assert len(assignment) == len(sample_geojson["features"])

    def test_column_resolution(self):
        text = "lat,lon\n0,0\n0,0.01\n10,10\n"
        _, assignment, _ = ingest_and_cluster(text, "points.csv", ClusterParams(0.05, 2))

        assert assignment.members(0) == [0, 1]
        assert assignment[2] == NOISE

    def test_all_noise(self):
        text = _as_csv([(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)])
        _, assignment, _ = ingest_and_cluster(text, "points.csv", ClusterParams(0.05, 2))
        assert list(assignment) == [NOISE, NOISE, NOISE]

    def test_chain_absorption(self):
        chain = [(0.04 * i, 0.0) for i in range(6)]
        _, assignment, _ = ingest_and_cluster(_as_geojson(chain), "chain.geojson", ClusterParams(0.05, 2))
        assert list(assignment) == [0] * 6

    def test_determinism(self, sample_kml_text):
        params = ClusterParams(epsilon=0.1, min_points=2)
        first = ingest_and_cluster(sample_kml_text, "stations.kml", params)
        second = ingest_and_cluster(sample_kml_text, "stations.kml", params)
        assert first.assignment == second.assignment
        assert first.collection == second.collection

    def test_kml_malformed_record_tolerance(self, kml_with_missing_coordinates):
        collection, assignment, warnings = ingest_and_cluster(kml_with_missing_coordinates, "mixed.kml")

        assert len(collection) == 1
        assert collection[0].properties["name"] == "Valid"
        assert len(warnings) == 1
        assert warnings[0].location == "Placemark 1"
        assert len(assignment) == 1

    @pytest.mark.parametrize("buffer,hint", [
        (
            '{"features": ['
            '{"geometry": {"coordinates": [1' + "0" * 400 + ', 0]}},'
            '{"geometry": {"coordinates": [0, 0]}}]}',
            "huge.json",
        ),
        ("lon,lat\n1" + "0" * 400 + ",0\n0,0\n", "huge.csv"),
    ])
    def test_out_of_range_coordinate_dropped(self, buffer, hint):
        collection, assignment, warnings = ingest_and_cluster(buffer, hint)

        assert [f.coordinates for f in collection] == [(0.0, 0.0)]
        assert len(assignment) == 1
        assert len(warnings) == 1
        assert "longitude is not finite" in warnings[0].reason

    def test_fatal_missing_column(self):
        with pytest.raises(MissingRequiredColumn):
            ingest_and_cluster("foo,bar\n1,2\n3,4\n", "points.csv")

    def test_labelled_geojson_output(self, two_blobs_collection):
        text = json.dumps(two_blobs_collection.to_geojson())
        collection, assignment, _ = ingest_and_cluster(text, "blobs.geojson")

        labelled = collection.to_geojson(assignment)
        clusters = [f["properties"]["cluster"] for f in labelled["features"]]
        assert clusters == [0, 0, 0, NOISE, 1, 1, 1]


@pytest.mark.integration
class TestCommandLine:
    """Test the cluster_file entrypoint."""

    @pytest.fixture(autouse=True)
    def default_profile(self, monkeypatch):
        monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)

    def test_writes_labelled_output(self, tmp_path, capsys):
        source = tmp_path / "points.csv"
        source.write_text(_as_csv(POINTS))
        output = tmp_path / "out.geojson"

        assert cluster_file.main([str(source), "--output", str(output)]) == 0

        data = json.loads(output.read_text())
        assert [f["properties"]["cluster"] for f in data["features"]] == [0, 0, NOISE]
        stdout = capsys.readouterr().out
        assert "3 points, 1 clusters, 1 noise" in stdout

    def test_overrides(self, tmp_path, capsys):
        source = tmp_path / "points.csv"
        source.write_text(_as_csv(POINTS))

        assert cluster_file.main([str(source), "--epsilon", "20", "--min-points", "3"]) == 0
        assert "3 points, 1 clusters, 0 noise" in capsys.readouterr().out

    def test_reports_warnings(self, tmp_path, capsys):
        source = tmp_path / "points.csv"
        source.write_text("lat,lon\n0,0\nx,y\n")

        assert cluster_file.main([str(source)]) == 0
        assert "warning: row 3" in capsys.readouterr().err

    def test_ingest_error_exit_code(self, tmp_path, capsys):
        source = tmp_path / "points.txt"
        source.write_text("lat,lon\n0,0\n")

        assert cluster_file.main([str(source)]) == 1
        assert "UnsupportedFormat" in capsys.readouterr().err

    def test_unknown_profile(self, tmp_path, capsys):
        source = tmp_path / "points.csv"
        source.write_text(_as_csv(POINTS))

        assert cluster_file.main([str(source), "--profile", "nope"]) == 2
        assert "Configuration error" in capsys.readouterr().err
