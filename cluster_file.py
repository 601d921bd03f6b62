from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from src.ingest import IngestError, supported_extensions
from src.pipeline import ProgressEvent, ingest_and_cluster, read_with_progress
from src.spatial import ClusterParams, diagnose, get_metric, summarize_clusters
from src.tools.config_loader import get_cluster_settings


# -----------------------------
# Argument parsing
# -----------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cluster geographic points from a GeoJSON, CSV, Arrow or KML file.",
    )
    parser.add_argument("path", type=Path, help=f"input file ({', '.join(supported_extensions())})")
    parser.add_argument("--profile", help="clustering profile in configs/ (default: $GEOCLUSTER_PROFILE or 'default')")
    parser.add_argument("--epsilon", type=float, help="neighbourhood radius (overrides profile)")
    parser.add_argument("--min-points", type=int, help="core point threshold (overrides profile)")
    parser.add_argument("--metric", choices=["euclidean", "haversine"], help="distance metric (overrides profile)")
    parser.add_argument("--output", type=Path, help="write labelled GeoJSON here")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser


def _print_progress(event: ProgressEvent) -> None:
    print(f"\rReading... {event.percent:3d}%", end="", file=sys.stderr)
    if event.percent == 100:
        print(file=sys.stderr)


# -----------------------------
# Entrypoint
# -----------------------------

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        params, metric = get_cluster_settings(args.profile)
        params = ClusterParams(
            epsilon=args.epsilon if args.epsilon is not None else params.epsilon,
            min_points=args.min_points if args.min_points is not None else params.min_points,
        )
        if args.metric:
            metric = get_metric(args.metric)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        data = read_with_progress(args.path, on_progress=_print_progress)
    except OSError as exc:
        print(f"Cannot read {args.path}: {exc}", file=sys.stderr)
        return 1

    try:
        collection, assignment, warnings = ingest_and_cluster(data, args.path.name, params, metric)
    except IngestError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)

    diagnostics = diagnose(collection, assignment, params)
    print(
        f"{diagnostics.num_points} points, {diagnostics.num_clusters} clusters, "
        f"{diagnostics.num_noise} noise ({metric.name}, epsilon={params.epsilon}, "
        f"min_points={params.min_points})"
    )
    for info in summarize_clusters(collection, assignment):
        print(
            f"  cluster {info.cluster_id}: {info.size} points, "
            f"centroid ({info.centroid_lon:.5f}, {info.centroid_lat:.5f})"
        )
    for suggestion in diagnostics.suggestions:
        print(f"  hint: {suggestion}")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(collection.to_geojson(assignment), f, ensure_ascii=False)
        print(f"Wrote {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
