"""
Command-line runner for the geo core.

Loads a CSV of geotagged photos and prints either proximity clusters or the
level-of-detail reduced point set for a viewport as JSON.

Usage:
    python -m globe_geo.runner --input photos.csv --mode cluster --max-distance-km 50

    # Points to render for a viewport crossing the antimeridian
    python -m globe_geo.runner --input photos.csv --mode viewport \\
        --bounds 10 -10 -170 170 --altitude 3.0
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from globe_geo.core.clustering import (
    GeoPoint,
    ProximityClusterer,
    cluster_label,
    select_representative,
)
from globe_geo.core.geometry import BoundingBox, format_coordinate
from globe_geo.core.viewport import ViewportReducer
from globe_geo.data.loaders import frame_to_points, load_points_csv
from globe_geo.utils.config import ClusteringParams, GeoConfig, get_default_config, load_config
from globe_geo.utils.exceptions import ConfigurationError
from globe_geo.utils.logging_config import configure_logging, get_logger
from globe_geo.utils.scheduling import PerformanceMonitor

logger = get_logger(__name__)

AVAILABLE_MODES = ['cluster', 'viewport']


def run_clustering(points: Sequence[GeoPoint], config: GeoConfig) -> List[Dict[str, Any]]:
    """
    Cluster points and attach presentation fields.

    Returns:
        One dict per cluster: the cluster data plus label, representative id
        and a readable centroid
    """
    clusters = ProximityClusterer.from_config(config).cluster(points)

    results = []
    for cluster in clusters:
        data = cluster.to_dict()
        data['label'] = cluster_label(cluster)
        data['representative_id'] = select_representative(cluster).id
        data['centroid_text'] = format_coordinate(cluster.centroid)
        results.append(data)

    logger.info("clustering_complete", points=len(points), clusters=len(results))
    return results


def run_viewport(points: Sequence[GeoPoint], box: BoundingBox, altitude: float,
                 config: GeoConfig, padding: Optional[float] = None) -> Dict[str, Any]:
    """Reduce points for one viewport state and return the result as a dict."""
    result = ViewportReducer.from_config(config).reduce(points, box, altitude, padding)
    logger.info(
        "viewport_complete",
        total=result.total,
        in_bounds=result.in_bounds,
        rendered=len(result.points),
        lod=result.lod.value,
    )
    data = result.to_dict()
    data['bounds'] = box.to_dict()
    return data


def apply_overrides(config: GeoConfig, args: argparse.Namespace) -> GeoConfig:
    """
    Return a copy of ``config`` with CLI overrides applied and re-validated.

    Raises:
        ConfigurationError: If an override is out of range
    """
    overrides = {}
    if args.max_distance_km is not None:
        overrides['max_distance_km'] = args.max_distance_km
    if args.unit is not None:
        overrides['unit'] = args.unit
    if not overrides:
        return config

    try:
        clustering = ClusteringParams(**{**config.clustering.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid command-line override: {e}") from e
    return config.model_copy(update={'clustering': clustering})


def run(args: argparse.Namespace, config: GeoConfig) -> Any:
    """Execute one CLI invocation and return the JSON-serializable payload."""
    config = apply_overrides(config, args)

    monitor = PerformanceMonitor()
    monitor.start("load")
    points = frame_to_points(load_points_csv(args.input))
    monitor.end("load", level='info')

    monitor.start(args.mode)
    if args.mode == 'cluster':
        payload = run_clustering(points, config)
    else:
        north, south, east, west = args.bounds
        box = BoundingBox(north=north, south=south, east=east, west=west)
        payload = run_viewport(points, box, args.altitude, config, args.padding)
    monitor.end(args.mode, level='info')

    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='globe-geo - cluster and LOD-reduce geotagged photos',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Overview clusters within 50 km of each seed
  python -m globe_geo.runner --input photos.csv --mode cluster --max-distance-km 50

  # Points to render for a viewport (north south east west)
  python -m globe_geo.runner --input photos.csv --mode viewport --bounds 60 30 40 -10 --altitude 2
        """
    )

    parser.add_argument(
        '--input',
        type=Path,
        required=True,
        help='CSV file with id, latitude, longitude columns (optional: name, caption, is_favorite, taken_at)'
    )

    parser.add_argument(
        '--mode',
        choices=AVAILABLE_MODES,
        default='cluster',
        help='What to compute (default: cluster)'
    )

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML config file (default: built-in defaults)'
    )

    parser.add_argument(
        '--max-distance-km',
        type=float,
        default=None,
        help='Clustering radius, overrides config'
    )

    parser.add_argument(
        '--unit',
        choices=['km', 'miles'],
        default=None,
        help='Distance unit for clustering, overrides config'
    )

    parser.add_argument(
        '--bounds',
        type=float,
        nargs=4,
        metavar=('NORTH', 'SOUTH', 'EAST', 'WEST'),
        default=[90.0, -90.0, 180.0, -180.0],
        help='Viewport box in degrees; WEST > EAST wraps the antimeridian (default: whole globe)'
    )

    parser.add_argument(
        '--altitude',
        type=float,
        default=2.0,
        help='Camera altitude for LOD selection (default: 2.0)'
    )

    parser.add_argument(
        '--padding',
        type=float,
        default=None,
        help='Bounds padding in degrees (default: config viewport.padding_deg)'
    )

    parser.add_argument(
        '--output',
        type=Path,
        default=None,
        help='Write JSON here instead of stdout'
    )

    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level, overrides config'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit JSON log lines'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_default_config()
        configure_logging(
            log_level=args.log_level or config.logging.log_level,
            json_output=args.json_logs or config.logging.json_output,
        )

        payload = run(args, config)
        text = json.dumps(payload, indent=2, default=str)

        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(text)
            logger.info("output_written", path=str(args.output))
        else:
            print(text)
        return 0
    except Exception as e:
        logger.error("Execution failed", error=str(e), exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
