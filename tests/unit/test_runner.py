"""
Tests for the command-line runner.
"""
import json

import pytest

from globe_geo.cli import main as cli_main
from globe_geo.core.geometry import BoundingBox
from globe_geo.data.loaders import records_to_points
import globe_geo.runner as runner
from globe_geo.runner import apply_overrides, build_parser, main, run_clustering, run_viewport
from globe_geo.utils.config import get_default_config, load_config
from globe_geo.utils.exceptions import ConfigurationError


PHOTOS_CSV = """id,latitude,longitude,name,caption,is_favorite
1,48.8584,2.2945,Paris,,False
2,48.8606,2.3376,Paris,Louvre,False
3,35.6586,139.7454,Tokyo,,True
"""


@pytest.fixture
def photos_csv(tmp_path):
    path = tmp_path / "photos.csv"
    path.write_text(PHOTOS_CSV)
    return path


@pytest.fixture
def points():
    return records_to_points([
        {'id': '1', 'latitude': 48.8584, 'longitude': 2.2945, 'name': 'Paris'},
        {'id': '2', 'latitude': 48.8606, 'longitude': 2.3376, 'name': 'Paris', 'caption': 'Louvre'},
        {'id': '3', 'latitude': 35.6586, 'longitude': 139.7454, 'name': 'Tokyo'},
    ])


class TestRunClustering:
    """Tests for run_clustering."""

    def test_presentation_fields(self, points):
        results = run_clustering(points, get_default_config())

        assert [r['id'] for r in results] == ['cluster-1', 'cluster-3']
        assert results[0]['label'] == 'Paris'
        assert results[0]['representative_id'] == '2'
        assert results[0]['count'] == 2
        assert results[1]['centroid_text'] == '35.6586°N, 139.7454°E'


class TestRunViewport:
    """Tests for run_viewport."""

    def test_result_includes_bounds(self, points):
        box = BoundingBox(north=60, south=30, east=10, west=0)
        data = run_viewport(points, box, 1.0, get_default_config(), padding=0)

        assert data['in_bounds'] == 2
        assert data['rendered'] == 2
        assert data['lod'] == 'high'
        assert data['bounds'] == box.to_dict()


class TestMain:
    """Tests for the CLI entry point."""

    def test_cluster_mode_stdout(self, photos_csv, capsys):
        exit_code = main(['--input', str(photos_csv), '--mode', 'cluster', '--max-distance-km', '50'])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert len(payload) == 2
        assert payload[0]['count'] == 2
        assert payload[0]['representative_id'] == '2'

    def test_viewport_mode_antimeridian_bounds(self, photos_csv, capsys):
        exit_code = main([
            '--input', str(photos_csv), '--mode', 'viewport',
            '--bounds', '10', '-10', '-170', '170', '--altitude', '3.0', '--padding', '0',
        ])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload['total'] == 3
        assert payload['in_bounds'] == 0
        assert payload['lod'] == 'low'

    def test_output_file(self, photos_csv, tmp_path):
        output = tmp_path / "out" / "clusters.json"

        exit_code = main(['--input', str(photos_csv), '--output', str(output)])

        assert exit_code == 0
        assert output.exists()
        assert len(json.loads(output.read_text())) == 2

    def test_config_file(self, photos_csv, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text("clustering:\n  max_distance_km: 1\n")

        exit_code = main(['--input', str(photos_csv), '--config', str(config)])

        assert exit_code == 0
        assert len(json.loads(capsys.readouterr().out)) == 3

    def test_config_loaded_once(self, photos_csv, tmp_path, monkeypatch):
        config = tmp_path / "config.yaml"
        config.write_text("clustering:\n  max_distance_km: 1\n")
        loads = []

        def counting_load(path):
            loads.append(path)
            return load_config(path)

        monkeypatch.setattr(runner, 'load_config', counting_load)

        assert main(['--input', str(photos_csv), '--config', str(config)]) == 0
        assert len(loads) == 1

    def test_negative_max_distance_rejected(self, photos_csv):
        assert main(['--input', str(photos_csv), '--max-distance-km', '-5']) == 1

    def test_missing_input_returns_error(self, tmp_path):
        assert main(['--input', str(tmp_path / "missing.csv")]) == 1

    def test_cli_reexports_main(self):
        assert cli_main is main


class TestApplyOverrides:
    """Tests for apply_overrides."""

    def test_overrides_validated(self):
        args = build_parser().parse_args(['--input', 'p.csv', '--max-distance-km', '-1'])
        with pytest.raises(ConfigurationError):
            apply_overrides(get_default_config(), args)

    def test_overrides_applied_to_copy(self):
        config = get_default_config()
        args = build_parser().parse_args(['--input', 'p.csv', '--max-distance-km', '25', '--unit', 'miles'])

        updated = apply_overrides(config, args)

        assert updated.clustering.max_distance_km == 25
        assert updated.clustering.unit == 'miles'
        assert config.clustering.max_distance_km == 100.0

    def test_no_overrides(self):
        config = get_default_config()
        args = build_parser().parse_args(['--input', 'p.csv'])
        assert apply_overrides(config, args) is config


class TestBuildParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(['--input', 'photos.csv'])

        assert args.mode == 'cluster'
        assert args.bounds == [90.0, -90.0, 180.0, -180.0]
        assert args.altitude == 2.0
        assert args.padding is None

    def test_invalid_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--input', 'photos.csv', '--mode', 'heatmap'])
