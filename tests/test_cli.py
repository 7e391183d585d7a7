"""Tests for the RoadGraph CLI."""

import json

import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image

from roadgraph.api import NetworkResult
from roadgraph.cli import cli
from roadgraph.core.exceptions import AllEndpointsFailedError, UpstreamFetchError


@pytest.fixture
def region_file(tmp_path, region):
    path = tmp_path / "region.geojson"
    path.write_text(json.dumps(region))
    return path


@pytest.fixture
def network_file(tmp_path):
    path = tmp_path / "network.geojson"
    path.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]},
             "properties": {}},
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [0.5, 0.5]},
             "properties": {"isIntersection": True, "connectedRoads": [1, 2]}},
        ],
    }))
    return path


class TestCLI:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "RoadGraph" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "version" in result.output.lower()

    @pytest.mark.parametrize("command", ["analyze", "image", "stats", "serve"])
    def test_command_help(self, command):
        runner = CliRunner()
        result = runner.invoke(cli, [command, "--help"])
        assert result.exit_code == 0

    def test_analyze_help_lists_options(self):
        result = CliRunner().invoke(cli, ["analyze", "--help"])
        assert "--clip" in result.output
        assert "--raw" in result.output

    def test_no_subcommand_shows_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "RoadGraph" in result.output

    def test_stats(self, network_file):
        result = CliRunner().invoke(cli, ["stats", str(network_file)])
        assert result.exit_code == 0
        assert "Roads:          1" in result.output
        assert "Intersections:  1" in result.output

    def test_stats_bad_json(self, tmp_path):
        path = tmp_path / "broken.geojson"
        path.write_text("{not json")
        result = CliRunner().invoke(cli, ["stats", str(path)])
        assert result.exit_code == 1

    def test_analyze_invalid_region(self, tmp_path):
        path = tmp_path / "bad.geojson"
        path.write_text(json.dumps({"type": "Feature"}))
        result = CliRunner().invoke(cli, ["analyze", str(path)])
        assert result.exit_code == 1
        assert "Invalid region" in result.output

    def test_analyze_saves_output(self, region_file, tmp_path, monkeypatch):
        captured = {}

        def fake_analyze(region, **kwargs):
            captured.update(kwargs)
            return NetworkResult(type="FeatureCollection", features=[])

        monkeypatch.setattr("roadgraph.api.analyze", fake_analyze)
        out = tmp_path / "out.geojson"
        result = CliRunner().invoke(cli, ["analyze", str(region_file), "--raw", "--clip", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert captured == {"clip": True, "mode": "raw"}
        assert json.loads(out.read_text())["features"] == []

    def test_analyze_upstream_failure_advice(self, region_file, monkeypatch):
        def failing(region, **kwargs):
            raise AllEndpointsFailedError([UpstreamFetchError("https://e returned status 504")])

        monkeypatch.setattr("roadgraph.api.analyze", failing)
        result = CliRunner().invoke(cli, ["analyze", str(region_file)])
        assert result.exit_code == 1
        assert "Overpass API error" in result.output
        assert "raster analysis" in result.output

    def test_image_from_file(self, region_file, tmp_path):
        pixels = np.zeros((48, 48, 3), dtype=np.uint8)
        pixels[12:36] = 255
        tile = tmp_path / "tile.png"
        Image.fromarray(pixels).save(tile)
        out = tmp_path / "roads.geojson"

        result = CliRunner().invoke(
            cli, ["image", str(region_file), "--image", str(tile), "--sensitivity", "0.8", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert "RoadGraph Network" in result.output
        saved = json.loads(out.read_text())
        assert saved["features"]

    def test_image_rejects_bad_sensitivity(self, region_file):
        result = CliRunner().invoke(cli, ["image", str(region_file), "--sensitivity", "3"])
        assert result.exit_code != 0
