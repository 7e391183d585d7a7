"""Shared test fixtures for RoadGraph test suite."""

import json
import tempfile
from pathlib import Path

import httpx
import pytest

from roadgraph.core.config import DEFAULT_CONFIG
from roadgraph.upstream.overpass import OverpassClient


@pytest.fixture
def tmp_dir():
    """Create a temporary directory, cleaned up after test."""
    with tempfile.TemporaryDirectory(prefix="roadgraph_test_") as d:
        yield Path(d)


@pytest.fixture
def config():
    return DEFAULT_CONFIG


def _square_region(west=0.0, south=0.0, east=0.01, north=0.01):
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[
                        [west, south], [east, south], [east, north], [west, north], [west, south],
                    ]],
                },
            }
        ],
    }


@pytest.fixture
def region():
    """0.01° square with south-west corner at the origin."""
    return _square_region()


@pytest.fixture
def make_region():
    """Factory for axis-aligned square regions."""
    return _square_region


@pytest.fixture
def crossing_ways():
    """Two ways crossing at (0.005, 0.005) inside the square region."""
    return {
        "elements": [
            {
                "type": "way",
                "id": 1,
                "tags": {"highway": "residential", "name": "Main St"},
                "geometry": [{"lat": 0.005, "lon": 0.0}, {"lat": 0.005, "lon": 0.01}],
            },
            {
                "type": "way",
                "id": 2,
                "tags": {"highway": "primary"},
                "geometry": [{"lat": 0.0, "lon": 0.005}, {"lat": 0.01, "lon": 0.005}],
            },
            {"type": "node", "id": 3, "lat": 0.001, "lon": 0.001},
        ]
    }


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


def _make_client(handler, sleeper=None, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return OverpassClient(
        DEFAULT_CONFIG.overpass,
        http_client=http,
        sleep=sleeper or RecordingSleep(),
        **kwargs,
    )


@pytest.fixture
def overpass_client(crossing_ways, sleeper):
    """Client that answers every query with ``crossing_ways``."""

    def handler(request):
        return httpx.Response(200, content=json.dumps(crossing_ways).encode())

    return _make_client(handler, sleeper)


@pytest.fixture
def make_client():
    """Factory for OverpassClients whose HTTP traffic goes to a handler."""
    return _make_client
