"""Tests for the FastAPI backend."""

import dataclasses

import httpx
import pytest
from fastapi.testclient import TestClient

from roadgraph.analysis.vector import VectorRoadAnalyzer
from roadgraph.core.config import DEFAULT_CONFIG
from roadgraph.web import server


@pytest.fixture
def client(overpass_client):
    server.app.dependency_overrides[server.get_vector_analyzer] = (
        lambda: VectorRoadAnalyzer(client=overpass_client)
    )
    small = dataclasses.replace(
        DEFAULT_CONFIG,
        raster=dataclasses.replace(DEFAULT_CONFIG.raster, image_width=64, image_height=64),
    )
    server.app.dependency_overrides[server.get_config] = lambda: small
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAnalyze:
    def test_network(self, client, region):
        resp = client.post("/api/analyze", json={"region": region})
        assert resp.status_code == 200
        data = resp.json()
        assert data["type"] == "FeatureCollection"
        assert data["stats"] == {"total": 3, "roads": 2, "intersections": 1}
        assert data["bbox"] == {"north": 0.01, "south": 0.0, "east": 0.01, "west": 0.0}
        assert data["source"] == "overpass"

    def test_raw_mode(self, client, region):
        resp = client.post("/api/analyze", json={"region": region, "mode": "raw", "clip": True})
        assert resp.json()["stats"]["intersections"] == 0

    def test_invalid_region(self, client):
        resp = client.post("/api/analyze", json={"region": {"type": "FeatureCollection", "features": []}})
        assert resp.status_code == 400
        body = resp.json()
        assert body["category"] == "input"
        assert "hint" in body

    def test_upstream_failure(self, client, region, make_client):
        failing = make_client(lambda r: httpx.Response(503))
        server.app.dependency_overrides[server.get_vector_analyzer] = (
            lambda: VectorRoadAnalyzer(client=failing)
        )
        resp = client.post("/api/analyze", json={"region": region})
        assert resp.status_code == 502
        assert resp.json()["category"] == "upstream"

    def test_missing_body(self, client):
        assert client.post("/api/analyze", json={}).status_code == 422


class TestAnalyzeImage:
    def test_synthetic(self, client, region):
        resp = client.post(
            "/api/analyze/image",
            json={"region": region, "options": {"sensitivity": 0.9, "edgeDetection": "sobel"}, "seed": 3},
        )
        assert resp.status_code == 200
        assert resp.json()["source"] == "image"

    def test_bad_options(self, client, region):
        resp = client.post("/api/analyze/image", json={"region": region, "options": {"sensitivity": 5}})
        assert resp.status_code == 400

    @pytest.mark.parametrize("options", [{"sensitivity": "high"}, {"minRoadWidth": None}])
    def test_non_numeric_options(self, client, region, options):
        resp = client.post("/api/analyze/image", json={"region": region, "options": options})
        assert resp.status_code == 400
        assert resp.json()["category"] == "input"


class TestStats:
    def test_counts(self, client):
        resp = client.post("/api/stats", json={
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]},
                 "properties": {"isIntersection": True}},
            ],
        })
        assert resp.json() == {"total": 1, "roads": 0, "intersections": 1}


class TestConfig:
    def test_endpoint_override(self, monkeypatch):
        monkeypatch.setenv("ROADGRAPH_OVERPASS_ENDPOINTS", "https://a/api, https://b/api,")
        config = server.load_config()
        assert config.overpass.endpoints == ("https://a/api", "https://b/api")

    def test_no_override(self, monkeypatch):
        monkeypatch.delenv("ROADGRAPH_OVERPASS_ENDPOINTS", raising=False)
        assert server.load_config() == DEFAULT_CONFIG
