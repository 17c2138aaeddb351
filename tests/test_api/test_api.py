"""Tests for API endpoints (no network or LLM calls)."""

from __future__ import annotations

from fastapi.testclient import TestClient

from sketchroute.config import Settings
from sketchroute.dependencies import get_engine_config, get_search_service
from sketchroute.engine.config import EngineConfig, NormalizerConfig
from sketchroute.engine.errors import LocationNotFound
from sketchroute.engine.search import RouteSearchService
from sketchroute.main import app
from sketchroute.providers.geocoder import location_from_center
from tests.conftest import ORIGIN, SQUARE_DRAWING, TINY_DRAWING, make_geometry

client = TestClient(app)

SQUARE_UNIT = [(0, 0), (0.5, 0), (1, 0), (1, 0.5), (1, 1), (0.5, 1), (0, 1), (0, 0.08)]


def _geometry_payload(unit_points, id="copy", tags=None):
    g = make_geometry(unit_points, id=id, tags=tags)
    return {"id": g.id, "points": [list(p) for p in g.points], "tags": g.tags}


class StubGeocoder:
    def __init__(self, error=None):
        self.error = error

    def resolve(self, query):
        if self.error:
            raise self.error
        return location_from_center(ORIGIN, query)


class StubProvider:
    def __init__(self, geometries):
        self.geometries = geometries

    def fetch(self, bbox, way_classes, timeout_s=None, max_length_m=None):
        return self.geometries


def _override_search(geocoder, geometries=()):
    service = RouteSearchService(geocoder, StubProvider(list(geometries)), app_settings=Settings())
    app.dependency_overrides[get_search_service] = lambda: service


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["transforms_registered"] == 8
    assert data["metrics_registered"] == 5


def test_analyze_square():
    response = client.post("/api/shape/analyze", json={"strokes": SQUARE_DRAWING})
    assert response.status_code == 200
    data = response.json()
    assert data["validation"]["is_valid"] is True
    assert data["shape"]["shape_type"] == "rectangle"
    assert data["shape"]["is_closed"] is True
    assert len(data["shape"]["normalized_path"]) == 16


def test_analyze_invalid_drawing():
    response = client.post("/api/shape/analyze", json={"strokes": TINY_DRAWING})
    assert response.status_code == 200
    data = response.json()
    assert data["validation"]["is_valid"] is False
    assert data["validation"]["issues"]
    assert data["shape"] is None


def test_analyze_uses_engine_config():
    app.dependency_overrides[get_engine_config] = lambda: EngineConfig(normalizer=NormalizerConfig(sample_count=8))
    try:
        response = client.post("/api/shape/analyze", json={"strokes": SQUARE_DRAWING})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert len(response.json()["shape"]["normalized_path"]) == 8


def test_match_duplicate():
    payload = {
        "strokes": SQUARE_DRAWING,
        "geometries": [_geometry_payload(SQUARE_UNIT, tags={"name": "Block Loop", "highway": "footway"})],
        "creativity": "strict",
    }
    response = client.post("/api/routes/match", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "primary"
    route = data["routes"][0]
    assert route["route_name"] == "⭐ Block Loop"
    assert route["confidence_tier"] == "high"
    assert route["source"] == "street_network"


def test_match_without_geometries_falls_back():
    response = client.post("/api/routes/match", json={"strokes": SQUARE_DRAWING, "center": list(ORIGIN)})
    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "synthetic"
    assert data["routes"]


def test_match_without_fallback():
    payload = {"strokes": SQUARE_DRAWING, "center": list(ORIGIN), "fallback": False}
    response = client.post("/api/routes/match", json=payload)
    assert response.status_code == 200
    assert response.json()["routes"] == []


def test_match_insufficient_drawing():
    response = client.post("/api/routes/match", json={"strokes": TINY_DRAWING})
    assert response.status_code == 422
    data = response.json()
    assert data["kind"] == "insufficient_data"
    assert data["issues"]
    assert data["recommendations"]


def test_match_rejects_unknown_mode():
    response = client.post("/api/routes/match", json={"strokes": SQUARE_DRAWING, "mode": "flying"})
    assert response.status_code == 422


def test_search():
    _override_search(StubGeocoder(), [make_geometry(SQUARE_UNIT)])
    try:
        response = client.post("/api/routes/search", json={"strokes": SQUARE_DRAWING, "location": "San Francisco"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "primary"
    assert data["strategy"] == "geometric"
    assert data["location"]["display_name"] == "San Francisco"
    assert data["routes"][0]["similarity_score"] >= 0.99


def test_search_location_not_found():
    _override_search(StubGeocoder(error=LocationNotFound("Nowhere")))
    try:
        response = client.post("/api/routes/search", json={"strokes": SQUARE_DRAWING, "location": "Nowhere"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 404
    assert response.json() == {"kind": "location_not_found", "message": "Location not found: Nowhere"}


def test_search_invalid_location():
    _override_search(StubGeocoder())
    try:
        response = client.post("/api/routes/search", json={"strokes": SQUARE_DRAWING, "location": "<>"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_request"
