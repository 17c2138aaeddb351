"""Tests for the async fallback state machine."""

from __future__ import annotations

import asyncio
import time

import numpy as np
import pytest

from sketchroute.engine.config import EngineConfig, FallbackConfig
from sketchroute.engine.context import TransportMode
from sketchroute.engine.errors import DataProviderUnavailable
from sketchroute.engine.fallback import FallbackStage, FallbackStrategy, default_seed, synthesize_routes
from sketchroute.providers import overpass
from sketchroute.providers.geocoder import location_from_center
from sketchroute.utils.geo import bbox_diagonal_km
from tests.conftest import ORIGIN, make_geometry

LOCATION = location_from_center(ORIGIN, "San Francisco")


class StubProvider:
    """Serves one scripted response per call: a list of geometries or an exception."""

    def __init__(self, *responses, delay_first: float = 0.0):
        self.responses = list(responses)
        self.delay_first = delay_first
        self.calls = []
        self.length_hints = []

    def fetch(self, bbox, way_classes, timeout_s=None, max_length_m=None):
        index = len(self.calls)
        self.calls.append((bbox, list(way_classes)))
        self.length_hints.append(max_length_m)
        if index == 0 and self.delay_first:
            time.sleep(self.delay_first)
        response = self.responses[min(index, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return response


def _run(strategy, shape, **kwargs):
    return asyncio.run(strategy.run(shape, LOCATION, **kwargs))


def test_primary_stage(square_shape):
    provider = StubProvider([make_geometry(square_shape.signature.points, id="copy")])
    result = _run(FallbackStrategy(provider), square_shape)
    assert result.stage == FallbackStage.PRIMARY
    assert result.routes[0].source == "street_network"
    assert len(provider.calls) == 1
    assert provider.calls[0][0] == LOCATION.bbox


def test_degraded_after_provider_failure(square_shape):
    sawtooth = make_geometry([(i / 39, (i % 2) * 0.5) for i in range(40)], id="sawtooth")
    provider = StubProvider(DataProviderUnavailable("down"), [sawtooth])
    result = _run(FallbackStrategy(provider), square_shape, mode=TransportMode.CYCLING)

    assert result.stage == FallbackStage.DEGRADED
    assert result.routes[0].source == "heuristic"
    assert result.notes == ["primary: down"]

    (primary_bbox, primary_classes), (wide_bbox, wide_classes) = provider.calls
    assert set(primary_classes) < set(wide_classes)
    assert wide_bbox[1] - wide_bbox[0] > primary_bbox[1] - primary_bbox[0]


def test_synthetic_when_everything_fails(square_shape):
    provider = StubProvider(DataProviderUnavailable("down"))
    result = _run(FallbackStrategy(provider), square_shape)
    assert result.stage == FallbackStage.SYNTHETIC
    assert len(result.routes) == 2
    assert all(r.source == "synthetic" and r.confidence_tier == "low" for r in result.routes)
    assert len(result.notes) == 2


def test_synthetic_when_no_data(square_shape):
    result = _run(FallbackStrategy(StubProvider([])), square_shape)
    assert result.stage == FallbackStage.SYNTHETIC
    assert result.notes == ["primary: no routes", "degraded: no routes"]


def test_primary_timeout_advances(square_shape):
    provider = StubProvider([], delay_first=0.3)
    strategy = FallbackStrategy(provider, primary_timeout_s=0.05, degraded_timeout_s=1.0)
    result = _run(strategy, square_shape)
    assert result.routes
    assert result.notes[0] == "primary: TimeoutError"


def test_synthetic_routes_are_deterministic(square_shape):
    first = synthesize_routes(ORIGIN, TransportMode.WALKING, square_shape)
    second = synthesize_routes(ORIGIN, TransportMode.WALKING, square_shape)
    assert [r.path for r in first] == [r.path for r in second]

    elsewhere = synthesize_routes((48.8566, 2.3522), TransportMode.WALKING, square_shape)
    assert elsewhere[0].path != first[0].path


def test_synthetic_loops_without_shape():
    routes = synthesize_routes(ORIGIN, TransportMode.DRIVING, config=FallbackConfig(synthetic_count=3, synthetic_seed=7))
    assert len(routes) == 3
    for route in routes:
        assert route.path[0] == route.path[-1]
        lats = np.array([p[0] for p in route.path])
        assert np.all(np.abs(lats - ORIGIN[0]) < 0.05)
        assert route.distance_km > 0
    assert default_seed(ORIGIN) == default_seed(ORIGIN)


def test_unexpected_provider_error_advances(square_shape):
    sawtooth = make_geometry([(i / 39, (i % 2) * 0.5) for i in range(40)], id="sawtooth")
    provider = StubProvider(ConnectionResetError("reset by peer"), [sawtooth])
    result = _run(FallbackStrategy(provider), square_shape)
    assert result.stage == FallbackStage.DEGRADED
    assert result.notes == ["primary: ConnectionResetError"]


def test_malformed_street_data_never_escapes(monkeypatch, square_shape):
    class Response:
        def raise_for_status(self):
            pass

        def json(self):
            return {"elements": [{"type": "way", "id": 1, "geometry": [{"lat": None, "lon": 2}, {"lat": 1}]}]}

    monkeypatch.setattr(overpass.requests, "post", lambda *a, **k: Response())
    result = _run(FallbackStrategy(overpass.OverpassProvider(base_url="http://overpass.test")), square_shape)
    assert result.stage == FallbackStage.SYNTHETIC
    assert result.notes == ["primary: no routes", "degraded: no routes"]


def test_length_hint_sent_with_primary_fetch_only(square_shape):
    provider = StubProvider([])
    _run(FallbackStrategy(provider), square_shape)
    primary_hint, degraded_hint = provider.length_hints
    assert primary_hint == pytest.approx(2.0 * bbox_diagonal_km(LOCATION.bbox) * 1000)
    assert degraded_hint is None

    provider = StubProvider([])
    config = EngineConfig(fallback=FallbackConfig(max_way_length_factor=None))
    _run(FallbackStrategy(provider, config), square_shape)
    assert provider.length_hints[0] is None
