"""Shared test fixtures."""

from __future__ import annotations

import math

import numpy as np
import pytest

from sketchroute.engine.context import RawGeometry, RouteCandidate
from sketchroute.engine.registry import load_builtins
from sketchroute.utils.geo import polyline_length_km

load_builtins()


# Sample drawings, (x, y) pixels with y pointing down

# 8-point square whose stroke returns near its start
SQUARE_DRAWING = [[(0, 0), (50, 0), (100, 0), (100, 50), (100, 100), (50, 100), (0, 100), (0, 8)]]

CIRCLE_DRAWING = [
    [
        (60 + 50 * math.cos(2 * math.pi * i / 32), 60 + 50 * math.sin(2 * math.pi * i / 32))
        for i in range(33)
    ]
]

ZIGZAG_DRAWING = [[(0, 0), (30, 60), (60, 0), (90, 60), (120, 0)]]

# Two strokes forming an L
L_DRAWING = [[(0, 0), (0, 100)], [(0, 100), (60, 100)]]

TINY_DRAWING = [[(0, 0), (5, 5), (10, 0)]]

ORIGIN = (37.7749, -122.4194)
# Degrees spanned by one unit of the normalized frame
UNIT_SPAN_DEG = 0.01


def to_geo(unit_points, origin=ORIGIN, span=UNIT_SPAN_DEG) -> tuple[tuple[float, float], ...]:
    """Place unit-frame points (y down) on the map, north up, keeping proportions."""
    lat0, lon0 = origin
    cos_lat = math.cos(math.radians(lat0))
    return tuple(
        (lat0 - float(y) * span, lon0 + float(x) * span / cos_lat) for x, y in np.asarray(unit_points)
    )


def make_geometry(unit_points, id: str = "way", tags=None, origin=ORIGIN) -> RawGeometry:
    return RawGeometry(id=id, points=to_geo(unit_points, origin), tags=tags or {})


def make_candidate(unit_points, order: int = 0, tags=None, source_id: str | None = None) -> RouteCandidate:
    path = to_geo(unit_points)
    distance = polyline_length_km(path)
    return RouteCandidate(
        geo_path=path,
        source_id=source_id or f"c{order}",
        tags=tags or {},
        distance_km=distance,
        estimated_duration_min=distance / 5.0 * 60,
        order=order,
    )


def random_unit_path(seed: int, count: int = 10) -> np.ndarray:
    return np.random.default_rng(seed).random((count, 2))


@pytest.fixture
def square_drawing():
    return SQUARE_DRAWING


@pytest.fixture
def square_shape():
    from sketchroute.engine.analyzer import analyze_shape

    return analyze_shape(SQUARE_DRAWING)
