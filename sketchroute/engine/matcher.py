"""Public, I/O-free matching operations over caller-supplied geometries."""

from __future__ import annotations

import logging
from typing import Sequence

from sketchroute.engine.config import EngineConfig
from sketchroute.engine.context import Creativity, Point, RawGeometry, ShapeFeatures, TransportMode
from sketchroute.engine.fallback import (
    FallbackResult,
    FallbackStage,
    heuristic_routes,
    primary_routes,
    synthesize_routes,
)
from sketchroute.models.route import Route
from sketchroute.utils.geo import path_centroid

logger = logging.getLogger(__name__)


def geometries_center(geometries: Sequence[RawGeometry]) -> Point:
    """Centroid of every supplied point; the search center when none is given."""
    points = [p for g in geometries for p in g.points]
    return path_centroid(points)


def find_matching_routes(
    shape: ShapeFeatures,
    candidate_geometries: Sequence[RawGeometry],
    mode: TransportMode | str = TransportMode.WALKING,
    profile: Creativity | str = Creativity.BALANCED,
    center: Point | None = None,
    config: EngineConfig | None = None,
) -> list[Route]:
    """Collect, score and rank. Same inputs always give the same ordered output."""
    config = config or EngineConfig()
    if center is None:
        center = geometries_center(candidate_geometries)
    return primary_routes(shape, candidate_geometries, center, TransportMode(mode), Creativity(profile), config)


def find_matching_routes_with_fallback(
    shape: ShapeFeatures,
    candidate_geometries: Sequence[RawGeometry],
    mode: TransportMode | str = TransportMode.WALKING,
    profile: Creativity | str = Creativity.BALANCED,
    center: Point | None = None,
    config: EngineConfig | None = None,
) -> FallbackResult:
    """Offline fallback chain over the same geometries. Never returns an empty list."""
    config = config or EngineConfig()
    mode = TransportMode(mode)
    if center is None:
        center = geometries_center(candidate_geometries) if candidate_geometries else (0.0, 0.0)

    notes: list[str] = []
    routes = find_matching_routes(shape, candidate_geometries, mode, profile, center, config)
    if routes:
        return FallbackResult(routes, FallbackStage.PRIMARY, notes)
    notes.append("primary: no routes")

    routes = heuristic_routes(shape, candidate_geometries, center, mode, config.collector, config.fallback)
    if routes:
        return FallbackResult(routes, FallbackStage.DEGRADED, notes)
    notes.append("degraded: no routes")

    logger.info("No usable geometries, synthesizing placeholders around %s", center)
    routes = synthesize_routes(center, mode, shape, config.fallback, config.collector)
    return FallbackResult(routes, FallbackStage.SYNTHETIC, notes)
