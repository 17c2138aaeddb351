"""CandidateCollector — raw street geometries → vetted, simplified RouteCandidates."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from shapely.geometry import LineString

from sketchroute.engine.config import CollectorConfig
from sketchroute.engine.context import Point, RawGeometry, RouteCandidate, ShapeFeatures, TransportMode
from sketchroute.utils.geo import bbox_extent_km, haversine_km, polyline_length_km

logger = logging.getLogger(__name__)


def simplify_path(points: Sequence[Point], tolerance: float) -> tuple[Point, ...]:
    """Douglas-Peucker in degree space. Input and output are (lat, lon)."""
    if len(points) < 3 or tolerance <= 0:
        return tuple((float(lat), float(lon)) for lat, lon in points)
    line = LineString([(lon, lat) for lat, lon in points])
    simplified = line.simplify(tolerance, preserve_topology=True)
    coords = list(simplified.coords)
    if len(coords) < 2:
        # Everything collapsed; keep the endpoints
        coords = [line.coords[0], line.coords[-1]]
    return tuple((float(lat), float(lon)) for lon, lat in coords)


def relative_length_km(points: Sequence[Point]) -> float:
    """Path length measured in units of the longer bbox extent."""
    extent = bbox_extent_km(points)
    if extent <= 0:
        return 0.0
    return polyline_length_km(points) / extent


def within_length_ratio(candidate_relative: float, shape_relative: float, factor: float) -> bool:
    if shape_relative <= 0:
        return True
    if candidate_relative <= 0:
        return False
    ratio = candidate_relative / shape_relative
    return 1.0 / factor <= ratio <= factor


def collect_candidates(
    geometries: Iterable[RawGeometry],
    center: Point,
    mode: TransportMode | str = TransportMode.WALKING,
    shape: ShapeFeatures | None = None,
    config: CollectorConfig | None = None,
) -> list[RouteCandidate]:
    """Vet raw geometries into candidates, preserving input order."""
    config = config or CollectorConfig()
    mode = TransportMode(mode)
    speed = config.speed_for(mode)
    shape_relative = shape.relative_length if shape is not None else 0.0

    candidates: list[RouteCandidate] = []
    rejected = {"short": 0, "far": 0, "length": 0, "malformed": 0}

    for geometry in geometries:
        if len(candidates) >= config.max_candidates:
            break
        if len(geometry.points) < 2:
            rejected["short"] += 1
            logger.debug("Skipping %s: fewer than 2 points", geometry.id)
            continue
        try:
            path = simplify_path(geometry.points, config.simplify_tolerance)
        except (ValueError, TypeError) as e:
            rejected["malformed"] += 1
            logger.debug("Skipping %s: %s", geometry.id, e)
            continue

        if haversine_km(center, path[0]) > config.max_distance_km:
            rejected["far"] += 1
            continue

        if (
            shape is not None
            and config.length_filter
            and not within_length_ratio(relative_length_km(path), shape_relative, config.length_factor)
        ):
            rejected["length"] += 1
            continue

        distance = polyline_length_km(path)
        candidates.append(
            RouteCandidate(
                geo_path=path,
                source_id=geometry.id,
                tags=dict(geometry.tags),
                distance_km=distance,
                estimated_duration_min=distance / speed * 60,
                order=len(candidates),
            )
        )

    logger.info(
        "Collected %d candidates (rejected: %s)",
        len(candidates),
        ", ".join(f"{k}={v}" for k, v in rejected.items() if v) or "none",
    )
    return candidates
