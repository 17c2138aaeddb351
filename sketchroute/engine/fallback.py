"""FallbackStrategy — PRIMARY → DEGRADED → SYNTHETIC, so a search never comes back empty.

PRIMARY    fetch primary way classes in the resolved bbox, full metric scoring
DEGRADED   widened classes and bbox, heuristic scoring (length agreement + proximity)
SYNTHETIC  labelled placeholder loops around the center

Provider failures and timeouts only advance the state machine; the caller
sees the routes and the stage that produced them.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np

from sketchroute.engine.aggregator import ScoreAggregator
from sketchroute.engine.collector import collect_candidates, relative_length_km
from sketchroute.engine.config import CollectorConfig, EngineConfig, FallbackConfig
from sketchroute.engine.context import (
    Creativity,
    Point,
    RawGeometry,
    ResolvedLocation,
    RouteCandidate,
    ShapeFeatures,
    TransportMode,
)
from sketchroute.engine.errors import DataProviderUnavailable
from sketchroute.engine.similarity_engine import SimilarityEngine
from sketchroute.models.route import Route
from sketchroute.utils.geo import bbox_diagonal_km, haversine_km, path_centroid, polyline_length_km, widen_bbox

logger = logging.getLogger(__name__)


class FallbackStage(str, enum.Enum):
    PRIMARY = "primary"
    DEGRADED = "degraded"
    SYNTHETIC = "synthetic"
    DONE = "done"


class StreetNetworkProvider(Protocol):
    def fetch(
        self,
        bbox: tuple[float, float, float, float],
        way_classes: Sequence[str],
        timeout_s: float | None = None,
        max_length_m: float | None = None,
    ) -> list[RawGeometry]: ...


@dataclass
class FallbackResult:
    routes: list[Route]
    stage: FallbackStage
    # Why earlier stages were abandoned, in order
    notes: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure stage bodies (shared with the offline matcher)
# ---------------------------------------------------------------------------


def primary_routes(
    shape: ShapeFeatures,
    geometries: Sequence[RawGeometry],
    center: Point,
    mode: TransportMode,
    creativity: Creativity,
    config: EngineConfig,
) -> list[Route]:
    candidates = collect_candidates(geometries, center, mode, shape, config.collector)
    if not candidates:
        return []
    engine = SimilarityEngine(config.similarity, config.normalizer)
    scored = engine.score_all(shape.signature, candidates)
    return ScoreAggregator(config.profiles, config.aggregator).aggregate(scored, creativity)


def heuristic_score(candidate: RouteCandidate, shape_relative: float, center: Point, proximity_km: float) -> float:
    """Half relative-length agreement, half centroid proximity to the center."""
    route_relative = relative_length_km(candidate.geo_path)
    if shape_relative > 0 and route_relative > 0:
        agreement = min(route_relative, shape_relative) / max(route_relative, shape_relative)
    else:
        agreement = 0.0
    proximity = math.exp(-haversine_km(center, path_centroid(candidate.geo_path)) / proximity_km)
    return 0.5 * agreement + 0.5 * proximity


def heuristic_routes(
    shape: ShapeFeatures | None,
    geometries: Sequence[RawGeometry],
    center: Point,
    mode: TransportMode,
    collector: CollectorConfig | None = None,
    config: FallbackConfig | None = None,
) -> list[Route]:
    config = config or FallbackConfig()
    candidates = collect_candidates(geometries, center, mode, None, collector)
    shape_relative = shape.relative_length if shape is not None else 0.0
    scored = [(heuristic_score(c, shape_relative, center, config.heuristic_proximity_km), c) for c in candidates]
    scored.sort(key=lambda pair: (-pair[0], pair[1].order))

    routes = []
    for i, (score, c) in enumerate(scored[: config.heuristic_max_routes]):
        way = c.tags.get("highway", "path")
        base = c.tags.get("name") or f"Approximate route {i + 1}"
        routes.append(
            Route(
                route_name=f"≈ {base}"[:35],
                description=f"Approximate match (heuristic) - {way} - {c.distance_km:.1f} km",
                distance_km=round(c.distance_km, 2),
                duration_min=int(round(c.estimated_duration_min)),
                similarity_score=round(score, 2),
                path=list(c.geo_path),
                source="heuristic",
                confidence_tier="low",
            )
        )
    return routes


def default_seed(center: Point) -> int:
    """Stable seed per location, so placeholder loops do not change between calls."""
    lat, lon = center
    return (int(round(abs(lat) * 1e4)) * 100003 + int(round(abs(lon) * 1e4))) % (2**32)


def _trace_unit_path(unit_points: np.ndarray, center: Point, radius_deg: float) -> np.ndarray:
    """Map unit-frame points (y down) onto (lat, lon) around a center."""
    lat0, lon0 = center
    cos_lat = max(math.cos(math.radians(lat0)), 1e-6)
    shifted = unit_points - unit_points.mean(axis=0)
    lats = lat0 - shifted[:, 1] * 2 * radius_deg
    lons = lon0 + shifted[:, 0] * 2 * radius_deg / cos_lat
    return np.column_stack([lats, lons])


def synthesize_routes(
    center: Point,
    mode: TransportMode,
    shape: ShapeFeatures | None = None,
    config: FallbackConfig | None = None,
    collector: CollectorConfig | None = None,
    place: str = "",
) -> list[Route]:
    """Deterministic placeholder loops around the center. Never empty."""
    config = config or FallbackConfig()
    collector = collector or CollectorConfig()
    seed = config.synthetic_seed if config.synthetic_seed is not None else default_seed(center)
    rng = np.random.default_rng(seed)
    where = f" near {place}" if place else ""

    routes = []
    for i in range(max(1, config.synthetic_count)):
        radius = config.synthetic_radius_deg * (1 + 0.5 * i)
        if shape is not None:
            unit = np.asarray(shape.signature.points)
            geo = _trace_unit_path(unit, center, radius)
            geo += rng.normal(0.0, radius * 0.05, size=geo.shape)
            label = f"{shape.shape_type} outline"
        else:
            n = 12
            angles = np.linspace(0, 2 * np.pi, n, endpoint=False)
            r = radius * (0.7 + 0.3 * rng.random(n))
            cos_lat = max(math.cos(math.radians(center[0])), 1e-6)
            geo = np.column_stack([center[0] + r * np.cos(angles), center[1] + r * np.sin(angles) / cos_lat])
            geo = np.vstack([geo, geo[:1]])
            label = "loop"

        path = [(float(lat), float(lon)) for lat, lon in geo]
        distance = polyline_length_km(path)
        routes.append(
            Route(
                route_name=f"🔄 Placeholder {label} {i + 1}"[:35],
                description=f"Synthetic placeholder{where} for {mode.value}; no street data was available",
                distance_km=round(distance, 2),
                duration_min=int(round(distance / collector.speed_for(mode) * 60)),
                similarity_score=round(max(0.05, 0.2 - 0.05 * i), 2),
                path=path,
                source="synthetic",
                confidence_tier="low",
            )
        )
    return routes


# ---------------------------------------------------------------------------
# Async state machine
# ---------------------------------------------------------------------------


class FallbackStrategy:
    def __init__(
        self,
        provider: StreetNetworkProvider,
        config: EngineConfig | None = None,
        primary_timeout_s: float = 45.0,
        degraded_timeout_s: float = 15.0,
    ) -> None:
        self.provider = provider
        self.config = config or EngineConfig()
        self.primary_timeout_s = primary_timeout_s
        self.degraded_timeout_s = degraded_timeout_s

    def _max_way_length_m(self, location: ResolvedLocation) -> float | None:
        factor = self.config.fallback.max_way_length_factor
        if not factor:
            return None
        return factor * bbox_diagonal_km(location.bbox) * 1000

    async def _fetch(
        self,
        bbox: tuple[float, float, float, float],
        way_classes: list[str],
        timeout_s: float,
        max_length_m: float | None = None,
    ) -> list[RawGeometry]:
        loop = asyncio.get_running_loop()
        call = functools.partial(self.provider.fetch, bbox, way_classes, timeout_s, max_length_m)
        return await asyncio.wait_for(loop.run_in_executor(None, call), timeout=timeout_s)

    async def run(
        self,
        shape: ShapeFeatures,
        location: ResolvedLocation,
        mode: TransportMode | str = TransportMode.WALKING,
        creativity: Creativity | str = Creativity.BALANCED,
    ) -> FallbackResult:
        mode = TransportMode(mode)
        creativity = Creativity(creativity)
        cfg = self.config
        loop = asyncio.get_running_loop()
        notes: list[str] = []
        stage = FallbackStage.PRIMARY

        while stage != FallbackStage.DONE:
            start = time.perf_counter()
            routes: list[Route] = []
            try:
                if stage == FallbackStage.PRIMARY:
                    geometries = await self._fetch(
                        location.bbox,
                        cfg.collector.way_classes_for(mode),
                        self.primary_timeout_s,
                        self._max_way_length_m(location),
                    )
                    routes = await loop.run_in_executor(
                        None,
                        functools.partial(primary_routes, shape, geometries, location.center, mode, creativity, cfg),
                    )
                elif stage == FallbackStage.DEGRADED:
                    geometries = await self._fetch(
                        widen_bbox(location.bbox, cfg.fallback.widen_factor),
                        cfg.collector.way_classes_for(mode, widened=True),
                        self.degraded_timeout_s,
                    )
                    routes = heuristic_routes(shape, geometries, location.center, mode, cfg.collector, cfg.fallback)
                else:
                    routes = synthesize_routes(
                        location.center, mode, shape, cfg.fallback, cfg.collector, location.display_name
                    )
            except (DataProviderUnavailable, asyncio.TimeoutError) as e:
                reason = str(e) or type(e).__name__
                notes.append(f"{stage.value}: {reason}")
                logger.warning("Fallback stage %s failed: %s", stage.value, reason)
            except Exception as e:
                notes.append(f"{stage.value}: {type(e).__name__}")
                logger.exception("Fallback stage %s raised unexpectedly", stage.value)
            else:
                logger.info(
                    "Fallback stage %s produced %d routes in %.1fms",
                    stage.value,
                    len(routes),
                    (time.perf_counter() - start) * 1000,
                )
                if routes:
                    return FallbackResult(routes=routes, stage=stage, notes=notes)
                notes.append(f"{stage.value}: no routes")

            stage = _NEXT_STAGE[stage]

        # Unreachable: the synthetic stage always yields routes
        return FallbackResult(routes=[], stage=FallbackStage.DONE, notes=notes)


_NEXT_STAGE = {
    FallbackStage.PRIMARY: FallbackStage.DEGRADED,
    FallbackStage.DEGRADED: FallbackStage.SYNTHETIC,
    FallbackStage.SYNTHETIC: FallbackStage.DONE,
}
