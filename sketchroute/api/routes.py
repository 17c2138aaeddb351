"""POST /api/routes/match and /api/routes/search."""

from __future__ import annotations

import asyncio
import functools
import time

from fastapi import APIRouter, Depends

from sketchroute.dependencies import get_engine_config, get_search_service
from sketchroute.engine.analyzer import analyze_shape
from sketchroute.engine.config import EngineConfig
from sketchroute.engine.context import RawGeometry, ResolvedLocation
from sketchroute.engine.matcher import find_matching_routes, find_matching_routes_with_fallback
from sketchroute.engine.search import RouteSearchService
from sketchroute.models.requests import MatchRequest, SearchRequest
from sketchroute.models.responses import LocationModel, RoutesResponse

router = APIRouter()


def _location_model(location: ResolvedLocation) -> LocationModel:
    return LocationModel(center=location.center, bbox=location.bbox, display_name=location.display_name)


def _match(req: MatchRequest, config: EngineConfig) -> RoutesResponse:
    shape = analyze_shape([list(s) for s in req.strokes], config.analyzer, config.normalizer)
    geometries = [RawGeometry(id=g.id, points=tuple(g.points), tags=g.tags) for g in req.geometries]
    if req.fallback:
        result = find_matching_routes_with_fallback(shape, geometries, req.mode, req.creativity, req.center, config)
        return RoutesResponse(routes=result.routes, stage=result.stage.value, notes=result.notes)
    routes = find_matching_routes(shape, geometries, req.mode, req.creativity, req.center, config)
    return RoutesResponse(routes=routes, stage="primary")


@router.post("/routes/match", response_model=RoutesResponse)
async def match(req: MatchRequest, config: EngineConfig = Depends(get_engine_config)) -> RoutesResponse:
    start = time.perf_counter()
    loop = asyncio.get_running_loop()
    response = await loop.run_in_executor(None, functools.partial(_match, req, config))
    response.processing_time_ms = round((time.perf_counter() - start) * 1000, 1)
    return response


@router.post("/routes/search", response_model=RoutesResponse)
async def search(
    req: SearchRequest,
    service: RouteSearchService = Depends(get_search_service),
) -> RoutesResponse:
    start = time.perf_counter()
    outcome = await service.search(
        [list(s) for s in req.strokes],
        req.location,
        req.mode,
        req.creativity,
        req.strategy,
    )
    return RoutesResponse(
        routes=outcome.routes,
        stage=outcome.stage.value if outcome.stage else None,
        strategy=outcome.strategy.value,
        location=_location_model(outcome.location),
        notes=outcome.notes,
        processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
    )
