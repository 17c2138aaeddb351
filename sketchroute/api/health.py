"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from sketchroute.engine.registry import get_metric_registry, get_registry
from sketchroute.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        transforms_registered=get_registry().count,
        metrics_registered=get_metric_registry().count,
    )
