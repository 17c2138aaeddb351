"""POST /api/shape/analyze — drawing validation + geometric feature summary."""

from __future__ import annotations

import asyncio
import functools
import time

import numpy as np
from fastapi import APIRouter, Depends

from sketchroute.dependencies import get_engine_config
from sketchroute.engine.analyzer import analyze_shape, describe_shape, validate_drawing
from sketchroute.engine.config import EngineConfig
from sketchroute.engine.context import ShapeFeatures
from sketchroute.models.requests import AnalyzeShapeRequest
from sketchroute.models.responses import AnalyzeShapeResponse, ShapeSummary, ShapeValidationModel

router = APIRouter()


def summarize(features: ShapeFeatures) -> ShapeSummary:
    return ShapeSummary(
        shape_type=features.shape_type,
        shape_confidence=round(features.shape_confidence, 2),
        is_closed=features.is_closed,
        aspect_ratio=round(features.aspect_ratio, 3),
        complexity=round(features.complexity, 3),
        corner_count=len(features.corners),
        sharp_turns=features.sharp_turns,
        straightness=round(features.straightness, 3),
        symmetry={
            "horizontal": round(features.symmetry.horizontal, 3),
            "vertical": round(features.symmetry.vertical, 3),
        },
        normalized_path=[(float(x), float(y)) for x, y in np.asarray(features.signature.points)],
        description=describe_shape(features),
        errors=dict(features.errors),
    )


@router.post("/shape/analyze", response_model=AnalyzeShapeResponse)
async def analyze(req: AnalyzeShapeRequest, config: EngineConfig = Depends(get_engine_config)) -> AnalyzeShapeResponse:
    start = time.perf_counter()
    drawing = [list(stroke) for stroke in req.strokes]
    validation = validate_drawing(drawing, config.analyzer)

    summary = None
    if validation.is_valid:
        loop = asyncio.get_running_loop()
        features = await loop.run_in_executor(
            None, functools.partial(analyze_shape, drawing, config.analyzer, config.normalizer)
        )
        summary = summarize(features)

    return AnalyzeShapeResponse(
        validation=ShapeValidationModel(
            is_valid=validation.is_valid,
            issues=validation.issues,
            recommendations=validation.recommendations,
        ),
        shape=summary,
        processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
    )
