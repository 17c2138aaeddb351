"""AI route generation via LangChain ChatAnthropic.

The model proposes Route-shaped JSON; every proposal is sanitized, then
checked geometrically against the drawing before it is returned.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import numpy as np
from pydantic import ValidationError

from sketchroute.config import settings
from sketchroute.engine.analyzer import describe_shape
from sketchroute.engine.context import ShapeFeatures, TransportMode
from sketchroute.engine.validation import validate_route_match
from sketchroute.llm.prompts import get_prompt_template
from sketchroute.models.route import Route

logger = logging.getLogger(__name__)

MAX_PATH_POINTS = 1000
MAX_TEXT_LENGTH = 500
MIN_GEOMETRIC_SIMILARITY = 0.3
MIN_MODEL_SCORE = 0.6
# Returned when nothing passes both thresholds
BEST_EFFORT_COUNT = 3


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return re.sub(r"[<>]", "", value[:MAX_TEXT_LENGTH]).strip()


def _clamp(value: Any, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    if not np.isfinite(number):
        return low
    return min(high, max(low, number))


def _clean_path(path: Any) -> list[tuple[float, float]]:
    if not isinstance(path, list):
        return []
    points = [
        (_clamp(p[0], -90, 90), _clamp(p[1], -180, 180))
        for p in path
        if isinstance(p, (list, tuple)) and len(p) == 2
    ]
    return points[:MAX_PATH_POINTS]


def sanitize_route_data(item: dict[str, Any]) -> dict[str, Any]:
    """Clamp numbers, trim strings and cap the path of one model-proposed route."""
    return {
        "route_name": _clean_text(item.get("route_name") or item.get("routeName")) or "AI route",
        "description": _clean_text(item.get("description")),
        "distance_km": round(_clamp(item.get("distance_km", item.get("distance")), 0, 1000), 2),
        "duration_min": int(round(_clamp(item.get("duration_min", item.get("duration")), 0, 10000))),
        "similarity_score": _clamp(item.get("similarity_score", item.get("similarityScore")), 0, 1),
        "path": _clean_path(item.get("path")),
    }


def parse_route_json(text: str) -> list[dict[str, Any]]:
    """Extract the JSON array from a model reply, tolerating code fences and chatter."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned).strip()
    match = re.search(r"\[[\s\S]*\]", cleaned)
    if match:
        cleaned = match.group(0)
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("AI route reply is not valid JSON: %s", e)
        return []
    if not isinstance(data, list):
        logger.warning("AI route reply is not a JSON array")
        return []
    return [item for item in data if isinstance(item, dict)]


def validate_and_filter(items: list[dict[str, Any]], shape: ShapeFeatures) -> list[Route]:
    """Geometric validation, then keep routes passing both thresholds (or the best few)."""
    validated: list[Route] = []
    for item in items:
        data = sanitize_route_data(item)
        if len(data["path"]) < 2:
            continue
        check = validate_route_match(data["path"], shape)
        try:
            validated.append(
                Route(
                    **data,
                    geometric_similarity=round(check.geometric_similarity, 2),
                    matching_issues=check.issues or None,
                    source="ai",
                )
            )
        except ValidationError as e:
            logger.debug("Dropping malformed AI route: %s", e)

    validated.sort(key=lambda r: -(r.similarity_score + (r.geometric_similarity or 0.0)) / 2)
    passed = [
        r
        for r in validated
        if (r.geometric_similarity or 0.0) >= MIN_GEOMETRIC_SIMILARITY and r.similarity_score >= MIN_MODEL_SCORE
    ]
    if not passed:
        logger.info("No AI route passed geometric validation (%d proposed)", len(validated))
        return validated[:BEST_EFFORT_COUNT]
    return passed


def build_prompt(shape: ShapeFeatures, location: str, mode: TransportMode) -> str:
    outline = " ".join(f"{x:.2f},{y:.2f}" for x, y in np.asarray(shape.signature.points))
    return get_prompt_template("routes").format(
        location=location,
        mode=mode.value,
        description=describe_shape(shape),
        outline=outline,
        form="closed loop" if shape.is_closed else "open path",
        aspect=shape.aspect_ratio,
        corners=len(shape.corners),
        complexity=shape.complexity * 100,
    )


async def generate_ai_routes(
    shape: ShapeFeatures,
    location: str,
    mode: TransportMode | str = TransportMode.WALKING,
) -> list[Route]:
    """Ask the model for routes. Returns [] when no API key is configured."""
    if not settings.anthropic_api_key:
        logger.info("AI route generation skipped: ANTHROPIC_API_KEY not set")
        return []

    from langchain_anthropic import ChatAnthropic
    from langchain_core.messages import HumanMessage

    llm = ChatAnthropic(
        model=settings.model_routes,
        api_key=settings.anthropic_api_key,
        max_tokens=4096,
        temperature=0.4,
    )
    response = await llm.ainvoke([HumanMessage(content=build_prompt(shape, location, TransportMode(mode)))])
    routes = validate_and_filter(parse_route_json(str(response.content)), shape)
    logger.info("AI proposed %d usable routes for %r", len(routes), location)
    return routes
