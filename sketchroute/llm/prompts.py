"""Prompt templates for AI route generation."""

from __future__ import annotations

_ROUTE_TEMPLATE = """You are a precision geospatial route matcher. Find real, navigable routes in "{location}" for {mode} that GEOMETRICALLY match the structure of the drawn shape below, not just its artistic impression.

=== SHAPE GEOMETRY (auto-computed) ===
{description}

Normalized outline (x right, y down, unit square):
{outline}

MATCHING CRITERIA (in order of importance):
1. Same general form ({form}), similar aspect ratio ({aspect:.2f}), comparable corner count ({corners}), matching complexity ({complexity:.0f}%).
2. Similar turning patterns and directional changes when plotted.
3. Any size is fine as long as proportions are kept.

SIMILARITY SCORE GUIDE: 0.9-1.0 precise geometric match; 0.8-0.89 clear correspondence with minor deviations; 0.7-0.79 recognizable structure; 0.6-0.69 shares key elements. Do NOT return routes below 0.6.

OUTPUT: ONLY a JSON array. Each element:
{{"route_name": str, "description": str, "distance_km": float, "duration_min": float, "similarity_score": float, "path": [[lat, lon], ...]}}"""

_TEMPLATES = {
    "routes": _ROUTE_TEMPLATE,
}


def get_prompt_template(task: str) -> str:
    return _TEMPLATES.get(task, _ROUTE_TEMPLATE)
