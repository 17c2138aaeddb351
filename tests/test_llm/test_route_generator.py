"""Tests for AI route parsing and validation (no LLM calls)."""

from __future__ import annotations

import asyncio
import json

from sketchroute.config import settings
from sketchroute.engine.context import TransportMode
from sketchroute.llm.route_generator import (
    build_prompt,
    generate_ai_routes,
    parse_route_json,
    sanitize_route_data,
    validate_and_filter,
)
from tests.conftest import to_geo

SQUARE_PATH = [list(p) for p in to_geo([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0.05)])]
LINE_PATH = [list(p) for p in to_geo([(0, 0), (0.5, 0.02), (1, 0)])]


def _item(name, path, score):
    return {"route_name": name, "description": "d", "distance_km": 4, "duration_min": 48.4, "similarity_score": score, "path": path}


def test_no_api_key(monkeypatch, square_shape):
    monkeypatch.setattr(settings, "anthropic_api_key", "")
    assert asyncio.run(generate_ai_routes(square_shape, "Paris")) == []


def test_parse_fenced_json():
    reply = "Here you go:\n```json\n" + json.dumps([_item("A", SQUARE_PATH, 0.9)]) + "\n```"
    items = parse_route_json(reply)
    assert len(items) == 1
    assert items[0]["route_name"] == "A"


def test_parse_garbage():
    assert parse_route_json("no routes today") == []
    assert parse_route_json('{"route_name": "x"}') == []


def test_sanitize_clamps():
    data = sanitize_route_data(
        {
            "routeName": "<b>Loop</b>",
            "distance": "12.3456",
            "duration": -4,
            "similarityScore": 3,
            "path": [[95, 200], [10, 20], "bad", [1, 2, 3]],
        }
    )
    assert data["route_name"] == "bLoop/b"
    assert data["distance_km"] == 12.35
    assert data["duration_min"] == 0
    assert data["similarity_score"] == 1.0
    assert data["path"] == [(90.0, 180.0), (10.0, 20.0)]


def test_sanitize_defaults():
    data = sanitize_route_data({})
    assert data["route_name"] == "AI route"
    assert data["similarity_score"] == 0.0
    assert data["path"] == []


def test_validate_keeps_passing_routes(square_shape):
    routes = validate_and_filter(
        [_item("Square", SQUARE_PATH, 0.9), _item("Line", LINE_PATH, 0.9), _item("Dot", SQUARE_PATH[:1], 0.9)],
        square_shape,
    )
    assert [r.route_name for r in routes] == ["Square"]
    assert routes[0].source == "ai"
    assert routes[0].geometric_similarity >= 0.99
    assert routes[0].duration_min == 48


def test_validate_best_effort(square_shape):
    items = [_item(f"Line {i}", LINE_PATH, 0.5 + 0.1 * i) for i in range(5)]
    routes = validate_and_filter(items, square_shape)
    assert len(routes) == 3
    assert routes[0].route_name == "Line 4"
    assert all(r.matching_issues for r in routes)


def test_build_prompt(square_shape):
    prompt = build_prompt(square_shape, "Paris", TransportMode.CYCLING)
    assert '"Paris"' in prompt
    assert "cycling" in prompt
    assert "closed loop" in prompt
    assert "Type: rectangle" in prompt
