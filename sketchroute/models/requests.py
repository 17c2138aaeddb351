"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sketchroute.engine.context import Creativity, TransportMode
from sketchroute.engine.search import SearchStrategy


class DrawingPayload(BaseModel):
    strokes: list[list[tuple[float, float]]] = Field(
        ...,
        description="Strokes of (x, y) pixel points, in drawing order",
    )


class AnalyzeShapeRequest(DrawingPayload):
    pass


class GeometryPayload(BaseModel):
    id: str = Field(..., description="Source identifier (e.g. OSM way id)")
    points: list[tuple[float, float]] = Field(..., description="(lat, lon) pairs")
    tags: dict[str, str] = Field(default_factory=dict)


class MatchRequest(DrawingPayload):
    geometries: list[GeometryPayload] = Field(default_factory=list)
    center: tuple[float, float] | None = Field(default=None, description="Search center (lat, lon)")
    mode: TransportMode = TransportMode.WALKING
    creativity: Creativity = Creativity.BALANCED
    fallback: bool = Field(default=True, description="Fall back to heuristic/synthetic routes when none match")


class SearchRequest(DrawingPayload):
    location: str = Field(..., description="Place name to search around")
    mode: TransportMode = TransportMode.WALKING
    creativity: Creativity = Creativity.BALANCED
    strategy: SearchStrategy = SearchStrategy.GEOMETRIC
