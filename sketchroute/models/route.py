"""Route — the ranked, display-ready output of every search strategy."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

RouteSource = Literal["street_network", "heuristic", "synthetic", "ai"]
ConfidenceTier = Literal["high", "medium", "low"]


class Route(BaseModel):
    route_name: str
    description: str = ""
    distance_km: float = Field(ge=0)
    duration_min: int = Field(ge=0)
    similarity_score: float = Field(ge=0, le=1)
    # Set only for routes whose geometry was validated against the drawing after the fact
    geometric_similarity: float | None = Field(default=None, ge=0, le=1)
    # (lat, lon) pairs
    path: list[tuple[float, float]] = Field(default_factory=list)
    matching_issues: list[str] | None = None
    source: RouteSource = "street_network"
    confidence_tier: ConfidenceTier | None = None
