"""ScoreAggregator — per-metric scores → filtered, ranked, formatted Routes.

aggregate  = Σ weight[m] · score[m]          (profile weights sum to 1)
confidence = mean(scores) · (1 − stddev(scores))
rank key   = 0.7 · aggregate + 0.3 · confidence, ties by collection order
"""

from __future__ import annotations

import dataclasses
import logging

import numpy as np

from sketchroute.engine.config import AggregatorConfig, CreativityProfile, ProfileTable
from sketchroute.engine.context import Creativity, RouteCandidate
from sketchroute.models.route import ConfidenceTier, Route, RouteSource

logger = logging.getLogger(__name__)

_TIER_MARKERS = {"high": "⭐", "medium": "✓", "low": "~"}
_TIER_TEXT = {"high": "Excellent match", "medium": "Good match", "low": "Fair match"}


def weighted_score(scores: dict[str, float], profile: CreativityProfile) -> float:
    """Missing metrics contribute nothing."""
    total = sum(weight * scores.get(metric_id, 0.0) for metric_id, weight in profile.weights.items())
    return float(np.clip(total, 0.0, 1.0))


def metric_confidence(values: list[float]) -> float:
    if not values:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    return float(np.clip(np.mean(arr) * (1.0 - np.std(arr)), 0.0, 1.0))


class ScoreAggregator:
    def __init__(self, profiles: ProfileTable | None = None, config: AggregatorConfig | None = None) -> None:
        self.profiles = profiles or ProfileTable()
        self.config = config or AggregatorConfig()

    def score(self, candidate: RouteCandidate, creativity: Creativity | str) -> RouteCandidate:
        """Attach aggregate similarity and confidence to one scored candidate."""
        profile = self.profiles.get(creativity)
        scores = dict(candidate.metric_scores)
        values = [scores[m] for m in profile.weights if m in scores]
        return dataclasses.replace(
            candidate,
            aggregate_similarity=weighted_score(scores, profile),
            confidence=metric_confidence(values),
        )

    def ranking_key(self, candidate: RouteCandidate) -> float:
        w = self.config.similarity_weight
        return w * (candidate.aggregate_similarity or 0.0) + (1 - w) * (candidate.confidence or 0.0)

    def rank(self, candidates: list[RouteCandidate], creativity: Creativity | str) -> list[RouteCandidate]:
        """Filter by the profile's thresholds, sort, cap. Deterministic for equal input."""
        profile = self.profiles.get(creativity)
        aggregated = [self.score(c, creativity) for c in candidates]
        kept = [
            c
            for c in aggregated
            if c.aggregate_similarity >= profile.min_similarity and c.confidence >= self.config.min_confidence
        ]
        ranked = sorted(kept, key=lambda c: (-self.ranking_key(c), c.order))
        logger.info(
            "Ranked %d/%d candidates above %.2f (%s)",
            len(kept),
            len(candidates),
            profile.min_similarity,
            profile.name.value,
        )
        return ranked[: self.config.max_routes]

    def aggregate(self, candidates: list[RouteCandidate], creativity: Creativity | str) -> list[Route]:
        return [self.format_route(c, i) for i, c in enumerate(self.rank(candidates, creativity))]

    def tier(self, confidence: float) -> ConfidenceTier:
        if confidence > self.config.high_confidence:
            return "high"
        if confidence > self.config.medium_confidence:
            return "medium"
        return "low"

    def format_route(
        self,
        candidate: RouteCandidate,
        index: int,
        source: RouteSource = "street_network",
    ) -> Route:
        confidence = candidate.confidence or 0.0
        tier = self.tier(confidence)
        base_name = candidate.tags.get("name") or candidate.tags.get("highway") or f"Route {index + 1}"
        name = f"{_TIER_MARKERS[tier]} {base_name}"[: self.config.max_name_length]

        description = f"{_TIER_TEXT[tier]} - {candidate.tags.get('highway', 'path')}"
        if candidate.tags.get("surface"):
            description += f" ({candidate.tags['surface']})"
        description += f" - {candidate.distance_km:.1f} km"

        return Route(
            route_name=name,
            description=description,
            distance_km=round(candidate.distance_km, 2),
            duration_min=int(round(candidate.estimated_duration_min)),
            similarity_score=round(candidate.aggregate_similarity or 0.0, 2),
            path=[(lat, lon) for lat, lon in candidate.geo_path],
            source=source,
            confidence_tier=tier,
        )
