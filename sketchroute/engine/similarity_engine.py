"""SimilarityEngine — scores candidates against a shape with every registered metric.

Each (candidate, metric) pair is evaluated independently; a metric that
raises is logged and scored at ``metric_floor`` so one malformed geometry
never aborts the batch.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from sketchroute.engine.config import NormalizerConfig, SimilarityConfig
from sketchroute.engine.context import NormalizedPath, RouteCandidate, Unit, frozen_array
from sketchroute.engine.errors import MetricComputationError
from sketchroute.engine.normalizer import normalize_path
from sketchroute.engine.registry import MetricRegistry, get_metric_registry, load_builtins

logger = logging.getLogger(__name__)


def reversed_path(path: NormalizedPath) -> NormalizedPath:
    return NormalizedPath(points=frozen_array(np.asarray(path.points)[::-1]), unit=path.unit)


class SimilarityEngine:
    """Weighted-ensemble metric evaluator. Stateless apart from its config."""

    def __init__(
        self,
        config: SimilarityConfig | None = None,
        normalizer: NormalizerConfig | None = None,
        registry: MetricRegistry | None = None,
    ) -> None:
        self.config = config or SimilarityConfig()
        self.normalizer = normalizer or NormalizerConfig()
        if registry is None:
            load_builtins()
            registry = get_metric_registry()
        self.registry = registry

    @property
    def metric_ids(self) -> list[str]:
        return self.registry.ids()

    def evaluate(self, metric_id: str, shape_path: NormalizedPath, candidate_path: NormalizedPath) -> float:
        """One metric, clamped to [0, 1]; failures become the floor score."""
        spec = self.registry.get(metric_id)
        try:
            value = float(spec.fn(shape_path, candidate_path, self.config))
            if not np.isfinite(value):
                raise MetricComputationError(f"{metric_id} produced {value}")
        except Exception as e:
            logger.warning("Metric %s failed, scoring %.2f: %s", metric_id, self.config.metric_floor, e)
            return self.config.metric_floor
        return min(1.0, max(0.0, value))

    def candidate_path(self, candidate: RouteCandidate) -> NormalizedPath:
        return normalize_path(candidate.geo_path, Unit.DEGREES, self.normalizer)

    def score_paths(self, shape_path: NormalizedPath, candidate_path: NormalizedPath) -> dict[str, float]:
        """All metrics for one pair of paths.

        Streets carry no drawing direction, so when ``direction_agnostic`` is
        set the candidate is also scored reversed and each metric keeps the
        better of the two traversals.
        """
        scores = {mid: self.evaluate(mid, shape_path, candidate_path) for mid in self.metric_ids}
        if self.config.direction_agnostic:
            backwards = reversed_path(candidate_path)
            for mid in self.metric_ids:
                scores[mid] = max(scores[mid], self.evaluate(mid, shape_path, backwards))
        return scores

    def score(self, shape_path: NormalizedPath, candidate: RouteCandidate) -> RouteCandidate:
        try:
            path = self.candidate_path(candidate)
        except Exception as e:
            logger.warning("Candidate %s could not be normalized: %s", candidate.source_id, e)
            floor = {mid: self.config.metric_floor for mid in self.metric_ids}
            return dataclasses.replace(candidate, metric_scores=floor)
        return dataclasses.replace(candidate, metric_scores=self.score_paths(shape_path, path))

    def score_all(self, shape_path: NormalizedPath, candidates: list[RouteCandidate]) -> list[RouteCandidate]:
        """Score a batch concurrently. Output order is input order."""
        if not candidates:
            return []
        start = time.perf_counter()
        workers = max(1, min(self.config.max_workers, os.cpu_count() or 1, len(candidates)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            scored = list(pool.map(lambda c: self.score(shape_path, c), candidates))
        logger.info(
            "Scored %d candidates with %d metrics in %.1fms",
            len(scored),
            len(self.metric_ids),
            (time.perf_counter() - start) * 1000,
        )
        return scored
