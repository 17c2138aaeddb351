"""Tests for the SimilarityEngine."""

from __future__ import annotations

import numpy as np
import pytest

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import RouteCandidate
from sketchroute.engine.registry import MetricRegistry, MetricSpec
from sketchroute.engine.similarity_engine import SimilarityEngine
from tests.conftest import make_candidate, random_unit_path


def _boom(a, b, config) -> float:
    raise ZeroDivisionError("bad geometry")


def _nan(a, b, config) -> float:
    return float("nan")


def test_failing_metric_scored_at_floor(square_shape):
    reg = MetricRegistry()
    reg.register(MetricSpec(id="boom", fn=_boom))
    reg.register(MetricSpec(id="nan", fn=_nan))
    engine = SimilarityEngine(SimilarityConfig(metric_floor=0.1), registry=reg)

    scored = engine.score(square_shape.signature, make_candidate(square_shape.signature.points))

    assert scored.metric_scores == {"boom": 0.1, "nan": 0.1}


def test_exact_copy_scores_one_everywhere(square_shape):
    engine = SimilarityEngine()
    scored = engine.score(square_shape.signature, make_candidate(square_shape.signature.points))
    assert set(scored.metric_scores) == {"dtw", "hausdorff", "fourier", "feature", "spatial"}
    for value in scored.metric_scores.values():
        assert value == pytest.approx(1.0, abs=0.01)


def test_reversed_copy_scores_like_forward_copy(square_shape):
    engine = SimilarityEngine()
    reversed_points = np.asarray(square_shape.signature.points)[::-1]
    scored = engine.score(square_shape.signature, make_candidate(reversed_points))
    assert scored.metric_scores["dtw"] == pytest.approx(1.0, abs=0.01)


def test_score_all_preserves_order(square_shape):
    candidates = [make_candidate(random_unit_path(seed), order=seed) for seed in range(8)]
    scored = SimilarityEngine(SimilarityConfig(max_workers=4)).score_all(square_shape.signature, candidates)
    assert [c.order for c in scored] == list(range(8))
    assert all(0.0 <= v <= 1.0 for c in scored for v in c.metric_scores.values())


def test_scoring_does_not_mutate_input(square_shape):
    candidate = make_candidate(square_shape.signature.points)
    SimilarityEngine().score(square_shape.signature, candidate)
    assert candidate.metric_scores == {}


def test_unnormalizable_candidate_floored(square_shape):
    broken = RouteCandidate(
        geo_path=(("a", "b"), ("c", "d")),
        source_id="broken",
        tags={},
        distance_km=0.0,
        estimated_duration_min=0.0,
    )
    scored = SimilarityEngine().score(square_shape.signature, broken)
    assert set(scored.metric_scores.values()) == {0.1}


def test_empty_batch():
    assert SimilarityEngine().score_all(None, []) == []
