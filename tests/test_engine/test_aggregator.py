"""Tests for profile-weighted aggregation and ranking."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from sketchroute.engine.aggregator import ScoreAggregator, metric_confidence, weighted_score
from sketchroute.engine.config import AggregatorConfig, CreativityProfile, ProfileTable
from sketchroute.engine.context import Creativity, RouteCandidate
from sketchroute.engine.similarity_engine import SimilarityEngine
from tests.conftest import make_candidate, random_unit_path

METRICS = ("dtw", "hausdorff", "fourier", "feature", "spatial")


def _with_scores(candidate: RouteCandidate, *values: float) -> RouteCandidate:
    return dataclasses.replace(candidate, metric_scores=dict(zip(METRICS, values)))


def test_profiles_sum_to_one():
    for profile in ProfileTable().profiles.values():
        assert sum(profile.weights.values()) == pytest.approx(1.0)


def test_invalid_profile_rejected():
    bad = CreativityProfile(name=Creativity.STRICT, weights={"dtw": 0.5, "hausdorff": 0.4}, min_similarity=0.6)
    with pytest.raises(ValueError, match="sum to"):
        ProfileTable(profiles={Creativity.STRICT: bad})


def test_strict_favours_alignment_metrics():
    table = ProfileTable()
    strict = table.get("strict").weights
    creative = table.get(Creativity.CREATIVE).weights
    assert strict["dtw"] > creative["dtw"]
    assert strict["hausdorff"] > creative["hausdorff"]
    assert creative["fourier"] > strict["fourier"]
    assert creative["spatial"] > strict["spatial"]


def test_weighted_score_and_confidence():
    profile = ProfileTable().get(Creativity.BALANCED)
    scores = dict(zip(METRICS, (1.0, 0.5, 1.0, 0.5, 1.0)))
    assert weighted_score(scores, profile) == pytest.approx(0.25 + 0.10 + 0.20 + 0.10 + 0.15)
    values = list(scores.values())
    assert metric_confidence(values) == pytest.approx(np.mean(values) * (1 - np.std(values)))
    assert metric_confidence([]) == 0.0


def test_thresholds_filter():
    aggregator = ScoreAggregator()
    weak = _with_scores(make_candidate([(0, 0), (1, 1)], order=0), 0.5, 0.5, 0.5, 0.5, 0.5)
    assert aggregator.rank([weak], Creativity.STRICT) == []
    assert len(aggregator.rank([weak], Creativity.BALANCED)) == 1
    # Clears the creative threshold (0.40) but the metrics disagree: confidence 0.4 * (1 - 0.49) < 0.3
    erratic = _with_scores(make_candidate([(0, 0), (1, 1)], order=1), 1.0, 0.0, 0.0, 0.0, 1.0)
    assert aggregator.rank([erratic], Creativity.CREATIVE) == []


def test_ties_keep_collection_order():
    base = make_candidate([(0, 0), (1, 1)])
    candidates = [
        _with_scores(dataclasses.replace(base, order=i, source_id=f"c{i}"), 0.8, 0.8, 0.8, 0.8, 0.8)
        for i in range(3)
    ]
    ranked = ScoreAggregator().rank(list(reversed(candidates)), Creativity.BALANCED)
    assert [c.source_id for c in ranked] == ["c0", "c1", "c2"]


def test_cap_on_routes():
    base = make_candidate([(0, 0), (1, 1)])
    candidates = [_with_scores(dataclasses.replace(base, order=i), 0.9, 0.9, 0.9, 0.9, 0.9) for i in range(8)]
    assert len(ScoreAggregator().aggregate(candidates, "balanced")) == 5
    assert len(ScoreAggregator(config=AggregatorConfig(max_routes=2)).aggregate(candidates, "balanced")) == 2


def test_route_formatting():
    candidate = _with_scores(
        make_candidate([(0, 0), (1, 0)], tags={"name": "A Very Long Street Name That Goes On", "highway": "residential", "surface": "asphalt"}),
        0.95, 0.95, 0.95, 0.95, 0.95,
    )
    route = ScoreAggregator().aggregate([candidate], Creativity.BALANCED)[0]
    assert route.route_name.startswith("⭐ A Very Long")
    assert len(route.route_name) == 35
    assert route.description.startswith("Excellent match - residential (asphalt) - ")
    assert route.confidence_tier == "high"
    assert route.source == "street_network"
    assert route.similarity_score == 0.95
    assert route.distance_km == round(candidate.distance_km, 2)
    assert route.geometric_similarity is None


def test_unnamed_route_falls_back_to_index():
    candidate = _with_scores(make_candidate([(0, 0), (1, 0)]), 0.6, 0.6, 0.6, 0.6, 0.6)
    route = ScoreAggregator().aggregate([candidate], Creativity.BALANCED)[0]
    assert route.route_name == "✓ Route 1"
    assert route.confidence_tier == "medium"


def _scored(shape, seeds=range(6)):
    candidates = [make_candidate(shape.signature.points, order=0, source_id="copy")]
    candidates += [make_candidate(random_unit_path(s), order=i + 1, source_id=f"rand{s}") for i, s in enumerate(seeds)]
    return SimilarityEngine().score_all(shape.signature, candidates)


@pytest.mark.parametrize("profile", list(Creativity))
def test_exact_duplicate_ranks_first(square_shape, profile):
    ranked = ScoreAggregator().rank(_scored(square_shape), profile)
    assert ranked[0].source_id == "copy"


def test_ranking_is_deterministic(square_shape):
    aggregator = ScoreAggregator()
    first = aggregator.aggregate(_scored(square_shape), Creativity.CREATIVE)
    second = aggregator.aggregate(_scored(square_shape), Creativity.CREATIVE)
    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]


def test_copy_versus_random_path(square_shape):
    copy = make_candidate(square_shape.signature.points, order=0, source_id="A")
    other = make_candidate(random_unit_path(42), order=1, source_id="B")
    scored_a, scored_b = SimilarityEngine().score_all(square_shape.signature, [copy, other])

    for metric_id in METRICS:
        assert scored_a.metric_scores[metric_id] == pytest.approx(1.0, abs=0.01)
        assert scored_b.metric_scores[metric_id] < 1.0

    aggregator = ScoreAggregator()
    a = aggregator.score(scored_a, Creativity.STRICT)
    b = aggregator.score(scored_b, Creativity.STRICT)
    assert a.aggregate_similarity - b.aggregate_similarity > 0.2
    assert aggregator.rank([scored_b, scored_a], Creativity.STRICT)[0].source_id == "A"


def test_aggregate_degrades_with_noise(square_shape):
    engine = SimilarityEngine()
    aggregator = ScoreAggregator()
    base = np.asarray(square_shape.signature.points)

    means = []
    for sigma in (0.0, 0.02, 0.1, 0.3):
        values = []
        for seed in range(8):
            noisy = base + np.random.default_rng(seed).normal(0.0, sigma, base.shape)
            scored = engine.score(square_shape.signature, make_candidate(noisy))
            values.append(aggregator.score(scored, Creativity.BALANCED).aggregate_similarity)
        means.append(float(np.mean(values)))

    assert means[0] == pytest.approx(1.0, abs=0.01)
    assert all(later <= earlier + 1e-9 for earlier, later in zip(means, means[1:]))
