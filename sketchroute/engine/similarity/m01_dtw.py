"""Sequence-alignment similarity (Dynamic Time Warping).

cost[i][j] = d(i, j) + min(cost[i-1][j], cost[i][j-1], cost[i-1][j-1])
similarity = exp(-cost[n][m] / max(n, m))

Tolerant of unequal lengths and local stretching along the path.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.spatial.distance import cdist

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.registry import metric
from sketchroute.engine.similarity.checks import require_paths


def dtw_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Accumulated alignment cost with Euclidean local cost.

    One row of the cost matrix at a time. Within a row,
    cost[j] = local[j] + min(above[j], cost[j-1]) unrolls into a running
    minimum over cumulative local costs, so no per-cell Python loop runs.
    """
    local = cdist(a, b)
    n, m = local.shape
    prev = np.concatenate([[0.0], np.full(m, np.inf)])
    for i in range(n):
        above = np.minimum(prev[1:], prev[:-1])
        row_sum = np.cumsum(local[i])
        before = np.concatenate([[0.0], row_sum[:-1]])
        row = np.minimum.accumulate(above - before) + row_sum
        prev = np.concatenate([[np.inf], row])
    return float(prev[-1])


@metric(id="dtw", description="Dynamic time warping alignment cost")
def dtw_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
    pa, pb = require_paths(a, b)
    return math.exp(-dtw_distance(pa, pb) / max(len(pa), len(pb)))
