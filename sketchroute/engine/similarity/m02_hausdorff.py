"""Set-distance similarity (symmetric Hausdorff).

Directed distance = max over one set of the nearest distance to the other;
symmetric = max of both directions; similarity = exp(-k·d).
"""

from __future__ import annotations

import math

import numpy as np
from scipy.spatial.distance import cdist

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.registry import metric
from sketchroute.engine.similarity.checks import require_paths


def hausdorff_distance(a: np.ndarray, b: np.ndarray) -> float:
    d = cdist(a, b)
    forward = float(np.max(np.min(d, axis=1)))
    backward = float(np.max(np.min(d, axis=0)))
    return max(forward, backward)


@metric(id="hausdorff", description="Symmetric Hausdorff distance")
def hausdorff_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
    pa, pb = require_paths(a, b)
    return math.exp(-config.hausdorff_k * hausdorff_distance(pa, pb))
