"""Spatial / reference similarity.

A fixed number of index-corresponding samples from both paths; similarity =
exp(-mean distance / reference scale), distances in the unit frame.
"""

from __future__ import annotations

import math

import numpy as np

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.registry import metric
from sketchroute.engine.similarity.checks import require_paths


def sample_indices(length: int, count: int) -> np.ndarray:
    return np.round(np.linspace(0, length - 1, count)).astype(int)


@metric(id="spatial", description="Mean distance between index-corresponding samples")
def spatial_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
    pa, pb = require_paths(a, b)
    count = min(config.spatial_samples, len(pa), len(pb))
    sa = pa[sample_indices(len(pa), count)]
    sb = pb[sample_indices(len(pb), count)]
    mean_distance = float(np.mean(np.linalg.norm(sa - sb, axis=1)))
    return math.exp(-mean_distance / config.spatial_reference_scale)
