"""Scalar-feature similarity.

Aspect ratio, turn complexity and straightness of both normalized paths,
compared by normalized absolute difference and averaged.
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.registry import metric
from sketchroute.engine.similarity.checks import require_paths
from sketchroute.utils.geometry import aspect_ratio, straightness, turn_complexity


def _relative_agreement(x: float, y: float) -> float:
    top = max(abs(x), abs(y))
    if top == 0:
        return 1.0
    return 1.0 - abs(x - y) / top


@metric(id="feature", description="Aspect ratio, complexity and straightness agreement")
def feature_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
    pa, pb = require_paths(a, b, min_points=2)
    scores = [
        _relative_agreement(aspect_ratio(pa), aspect_ratio(pb)),
        1.0 - abs(turn_complexity(pa) - turn_complexity(pb)),
        1.0 - abs(straightness(pa) - straightness(pb)),
    ]
    return float(np.clip(np.mean(scores), 0.0, 1.0))
