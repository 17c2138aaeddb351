"""Input guards shared by the metrics."""

from __future__ import annotations

import numpy as np

from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.errors import MetricComputationError


def require_paths(a: NormalizedPath, b: NormalizedPath, min_points: int = 1) -> tuple[np.ndarray, np.ndarray]:
    """Return both point arrays, or raise MetricComputationError if either is unusable."""
    pa = np.asarray(a.points, dtype=np.float64)
    pb = np.asarray(b.points, dtype=np.float64)
    for name, pts in (("shape", pa), ("candidate", pb)):
        if pts.ndim != 2 or pts.shape[1] != 2 or len(pts) < min_points:
            raise MetricComputationError(f"{name} path has no usable points")
        if not np.all(np.isfinite(pts)):
            raise MetricComputationError(f"{name} path contains non-finite coordinates")
    return pa, pb
