"""T1.04 — Symmetry Detection.

Reflect the normalized path across the horizontal and vertical axes
through its centroid; the score per axis is the fraction of points whose
mirror image lands within ``symmetry_eps`` of some path point.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import cKDTree

from sketchroute.engine.context import AnalysisContext, Symmetry
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import centroid

# Fewer points than this cannot tell symmetry from coincidence
_MIN_POINTS_SYMMETRY = 4


def mirror_match_fraction(points: np.ndarray, reflected: np.ndarray, eps: float) -> float:
    if len(points) == 0:
        return 0.0
    tree = cKDTree(points)
    dists, _ = tree.query(reflected)
    return float(np.mean(dists <= eps))


@transform(
    id="T1.04",
    layer=Layer.SHAPE_ANALYSIS,
    dependencies=["T0.02"],
    description="Horizontal and vertical mirror symmetry",
)
def symmetry_detection(ctx: AnalysisContext) -> None:
    pts = np.asarray(ctx.normalized)
    if len(pts) < _MIN_POINTS_SYMMETRY:
        ctx.features["symmetry"] = Symmetry()
        return

    cx, cy = centroid(pts)
    eps = ctx.config.symmetry_eps

    # Horizontal axis (y = cy)
    reflected = pts.copy()
    reflected[:, 1] = 2 * cy - reflected[:, 1]
    horizontal = mirror_match_fraction(pts, reflected, eps)

    # Vertical axis (x = cx)
    reflected = pts.copy()
    reflected[:, 0] = 2 * cx - reflected[:, 0]
    vertical = mirror_match_fraction(pts, reflected, eps)

    ctx.features["symmetry"] = Symmetry(horizontal=round(horizontal, 3), vertical=round(vertical, 3))
