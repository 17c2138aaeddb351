"""T1.03 — Curvature Profile.

Discrete (Menger) curvature 4·area / (d01·d12·d02) for each interior triple
of the normalized path. Coincident points or collinear triples count as
locally straight (0).
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import curvature_profile as menger_profile


@transform(
    id="T1.03",
    layer=Layer.SHAPE_ANALYSIS,
    dependencies=["T0.02"],
    description="Menger curvature along the normalized path",
)
def curvature_profile(ctx: AnalysisContext) -> None:
    kappa = menger_profile(ctx.normalized)
    if len(kappa) == 0:
        ctx.features["curvature"] = ()
        ctx.features["curvature_variance"] = 0.0
        return

    ctx.features["curvature"] = tuple(round(float(k), 6) for k in kappa)
    ctx.features["curvature_variance"] = float(np.var(kappa))
