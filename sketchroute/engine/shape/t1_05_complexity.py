"""T1.05 — Complexity.

Blend of corner density (corners per unit of normalized length) and the
variance of the curvature profile, each saturating at a reference value.
"""

from __future__ import annotations

from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import path_length


@transform(
    id="T1.05",
    layer=Layer.SHAPE_ANALYSIS,
    dependencies=["T0.02", "T1.02", "T1.03"],
    description="Corner density + curvature variance, clamped to [0, 1]",
)
def complexity(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    length = path_length(ctx.normalized)
    corners = len(ctx.features.get("corners", ()))

    density = corners / length if length > 0 else 0.0
    density_term = min(1.0, density / cfg.complexity_density_ref)
    variance_term = min(1.0, ctx.features.get("curvature_variance", 0.0) / cfg.complexity_variance_ref)

    ctx.features["complexity"] = round(max(0.0, min(1.0, 0.5 * density_term + 0.5 * variance_term)), 4)
