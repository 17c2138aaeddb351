"""T0.02 — Unit-Frame Normalization.

Two views of the drawing in the unit square: every flattened point
(``normalized_path``) and the fixed-count, equally spaced signature the
similarity engine compares against candidates.
"""

from __future__ import annotations

from sketchroute.engine.context import AnalysisContext, Unit, frozen_array
from sketchroute.engine.normalizer import normalize_path
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import normalize_to_unit


@transform(
    id="T0.02",
    layer=Layer.GEOMETRY,
    dependencies=["T0.01"],
    description="Aspect-preserving unit-square normalization and resampled signature",
)
def normalization(ctx: AnalysisContext) -> None:
    ctx.features["normalized_path"] = frozen_array(normalize_to_unit(ctx.points))
    ctx.features["signature"] = normalize_path(ctx.points, Unit.PIXELS, ctx.normalizer)
