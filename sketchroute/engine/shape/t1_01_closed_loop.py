"""T1.01 — Closed-Loop Test.

Closed iff the gap between first and last point is within a fixed share of
the shorter bounding-box side.
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, transform


def is_closed_path(points: np.ndarray, width: float, height: float, tolerance: float) -> bool:
    if len(points) < 3:
        return False
    gap = float(np.linalg.norm(points[-1] - points[0]))
    return gap <= tolerance * min(width, height)


@transform(
    id="T1.01",
    layer=Layer.SHAPE_ANALYSIS,
    dependencies=["T0.01"],
    description="Detect whether the stroke returns to its start",
)
def closed_loop(ctx: AnalysisContext) -> None:
    box = ctx.bbox
    ctx.features["is_closed"] = is_closed_path(ctx.points, box.width, box.height, ctx.config.closed_tolerance)
