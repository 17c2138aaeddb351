"""T2.01 — Shape Class Labeling.

Heuristic decision tree over corner count, corner-angle spread, the closed
flag and the spread of radial distances from the centroid:

  closed, ≤2 corners, radial CV < 0.12        → "circle"
  closed, 4 corners                           → "rectangle"
  closed, 3 corners                           → "triangle"
  open, straight, no corners                  → "line"
  open, ≥2 sharp turns and ≥3 corners         → "zigzag"
  open, radial distance keeps growing/shrinking → "spiral"
  open, ≤2 corners                            → "curve"
  otherwise                                   → "complex"

Labels are informational; nothing in matching reads them.
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import centroid_distances

# Coefficient of variation of radial distance: a hand-drawn circle stays under ~10%.
_RADIAL_CV_CIRCLE = 0.12
# Looser bound for a many-sided closed polygon read as a circle.
_RADIAL_CV_ROUND = 0.2
# Right angles within ±20° count as rectangular.
_RIGHT_ANGLE_TOLERANCE = 20.0
# Straightness above 0.95 = end-to-end distance within 5% of the drawn length.
_STRAIGHT_LINE = 0.95
# Spiral: radial distance moves the same way on 70% of steps.
_SPIRAL_MONOTONIC = 0.7
_SPIRAL_MIN_POINTS = 10


def _radial_cv(points: np.ndarray) -> float:
    dists = centroid_distances(points)
    mean = float(np.mean(dists)) if len(dists) else 0.0
    if mean < 1e-10:
        return float("inf")
    return float(np.std(dists) / mean)


def _is_spiral(points: np.ndarray) -> bool:
    if len(points) < _SPIRAL_MIN_POINTS:
        return False
    steps = np.diff(centroid_distances(points))
    increasing = int(np.sum(steps > 0))
    decreasing = int(np.sum(steps < 0))
    return max(increasing, decreasing) > _SPIRAL_MONOTONIC * len(steps)


def classify_shape(
    normalized: np.ndarray,
    corner_angles: list[float],
    is_closed: bool,
    straightness: float,
    sharp_turns: int,
) -> tuple[str, float]:
    """Return (label, confidence). Pure function of the given features."""
    pts = np.asarray(normalized, dtype=np.float64)
    n_corners = len(corner_angles)

    if len(pts) < 3:
        return "line", 0.9

    if is_closed:
        radial_cv = _radial_cv(pts)
        if n_corners <= 2 and radial_cv < _RADIAL_CV_CIRCLE:
            return "circle", 0.8
        if n_corners == 4:
            right = all(abs(a - 90.0) <= _RIGHT_ANGLE_TOLERANCE for a in corner_angles)
            return "rectangle", 0.85 if right else 0.7
        if n_corners == 3:
            return "triangle", 0.7
        if radial_cv < _RADIAL_CV_ROUND and (n_corners <= 2 or np.std(corner_angles) < 30):
            return "circle", 0.6
        return "complex", 0.5

    if n_corners == 0 and straightness >= _STRAIGHT_LINE:
        return "line", 0.9
    if sharp_turns >= 2 and n_corners >= 3:
        return "zigzag", 0.6
    if _is_spiral(pts):
        return "spiral", 0.6
    if n_corners <= 2:
        return "curve", 0.6
    return "complex", 0.5


@transform(
    id="T2.01",
    layer=Layer.CLASSIFICATION,
    dependencies=["T0.02", "T1.01", "T1.02"],
    description="Label the drawing (circle/rectangle/triangle/line/curve/zigzag/spiral/complex)",
)
def shape_class_labeling(ctx: AnalysisContext) -> None:
    label, confidence = classify_shape(
        ctx.normalized,
        ctx.features.get("corner_angles", []),
        bool(ctx.features.get("is_closed", False)),
        float(ctx.features.get("straightness", 0.0)),
        int(ctx.features.get("sharp_turns", 0)),
    )
    ctx.features["shape_type"] = label
    ctx.features["shape_confidence"] = confidence
