"""T1.02 — Corner / Sharp-Turn Detection.

Interior vertex angle from the incoming and outgoing edge vectors
(arccos of their normalized dot product). Below 135° the vertex is a
corner, below 90° it is also a sharp turn. On a closed stroke the seam
vertex where the pen returned to its start is tested too, so a drawn
square reports four corners rather than three.
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import interior_angles


def dedupe_consecutive(points: np.ndarray, min_step: float) -> np.ndarray:
    """Drop points closer than ``min_step`` to the previously kept point."""
    if len(points) == 0:
        return points
    kept = [points[0]]
    for p in points[1:]:
        if np.linalg.norm(p - kept[-1]) > min_step:
            kept.append(p)
    return np.array(kept)


def vertex_angles(points: np.ndarray, closed: bool) -> tuple[np.ndarray, np.ndarray]:
    """Return (vertex indices, interior angles in degrees)."""
    if closed and len(points) >= 4:
        # Wrap around so the seam vertex (index 0) has both neighbours
        wrapped = np.vstack([points[-1:], points, points[:1]])
        return np.arange(len(points)), interior_angles(wrapped)
    return np.arange(1, len(points) - 1), interior_angles(points)


@transform(
    id="T1.02",
    layer=Layer.SHAPE_ANALYSIS,
    dependencies=["T0.01", "T1.01"],
    description="Detect corners (<135°) and sharp turns (<90°)",
)
def corner_detection(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    pts = dedupe_consecutive(ctx.points, cfg.duplicate_px)
    closed = bool(ctx.features.get("is_closed", False))
    if closed and len(pts) > 3 and np.linalg.norm(pts[-1] - pts[0]) <= cfg.duplicate_px:
        # Stroke ends exactly on its start; the seam vertex is pts[0]
        pts = pts[:-1]

    if len(pts) < 3:
        ctx.features["corners"] = ()
        ctx.features["corner_angles"] = []
        ctx.features["sharp_turns"] = 0
        return

    indices, angles = vertex_angles(pts, closed)
    mask = np.nan_to_num(angles, nan=180.0) < cfg.corner_angle_deg

    ctx.features["corners"] = tuple((float(pts[i, 0]), float(pts[i, 1])) for i in indices[mask])
    ctx.features["corner_angles"] = [round(float(a), 1) for a in angles[mask]]
    ctx.features["sharp_turns"] = int(np.sum(np.nan_to_num(angles, nan=180.0) < cfg.sharp_turn_angle_deg))
