"""Post-hoc geometric check of an externally proposed route against a drawing.

Starts from 1.0 and applies a multiplicative penalty per structural
mismatch: closed/open form, corner count, aspect ratio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from sketchroute.engine.config import AnalyzerConfig
from sketchroute.engine.context import Point, ShapeFeatures, Unit
from sketchroute.engine.normalizer import to_planar
from sketchroute.engine.shape.t1_01_closed_loop import is_closed_path
from sketchroute.engine.shape.t1_02_corner_detection import dedupe_consecutive, vertex_angles
from sketchroute.utils.geometry import aspect_ratio, bbox, normalize_to_unit

# Consecutive route points closer than this (unit frame) are one vertex
_UNIT_DUPLICATE = 1e-3


@dataclass
class RouteValidation:
    geometric_similarity: float
    issues: list[str] = field(default_factory=list)


def count_corners(points: np.ndarray, closed: bool, corner_angle_deg: float) -> int:
    pts = dedupe_consecutive(points, _UNIT_DUPLICATE)
    if closed and len(pts) > 3 and np.linalg.norm(pts[-1] - pts[0]) <= _UNIT_DUPLICATE:
        pts = pts[:-1]
    if len(pts) < 3:
        return 0
    _, angles = vertex_angles(pts, closed)
    return int(np.sum(np.nan_to_num(angles, nan=180.0) < corner_angle_deg))


def validate_route_match(
    route_path: Sequence[Point],
    features: ShapeFeatures,
    config: AnalyzerConfig | None = None,
) -> RouteValidation:
    config = config or AnalyzerConfig()
    if len(route_path) < 2:
        return RouteValidation(0.0, ["Route path is too short"])

    planar = normalize_to_unit(to_planar(route_path, Unit.DEGREES))
    xmin, ymin, xmax, ymax = bbox(planar)
    closed = is_closed_path(planar, xmax - xmin, ymax - ymin, config.closed_tolerance)
    corners = count_corners(planar, closed, config.corner_angle_deg)
    ratio = aspect_ratio(planar)

    similarity = 1.0
    issues: list[str] = []

    if closed != features.is_closed:
        issues.append(
            "Shape structure mismatch: drawing is {}, route is {}".format(
                "closed" if features.is_closed else "open",
                "closed" if closed else "open",
            )
        )
        similarity *= 0.7

    corner_diff = abs(len(features.corners) - corners)
    if corner_diff > 2:
        issues.append(f"Corner count mismatch: drawing has {len(features.corners)}, route has {corners}")
        similarity *= max(0.5, 1 - corner_diff * 0.1)

    aspect_diff = abs(features.aspect_ratio - ratio)
    if aspect_diff > 1.0:
        issues.append(f"Aspect ratio mismatch: drawing {features.aspect_ratio:.2f}, route {ratio:.2f}")
        similarity *= max(0.6, 1 - aspect_diff * 0.2)

    return RouteValidation(max(0.0, similarity), issues)
