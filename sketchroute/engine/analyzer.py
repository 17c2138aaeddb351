"""ShapeAnalyzer — Drawing → validated, frozen ShapeFeatures.

Validation runs first and rejects drawings that cannot be analysed with an
InsufficientData carrying issues/recommendations for the user. The feature
transforms then run through the Pipeline; a failing transform is recorded in
``ShapeFeatures.errors`` and its feature falls back to a neutral default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from sketchroute.engine.config import AnalyzerConfig, NormalizerConfig
from sketchroute.engine.context import (
    AnalysisContext,
    BoundingBox,
    Drawing,
    NormalizedPath,
    ShapeFeatures,
    Symmetry,
    Unit,
    frozen_array,
)
from sketchroute.engine.errors import InsufficientData
from sketchroute.engine.normalizer import normalize_path
from sketchroute.engine.pipeline import Pipeline
from sketchroute.engine.registry import load_builtins
from sketchroute.utils.geometry import bbox, centroid, normalize_to_unit

logger = logging.getLogger(__name__)


@dataclass
class ShapeValidation:
    is_valid: bool = True
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def flatten(drawing: Drawing | Sequence[Sequence[Sequence[float]]]) -> np.ndarray:
    """All strokes joined into one ordered Nx2 point array."""
    pts = [(float(p[0]), float(p[1])) for stroke in drawing for p in stroke]
    if not pts:
        return np.empty((0, 2))
    return np.array(pts, dtype=np.float64)


def validate_drawing(drawing: Drawing, config: AnalyzerConfig | None = None) -> ShapeValidation:
    """Check a drawing is rich enough to analyse. Never raises."""
    config = config or AnalyzerConfig()
    result = ShapeValidation()

    if not drawing or all(len(stroke) == 0 for stroke in drawing):
        result.issues.append("No drawing provided")
        result.recommendations.append("Draw a shape on the canvas")
        result.is_valid = False
        return result

    pts = flatten(drawing)
    if len(pts) < config.min_points:
        result.issues.append("Drawing has too few points")
        result.recommendations.append(f"Draw a more complete shape with at least {config.min_points} points")

    steps = np.linalg.norm(np.diff(pts, axis=0), axis=1) if len(pts) > 1 else np.array([])
    distinct = 1 + int(np.sum(steps > config.duplicate_px))
    if distinct < config.min_points:
        result.issues.append("Drawing points are too close together")
        result.recommendations.append("Draw with more varied movements to create a distinct shape")

    xmin, ymin, xmax, ymax = bbox(pts)
    width, height = xmax - xmin, ymax - ymin
    if width < config.min_dimension_px or height < config.min_dimension_px:
        result.issues.append("Drawing is too small")
        result.recommendations.append("Draw a larger shape to improve recognition accuracy")
    elif max(width, height) / min(width, height) > config.elongation_warning:
        # Reported, not rejected
        result.recommendations.append("Very thin shapes match poorly; try a more balanced shape")

    result.is_valid = not result.issues
    return result


def _freeze(ctx: AnalysisContext, normalizer: NormalizerConfig | None) -> ShapeFeatures:
    f = ctx.features
    pts = ctx.points

    box = f.get("bounding_box")
    if box is None:
        box = BoundingBox(*bbox(pts))
    normalized = f.get("normalized_path")
    if normalized is None:
        normalized = frozen_array(normalize_to_unit(pts))
    signature = f.get("signature")
    if not isinstance(signature, NormalizedPath):
        signature = normalize_path(pts, Unit.PIXELS, normalizer)

    return ShapeFeatures(
        bounding_box=box,
        centroid=f.get("centroid", centroid(pts)),
        aspect_ratio=float(f.get("aspect_ratio", box.width / box.height if box.height else 0.0)),
        total_length=float(f.get("total_length", 0.0)),
        point_count=len(pts),
        corners=tuple(f.get("corners", ())),
        sharp_turns=int(f.get("sharp_turns", 0)),
        curvature=tuple(f.get("curvature", ())),
        is_closed=bool(f.get("is_closed", False)),
        complexity=float(f.get("complexity", 0.0)),
        symmetry=f.get("symmetry", Symmetry()),
        straightness=float(f.get("straightness", 1.0)),
        normalized_path=normalized,
        signature=signature,
        shape_type=str(f.get("shape_type", "complex")),
        shape_confidence=float(f.get("shape_confidence", 0.5)),
        errors=dict(ctx.errors),
    )


def analyze_shape(
    drawing: Drawing,
    config: AnalyzerConfig | None = None,
    normalizer: NormalizerConfig | None = None,
) -> ShapeFeatures:
    """Extract ShapeFeatures from a drawing or raise InsufficientData."""
    config = config or AnalyzerConfig()
    validation = validate_drawing(drawing, config)
    if not validation.is_valid:
        logger.info("Rejected drawing: %s", "; ".join(validation.issues))
        raise InsufficientData(
            "Drawing cannot be analysed: " + ", ".join(validation.issues),
            issues=validation.issues,
            recommendations=validation.recommendations,
        )

    load_builtins()
    ctx = AnalysisContext(
        points=flatten(drawing),
        config=config,
        normalizer=normalizer,
    )
    Pipeline(config=config).run(ctx)
    features = _freeze(ctx, normalizer)
    logger.debug(
        "Shape: %s (%.2f), %d corners, closed=%s, complexity=%.2f",
        features.shape_type,
        features.shape_confidence,
        len(features.corners),
        features.is_closed,
        features.complexity,
    )
    return features


def describe_shape(features: ShapeFeatures) -> str:
    """Plain-text geometric summary, one characteristic per line."""
    aspect = features.aspect_ratio
    lines = [
        f"Type: {features.shape_type} ({features.shape_confidence * 100:.0f}% confidence)",
        f"Structure: {'Closed loop' if features.is_closed else 'Open path'}",
        f"Aspect Ratio: {aspect:.2f} ({'Wide' if aspect > 1.5 else 'Tall' if aspect < 0.7 else 'Balanced'})",
        "Complexity: {:.0f}% ({})".format(
            features.complexity * 100,
            "Complex" if features.complexity > 0.7 else "Moderate" if features.complexity > 0.3 else "Simple",
        ),
        f"Corners: {len(features.corners)} ({features.sharp_turns} sharp)",
    ]
    mean_curvature = float(np.mean(features.curvature)) if features.curvature else 0.0
    curved = mean_curvature > 0.1 and len(features.corners) <= 2
    lines.append(f"Curvature: {'Curved' if curved else 'Angular'}")
    if features.symmetry.horizontal > 0.7:
        lines.append("Horizontally symmetric")
    if features.symmetry.vertical > 0.7:
        lines.append("Vertically symmetric")
    return "\n".join(f"- {line}" for line in lines)
