"""T0.01 — Basic Geometry.

Bounding box, centroid, aspect ratio, travelled length and straightness of
the flattened drawing, in pixels.
"""

from __future__ import annotations

from sketchroute.engine.context import AnalysisContext, BoundingBox
from sketchroute.engine.registry import Layer, transform
from sketchroute.utils.geometry import bbox, centroid, path_length, straightness


@transform(
    id="T0.01",
    layer=Layer.GEOMETRY,
    description="Bounding box, centroid, aspect ratio and path length",
)
def basic_geometry(ctx: AnalysisContext) -> None:
    pts = ctx.points
    xmin, ymin, xmax, ymax = bbox(pts)
    box = BoundingBox(xmin, ymin, xmax, ymax)

    ctx.features["bounding_box"] = box
    ctx.features["centroid"] = centroid(pts)
    ctx.features["aspect_ratio"] = box.width / box.height if box.height > 0 else 0.0
    ctx.features["total_length"] = path_length(pts)
    ctx.features["straightness"] = straightness(pts)
