"""SketchRoute shape-to-route matching engine."""

from sketchroute.engine.registry import transform, metric, Layer, get_registry, get_metric_registry
from sketchroute.engine.context import AnalysisContext, ShapeFeatures, NormalizedPath, RouteCandidate
from sketchroute.engine.pipeline import Pipeline
from sketchroute.engine.analyzer import analyze_shape
from sketchroute.engine.matcher import find_matching_routes, find_matching_routes_with_fallback

__all__ = [
    "transform",
    "metric",
    "Layer",
    "get_registry",
    "get_metric_registry",
    "AnalysisContext",
    "ShapeFeatures",
    "NormalizedPath",
    "RouteCandidate",
    "Pipeline",
    "analyze_shape",
    "find_matching_routes",
    "find_matching_routes_with_fallback",
]
