"""Engine data model.

AnalysisContext is the single mutable object flowing through the shape
transforms; everything handed out of the engine (ShapeFeatures,
NormalizedPath, RouteCandidate) is frozen.

Per-drawing results → AnalysisContext.features
Frozen summary      → ShapeFeatures (built by the analyzer)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from sketchroute.engine.config import AnalyzerConfig, NormalizerConfig

# (x, y) in pixels for drawings, (lat, lon) in degrees for geographic paths
Point = tuple[float, float]
Stroke = list[Point]
Drawing = list[Stroke]


class Unit(str, enum.Enum):
    PIXELS = "pixels"
    DEGREES = "degrees"


class TransportMode(str, enum.Enum):
    WALKING = "walking"
    CYCLING = "cycling"
    DRIVING = "driving"


class Creativity(str, enum.Enum):
    STRICT = "strict"
    BALANCED = "balanced"
    CREATIVE = "creative"


def frozen_array(values: Any) -> NDArray[np.float64]:
    """Copy into a float64 Nx2 array and mark it read-only."""
    arr = np.array(values, dtype=np.float64).reshape(-1, 2)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def longest_side(self) -> float:
        return max(self.width, self.height)


@dataclass(frozen=True)
class Symmetry:
    horizontal: float = 0.0
    vertical: float = 0.0


@dataclass(frozen=True, eq=False)
class NormalizedPath:
    """Fixed-count, arc-length resampled points in the unit frame."""

    points: NDArray[np.float64]
    unit: Unit = Unit.PIXELS

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True, eq=False)
class ShapeFeatures:
    bounding_box: BoundingBox
    centroid: Point
    aspect_ratio: float
    total_length: float
    point_count: int
    corners: tuple[Point, ...]
    sharp_turns: int
    curvature: tuple[float, ...]
    is_closed: bool
    complexity: float
    symmetry: Symmetry
    straightness: float
    normalized_path: NDArray[np.float64]
    signature: NormalizedPath
    shape_type: str = "complex"
    shape_confidence: float = 0.5
    errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def relative_length(self) -> float:
        """Path length measured in units of the longer bbox side."""
        side = self.bounding_box.longest_side
        return self.total_length / side if side > 0 else 0.0


@dataclass
class AnalysisContext:
    """Shared state flowing through the shape transforms."""

    # Flattened drawing: Nx2 array of (x, y) pixels
    points: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 2)))
    config: AnalyzerConfig | None = None
    normalizer: NormalizerConfig | None = None
    # All computed features go here (keyed by feature name)
    features: dict[str, Any] = field(default_factory=dict)

    # --- Pipeline metadata ---
    completed_transforms: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def bbox(self) -> BoundingBox:
        return self.features["bounding_box"]

    @property
    def normalized(self) -> NDArray[np.float64]:
        return self.features.get("normalized_path", self.points)


@dataclass(frozen=True)
class RawGeometry:
    """One externally supplied path: (lat, lon) points plus source tags."""

    id: str
    points: tuple[Point, ...]
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedLocation:
    center: Point
    # (south, north, west, east)
    bbox: tuple[float, float, float, float]
    importance: float = 0.5
    display_name: str = ""


@dataclass(frozen=True, eq=False)
class RouteCandidate:
    geo_path: tuple[Point, ...]
    source_id: str
    tags: Mapping[str, str]
    distance_km: float
    estimated_duration_min: float
    # Position in the collected batch; the final tie-breaker when ranking
    order: int = 0
    metric_scores: Mapping[str, float] = field(default_factory=dict)
    aggregate_similarity: float | None = None
    confidence: float | None = None
