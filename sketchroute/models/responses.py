"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sketchroute.models.route import Route


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    transforms_registered: int = 0
    metrics_registered: int = 0


class ShapeValidationModel(BaseModel):
    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ShapeSummary(BaseModel):
    shape_type: str
    shape_confidence: float
    is_closed: bool
    aspect_ratio: float
    complexity: float
    corner_count: int
    sharp_turns: int
    straightness: float
    symmetry: dict[str, float] = Field(default_factory=dict)
    normalized_path: list[tuple[float, float]] = Field(default_factory=list)
    description: str = ""
    errors: dict[str, str] = Field(default_factory=dict)


class AnalyzeShapeResponse(BaseModel):
    validation: ShapeValidationModel
    shape: ShapeSummary | None = None
    processing_time_ms: float = 0.0


class LocationModel(BaseModel):
    center: tuple[float, float]
    bbox: tuple[float, float, float, float]
    display_name: str = ""


class RoutesResponse(BaseModel):
    routes: list[Route] = Field(default_factory=list)
    stage: str | None = None
    strategy: str = "geometric"
    location: LocationModel | None = None
    notes: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0
