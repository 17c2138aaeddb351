"""Error kinds surfaced by the engine and its collaborators.

Every error carries a stable ``kind`` and a human-readable message; the API
layer renders exactly those two fields (plus remediation hints for
InsufficientData) and never the text of an underlying transport or parse
exception.
"""

from __future__ import annotations


class SketchRouteError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message}


class InvalidRequest(SketchRouteError):
    kind = "invalid_request"
    status_code = 400


class InsufficientData(SketchRouteError):
    """Drawing too small, sparse or degenerate to analyse."""

    kind = "insufficient_data"
    status_code = 422

    def __init__(
        self,
        message: str,
        issues: list[str] | None = None,
        recommendations: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.issues = issues or []
        self.recommendations = recommendations or []

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data["issues"] = self.issues
        data["recommendations"] = self.recommendations
        return data


class LocationNotFound(SketchRouteError):
    kind = "location_not_found"
    status_code = 404

    def __init__(self, location: str) -> None:
        super().__init__(f"Location not found: {location}")
        self.location = location


class DataProviderUnavailable(SketchRouteError):
    kind = "data_provider_unavailable"
    status_code = 503


class MetricComputationError(SketchRouteError):
    """Malformed geometry for one candidate; caught inside the similarity engine."""

    kind = "metric_computation_error"
