"""Great-circle helpers for (lat, lon) degree paths. No engine imports."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance between two (lat, lon) points."""
    phi1 = math.radians(a[0])
    phi2 = math.radians(b[0])
    dphi = math.radians(b[0] - a[0])
    dlmb = math.radians(b[1] - a[1])

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, s)))


def polyline_length_km(points: Sequence[Sequence[float]]) -> float:
    total = 0.0
    for i in range(1, len(points)):
        total += haversine_km(points[i - 1], points[i])
    return total


def bbox_extent_km(points: Iterable[Sequence[float]]) -> float:
    """Longer side of the (lat, lon) bounding box, in km."""
    pts = list(points)
    if not pts:
        return 0.0
    lats = [p[0] for p in pts]
    lons = [p[1] for p in pts]
    mid_lat = (min(lats) + max(lats)) / 2
    height = haversine_km((min(lats), lons[0]), (max(lats), lons[0]))
    width = haversine_km((mid_lat, min(lons)), (mid_lat, max(lons)))
    return max(width, height)


def path_centroid(points: Sequence[Sequence[float]]) -> tuple[float, float]:
    if not points:
        return (0.0, 0.0)
    return (
        sum(p[0] for p in points) / len(points),
        sum(p[1] for p in points) / len(points),
    )


def bbox_around(center: Sequence[float], radius_deg: float) -> tuple[float, float, float, float]:
    """(south, north, west, east) box of ``radius_deg`` around a center."""
    lat, lon = center
    return (lat - radius_deg, lat + radius_deg, lon - radius_deg, lon + radius_deg)


def widen_bbox(bbox: tuple[float, float, float, float], factor: float) -> tuple[float, float, float, float]:
    south, north, west, east = bbox
    mid_lat = (south + north) / 2
    mid_lon = (west + east) / 2
    half_lat = (north - south) / 2 * factor
    half_lon = (east - west) / 2 * factor
    return (mid_lat - half_lat, mid_lat + half_lat, mid_lon - half_lon, mid_lon + half_lon)


def bbox_diagonal_km(bbox: tuple[float, float, float, float]) -> float:
    south, north, west, east = bbox
    return haversine_km((south, west), (north, east))
