"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

# Triangles with less area than this are treated as straight (Menger curvature 0)
_AREA_EPSILON = 1e-12
# Aspect ratios are clamped so degenerate boxes stay comparable
_ASPECT_MIN = 1e-3
_ASPECT_MAX = 1e3


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def centroid(points: NDArray[np.float64]) -> tuple[float, float]:
    """Compute centroid of a point set."""
    if len(points) == 0:
        return (0.0, 0.0)
    return (float(np.mean(points[:, 0])), float(np.mean(points[:, 1])))


def centroid_distances(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Distance from centroid to each point."""
    cx, cy = centroid(points)
    return np.sqrt((points[:, 0] - cx) ** 2 + (points[:, 1] - cy) ** 2)


def segment_lengths(points: NDArray[np.float64]) -> NDArray[np.float64]:
    diffs = np.diff(points, axis=0)
    return np.sqrt(np.sum(diffs**2, axis=1))


def arc_lengths(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Cumulative arc-length along a point sequence."""
    return np.concatenate([[0.0], np.cumsum(segment_lengths(points))])


def path_length(points: NDArray[np.float64]) -> float:
    if len(points) < 2:
        return 0.0
    return float(np.sum(segment_lengths(points)))


def aspect_ratio(points: NDArray[np.float64]) -> float:
    """Width / height of the bounding box, clamped for flat or thin boxes."""
    xmin, ymin, xmax, ymax = bbox(points)
    width, height = xmax - xmin, ymax - ymin
    if height <= 0:
        return _ASPECT_MAX if width > 0 else 1.0
    return float(np.clip(width / height, _ASPECT_MIN, _ASPECT_MAX))


def straightness(points: NDArray[np.float64]) -> float:
    """Direct distance / travelled length. 1 = straight line, ~0 = closed loop."""
    total = path_length(points)
    if total <= 0:
        return 1.0
    direct = float(np.linalg.norm(points[-1] - points[0]))
    return min(1.0, direct / total)


def normalize_to_unit(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Translate to the bbox origin and scale uniformly by the longer side.

    Aspect ratio is preserved; a zero-extent input maps to the origin.
    """
    if len(points) == 0:
        return np.empty((0, 2))
    xmin, ymin, xmax, ymax = bbox(points)
    scale = max(xmax - xmin, ymax - ymin)
    shifted = points - np.array([xmin, ymin])
    if scale <= 0:
        return np.zeros_like(shifted)
    return np.clip(shifted / scale, 0.0, 1.0)


def resample_by_arc_length(points: NDArray[np.float64], count: int) -> NDArray[np.float64]:
    """Resample a polyline to ``count`` points spaced uniformly by arc length."""
    if len(points) == 0:
        return np.zeros((count, 2))
    if len(points) == 1:
        return np.repeat(points[:1], count, axis=0)

    cumulative = arc_lengths(points)
    total = cumulative[-1]
    if total <= 0:
        return np.repeat(points[:1], count, axis=0)

    targets = np.linspace(0.0, total, count)
    xs = np.interp(targets, cumulative, points[:, 0])
    ys = np.interp(targets, cumulative, points[:, 1])
    return np.column_stack([xs, ys])


# Bisection steps when solving for the common chord length
_CHORD_ITERATIONS = 50
# Relative arc-length shortfall accepted at the end of a chord walk
_CHORD_END_TOLERANCE = 1e-6


def _chord_walk(
    points: list[tuple[float, float]],
    cumulative: NDArray[np.float64],
    chord: float,
    count: int,
) -> tuple[list[tuple[float, float]], float] | None:
    """Step ``count - 1`` times along the polyline, each step to the first point ``chord`` away.

    Returns the visited points and the arc length reached, or None if the
    polyline ends first.
    """
    ox, oy = points[0]
    seg, t = 0, 0.0
    visited = [(ox, oy)]
    reached = 0.0
    for _ in range(count - 1):
        hit = None
        while seg < len(points) - 1:
            ax, ay = points[seg]
            dx, dy = points[seg + 1][0] - ax, points[seg + 1][1] - ay
            a = dx * dx + dy * dy
            if a > 0:
                rx, ry = ax - ox, ay - oy
                b = 2 * (rx * dx + ry * dy)
                c = rx * rx + ry * ry - chord * chord
                disc = b * b - 4 * a * c
                if disc >= 0:
                    r = (-b + math.sqrt(disc)) / (2 * a)
                    if t <= r <= 1:
                        hit = r
                        break
            seg += 1
            t = 0.0
        if hit is None:
            return None
        t = hit
        ox, oy = points[seg][0] + hit * dx, points[seg][1] + hit * dy
        visited.append((ox, oy))
        reached = float(cumulative[seg] + hit * (cumulative[seg + 1] - cumulative[seg]))
    return visited, reached


def resample_by_chord_length(points: NDArray[np.float64], count: int) -> NDArray[np.float64]:
    """Resample a polyline to ``count`` points with equal straight-line spacing.

    Every output point lies on the input polyline and both endpoints are
    kept. A polyline whose vertices are already equally spaced comes back
    unchanged, so resampling a resampled path is a no-op. Falls back to
    arc-length spacing when no common chord reaches the end.
    """
    if count < 2 or len(points) < 2:
        return resample_by_arc_length(points, count)
    cumulative = arc_lengths(points)
    total = float(cumulative[-1])
    if total <= 0:
        return resample_by_arc_length(points, count)

    vertices = [(float(x), float(y)) for x, y in points]
    lo, hi = 0.0, total / (count - 1)
    best = None
    for _ in range(_CHORD_ITERATIONS):
        mid = (lo + hi) / 2
        walk = _chord_walk(vertices, cumulative, mid, count)
        if walk is None:
            hi = mid
        else:
            lo, best = mid, walk

    if best is None or best[1] < total * (1 - _CHORD_END_TOLERANCE):
        return resample_by_arc_length(points, count)
    resampled = np.array(best[0], dtype=np.float64)
    resampled[-1] = points[-1]
    return resampled


def interior_angles(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Interior vertex angle (degrees) at each interior point.

    180° = straight through, 90° = right-angle turn, 0° = full reversal.
    Vertices with a zero-length incoming or outgoing edge get NaN.
    """
    if len(points) < 3:
        return np.array([])
    incoming = points[:-2] - points[1:-1]
    outgoing = points[2:] - points[1:-1]
    mag_in = np.linalg.norm(incoming, axis=1)
    mag_out = np.linalg.norm(outgoing, axis=1)
    denom = mag_in * mag_out
    valid = denom > 0
    cosines = np.full(len(denom), np.nan)
    cosines[valid] = np.sum(incoming[valid] * outgoing[valid], axis=1) / denom[valid]
    return np.degrees(np.arccos(np.clip(cosines, -1.0, 1.0)))


def menger_curvature(p0: NDArray[np.float64], p1: NDArray[np.float64], p2: NDArray[np.float64]) -> float:
    """κ = 4·area / (|p0p1|·|p1p2|·|p0p2|); 0 for degenerate triples."""
    a = float(np.linalg.norm(p1 - p0))
    b = float(np.linalg.norm(p2 - p1))
    c = float(np.linalg.norm(p2 - p0))
    if a == 0 or b == 0 or c == 0:
        return 0.0
    area = abs((p1[0] - p0[0]) * (p2[1] - p0[1]) - (p2[0] - p0[0]) * (p1[1] - p0[1])) / 2
    if area < _AREA_EPSILON:
        return 0.0
    return 4.0 * area / (a * b * c)


def curvature_profile(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Menger curvature for every interior triple."""
    if len(points) < 3:
        return np.array([])
    return np.array([menger_curvature(points[i - 1], points[i], points[i + 1]) for i in range(1, len(points) - 1)])


def turn_complexity(points: NDArray[np.float64], turn_deg: float = 30.0) -> float:
    """Share of significant direction changes, saturating at 0.3 per point."""
    if len(points) < 3:
        return 0.0
    angles = interior_angles(points)
    turns = np.nan_to_num(180.0 - angles, nan=0.0)
    significant = int(np.sum(turns > turn_deg))
    return float(min(1.0, significant / (len(points) * 0.3)))
