"""PathNormalizer — any 2D polyline → unit-frame, fixed-count NormalizedPath.

Drawings (pixels, y pointing down) and geographic candidates ((lat, lon)
degrees) end up in the same frame: degree paths are projected
equirectangularly around their mean latitude with north pointing "up" the
way a screen shows it, then both are translated to the bbox origin, scaled
uniformly by the longer side and resampled to equally spaced points.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from sketchroute.engine.config import NormalizerConfig
from sketchroute.engine.context import NormalizedPath, Unit, frozen_array
from sketchroute.utils.geometry import normalize_to_unit, resample_by_chord_length


def to_planar(points: Sequence[Sequence[float]] | NDArray[np.float64], unit: Unit) -> NDArray[np.float64]:
    """Project a path into a planar (x, y) frame where y grows downwards."""
    arr = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if unit == Unit.PIXELS or len(arr) == 0:
        return arr.copy()
    lat0 = math.radians(float(np.mean(arr[:, 0])))
    xs = arr[:, 1] * math.cos(lat0)
    ys = -arr[:, 0]
    return np.column_stack([xs, ys])


def normalize_path(
    points: Sequence[Sequence[float]] | NDArray[np.float64],
    unit: Unit = Unit.PIXELS,
    config: NormalizerConfig | None = None,
) -> NormalizedPath:
    """Unit frame, equal-spacing resample, then unit frame again.

    The second fit makes the result a fixed point: normalizing an already
    normalized path returns the same points.
    """
    config = config or NormalizerConfig()
    planar = to_planar(points, unit)
    resampled = resample_by_chord_length(normalize_to_unit(planar), config.sample_count)
    return NormalizedPath(points=frozen_array(normalize_to_unit(resampled)), unit=unit)
