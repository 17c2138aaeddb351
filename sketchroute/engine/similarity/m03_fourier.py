"""Frequency-domain similarity (Fourier descriptors).

Each path becomes a centered complex signal x + iy; the descriptor is the
magnitude of the lowest harmonics of its DFT divided by the sample count.
Similarity = mean over shared harmonics of exp(-|Δmagnitude|).
"""

from __future__ import annotations

import numpy as np

from sketchroute.engine.config import SimilarityConfig
from sketchroute.engine.context import NormalizedPath
from sketchroute.engine.registry import metric
from sketchroute.engine.similarity.checks import require_paths


def fourier_descriptors(points: np.ndarray, harmonics: int) -> np.ndarray:
    z = points[:, 0] + 1j * points[:, 1]
    z = z - np.mean(z)
    spectrum = np.fft.fft(z)
    n_harmonics = min(harmonics, len(spectrum) - 1)
    return np.abs(spectrum[1 : n_harmonics + 1]) / len(z)


@metric(id="fourier", description="Low-harmonic Fourier descriptor magnitudes")
def fourier_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
    pa, pb = require_paths(a, b, min_points=2)
    da = fourier_descriptors(pa, config.fourier_harmonics)
    db = fourier_descriptors(pb, config.fourier_harmonics)
    shared = min(len(da), len(db))
    if shared == 0:
        return 0.0
    return float(np.mean(np.exp(-np.abs(da[:shared] - db[:shared]))))
