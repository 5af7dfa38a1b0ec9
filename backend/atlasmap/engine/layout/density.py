"""Density normalization — keep particle spread proportional to particle count."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


def density_scale(positions: NDArray[np.float64], target_density: float) -> float:
    """Uniform factor that makes the occupied disc match ``count / target_density``."""
    if len(positions) == 0 or target_density <= 0:
        return 1.0
    radius = float(np.max(np.hypot(positions[:, 0], positions[:, 1])))
    if radius <= 0 or not math.isfinite(radius):
        return 1.0
    area = math.pi * radius * radius
    target_area = len(positions) / target_density
    return math.sqrt(target_area / area)


def normalize_density(positions: NDArray[np.float64], target_density: float) -> None:
    """Rescale ``positions`` in place about the origin."""
    positions *= density_scale(positions, target_density)
