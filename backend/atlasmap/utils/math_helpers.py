"""Math helpers — finite fallbacks, axis rescaling, angles. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def finite_or_zero(value: float) -> float:
    """Collapse NaN/±inf to 0.0."""
    return value if math.isfinite(value) else 0.0


def jaccard(a: frozenset | set, b: frozenset | set) -> float:
    """|A∩B| / |A∪B|; 0.0 when both are empty."""
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


def rescale_axis(values: NDArray[np.float64], scale: float) -> NDArray[np.int64]:
    """Map values linearly onto [0, scale] and round to integers.

    A zero-width (or non-finite) range maps every value to 0.
    """
    if len(values) == 0:
        return np.zeros(0, dtype=np.int64)
    lo = float(np.min(values))
    hi = float(np.max(values))
    span = hi - lo
    if not math.isfinite(span) or span <= 0:
        return np.zeros(len(values), dtype=np.int64)
    scaled = (values - lo) / span * scale
    scaled = np.where(np.isfinite(scaled), scaled, 0.0)
    return np.clip(np.rint(scaled), 0, math.floor(scale)).astype(np.int64)


def phyllotaxis(n: int, radius: float = 10.0) -> NDArray[np.float64]:
    """Sunflower spiral seed positions (the d3-force default placement)."""
    i = np.arange(n, dtype=np.float64)
    r = radius * np.sqrt(0.5 + i)
    theta = i * GOLDEN_ANGLE
    return np.column_stack([r * np.cos(theta), r * np.sin(theta)])
