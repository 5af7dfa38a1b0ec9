"""Cluster hue assignment.

Hues are spread evenly around the wheel. The two largest communities keep
the first slots, the rest are shuffled, then the second slot is swapped with
the middle one so the two biggest clusters land on contrasting hues. A
heuristic for visual separation, not an optimum.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def hue_order(cluster_ids: Sequence[int], sizes: dict[int, int], rng: np.random.Generator) -> list[int]:
    ordered = sorted(cluster_ids, key=lambda cid: (-sizes.get(cid, 0), cid))
    head, tail = ordered[:2], ordered[2:]
    shuffled = head + [tail[i] for i in rng.permutation(len(tail))]
    if len(shuffled) > 2:
        mid = len(shuffled) // 2
        shuffled[1], shuffled[mid] = shuffled[mid], shuffled[1]
    return shuffled


def assign_hues(cluster_ids: Sequence[int], sizes: dict[int, int], rng: np.random.Generator) -> dict[int, float]:
    """cluster id → hue in degrees [0, 360)."""
    order = hue_order(cluster_ids, sizes, rng)
    count = len(order)
    return {cid: (360.0 * i / count) % 360.0 for i, cid in enumerate(order)}
