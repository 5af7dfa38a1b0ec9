"""Seeded random streams.

Every randomized step draws from its own named stream derived from the run
seed, so adding draws to one step never shifts another step's numbers.
"""

from __future__ import annotations

import enum

import numpy as np


class Stream(enum.IntEnum):
    SIMULATION = 1
    JITTER = 2
    HUES = 3
    PLACEMENT = 4
    FALLBACK = 5


def stream(seed: int, kind: Stream, *keys: int) -> np.random.Generator:
    """Independent generator for ``kind`` (and optional sub-keys such as a tier)."""
    seq = np.random.SeedSequence(entropy=seed, spawn_key=(int(kind), *(int(k) for k in keys)))
    return np.random.default_rng(seq)
