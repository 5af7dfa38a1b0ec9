"""Force simulation — one exclusively-owned instance per tier.

Mirrors the d3-force model the renderer's designers tuned against:
alpha cooling, link springs with degree bias, many-body repulsion with a
distance cutoff, a centering shift and velocity damping. Each force is
accumulated for all particles from the same pre-tick state (partial sums
merged with ``np.add.at``), so the result does not depend on link or pair
order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from atlasmap.engine.config import ForceConfig

logger = logging.getLogger(__name__)

_JIGGLE = 1e-6


class ForceSimulation:
    """Mutable tick state for one tier: positions, velocities, alpha."""

    def __init__(
        self,
        positions: NDArray[np.float64],
        links: list[tuple[int, int, float]],
        forces: ForceConfig,
        rng: np.random.Generator,
    ) -> None:
        self.pos = np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.vel = np.zeros_like(self.pos)
        self.forces = forces
        self.rng = rng
        self.alpha = 1.0
        self.ticks = 0

        n = len(self.pos)
        if links:
            arr = np.array(links, dtype=np.float64)
            self.src = arr[:, 0].astype(np.int64)
            self.tgt = arr[:, 1].astype(np.int64)
            self.strength = arr[:, 2] * forces.link_strength_factor
            degree = np.bincount(np.concatenate([self.src, self.tgt]), minlength=n)
            self.bias = degree[self.src] / (degree[self.src] + degree[self.tgt])
        else:
            self.src = np.zeros(0, dtype=np.int64)
            self.tgt = np.zeros(0, dtype=np.int64)
            self.strength = np.zeros(0)
            self.bias = np.zeros(0)

    @property
    def size(self) -> int:
        return len(self.pos)

    def _jiggle(self, values: NDArray[np.float64]) -> NDArray[np.float64]:
        zero = values == 0
        if np.any(zero):
            values = values.copy()
            values[zero] = (self.rng.random(int(zero.sum())) - 0.5) * _JIGGLE
        return values

    def _apply_links(self) -> None:
        if len(self.src) == 0:
            return
        target = self.pos[self.tgt] + self.vel[self.tgt]
        source = self.pos[self.src] + self.vel[self.src]
        delta = target - source
        delta[:, 0] = self._jiggle(delta[:, 0])
        delta[:, 1] = self._jiggle(delta[:, 1])
        dist = np.hypot(delta[:, 0], delta[:, 1])
        pull = (dist - self.forces.link_distance) / dist * self.alpha * self.strength
        delta *= pull[:, None]
        dv = np.zeros_like(self.vel)
        np.add.at(dv, self.tgt, -delta * self.bias[:, None])
        np.add.at(dv, self.src, delta * (1 - self.bias)[:, None])
        self.vel += dv

    def _apply_repulsion(self) -> None:
        if self.size < 2 or self.forces.repulsion_strength == 0:
            return
        tree = cKDTree(self.pos)
        pairs = tree.query_pairs(self.forces.repulsion_distance_max, output_type="ndarray")
        if len(pairs) == 0:
            return
        i, j = pairs[:, 0], pairs[:, 1]
        delta = self.pos[j] - self.pos[i]
        delta[:, 0] = self._jiggle(delta[:, 0])
        delta[:, 1] = self._jiggle(delta[:, 1])
        dist2 = delta[:, 0] ** 2 + delta[:, 1] ** 2
        min2 = self.forces.repulsion_distance_min**2
        dist2 = np.where(dist2 < min2, np.sqrt(min2 * dist2), dist2)
        w = self.forces.repulsion_strength * self.alpha / dist2
        push = delta * w[:, None]
        dv = np.zeros_like(self.vel)
        np.add.at(dv, i, push)
        np.add.at(dv, j, -push)
        self.vel += dv

    def _apply_center(self) -> None:
        self.pos -= self.pos.mean(axis=0)

    def tick(self) -> None:
        self.alpha += (0.0 - self.alpha) * self.forces.cooling_rate
        self._apply_links()
        self._apply_repulsion()
        self._apply_center()
        self.vel *= 1.0 - self.forces.velocity_decay
        self.pos += self.vel
        self.ticks += 1

    def run(
        self,
        iterations: int,
        on_batch: Callable[[ForceSimulation], None] | None = None,
        batch_size: int = 10,
    ) -> NDArray[np.float64]:
        """Tick until ``iterations`` or alpha falls below ``alpha_min``; return positions."""
        if self.size == 0:
            return self.pos
        while self.ticks < iterations and self.alpha >= self.forces.alpha_min:
            self.tick()
            if on_batch is not None and self.ticks % batch_size == 0:
                on_batch(self)
        bad = ~np.isfinite(self.pos)
        if np.any(bad):
            logger.warning("Simulation produced %d non-finite coordinates; zeroing", int(bad.sum()))
            self.pos[bad] = 0.0
        return self.pos
