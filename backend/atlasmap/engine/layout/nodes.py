"""Layout particles and the final per-item placement."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LayoutNode:
    """One simulation particle: a whole community at tier 0, a sub-group below."""

    id: str
    cluster_id: int
    tier: int
    x: float = 0.0
    y: float = 0.0
    hue: float = 0.0
    # Item ids this particle stands for
    members: list[int] = field(default_factory=list)
    parent: str | None = None

    def norm(self) -> float:
        return math.hypot(self.x, self.y)


@dataclass
class LayoutResult:
    """Final item positions plus the last tier's particles."""

    positions: dict[int, tuple[float, float]] = field(default_factory=dict)
    hues: dict[int, float] = field(default_factory=dict)
    nodes: list[LayoutNode] = field(default_factory=list)
    tiers_run: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "positions": {str(k): [x, y] for k, (x, y) in self.positions.items()},
            "hues": {str(k): h for k, h in self.hues.items()},
            "nodes": [
                {
                    "id": n.id,
                    "cluster_id": n.cluster_id,
                    "tier": n.tier,
                    "x": n.x,
                    "y": n.y,
                    "hue": n.hue,
                    "members": n.members,
                    "parent": n.parent,
                }
                for n in self.nodes
            ],
            "tiers_run": self.tiers_run,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LayoutResult:
        return cls(
            positions={int(k): (float(v[0]), float(v[1])) for k, v in data.get("positions", {}).items()},
            hues={int(k): float(h) for k, h in data.get("hues", {}).items()},
            nodes=[LayoutNode(**n) for n in data.get("nodes", [])],
            tiers_run=int(data.get("tiers_run", 0)),
        )
