"""Weighted label propagation.

Every round sweeps the items in input order; each adopts the label carrying
the largest total incident edge weight among its neighbours' current labels.
Updates are visible to later items in the same sweep. Ties keep the current
label when it is among the best, else the smallest label wins.
Stops after ``max_iterations`` rounds or the first round without change.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from atlasmap.engine.community.summary import build_communities, canonical_membership
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.registry import Stage, strategy

logger = logging.getLogger(__name__)


def propagate_labels(ctx: PipelineContext, max_iterations: int = 10) -> dict[int, int]:
    """Return item id → raw label (the position of the label's originating item)."""
    position = {item.id: i for i, item in enumerate(ctx.items)}
    adjacency: dict[int, list[tuple[int, float]]] = defaultdict(list)
    for edge in ctx.edges:
        if edge.source not in position or edge.target not in position:
            continue
        a, b = position[edge.source], position[edge.target]
        adjacency[a].append((b, edge.weight))
        adjacency[b].append((a, edge.weight))

    labels = list(range(len(ctx.items)))
    for iteration in range(1, max_iterations + 1):
        changed = 0
        for node in range(len(labels)):
            neighbours = adjacency.get(node)
            if not neighbours:
                continue
            weights: dict[int, float] = defaultdict(float)
            for other, weight in neighbours:
                weights[labels[other]] += weight
            best_weight = max(weights.values())
            best = [label for label, w in weights.items() if w == best_weight]
            current = labels[node]
            chosen = current if current in best else min(best)
            if chosen != current:
                labels[node] = chosen
                changed += 1
        logger.debug("Label propagation round %d: %d labels changed", iteration, changed)
        if changed == 0:
            break

    return {item.id: labels[i] for i, item in enumerate(ctx.items)}


@strategy(
    stage=Stage.COMMUNITY,
    name="label_propagation",
    description="Weighted majority-vote label propagation",
)
def label_propagation(ctx: PipelineContext, config: PipelineConfig) -> None:
    raw = propagate_labels(ctx, config.community.max_iterations)
    build_communities(ctx, canonical_membership(ctx, raw), config.community.top_n)
