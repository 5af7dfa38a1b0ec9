"""Recommendation similarity graph — edges straight from each item's recommendation list."""

from __future__ import annotations

import logging

from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import Edge, PipelineContext
from atlasmap.engine.registry import Stage, strategy
from atlasmap.engine.similarity.graph import finalize_graph

logger = logging.getLogger(__name__)


def recommendation_weight(rating: float) -> float:
    return max(rating / 100.0, 1.0)


def build_recommendation_edges(ctx: PipelineContext) -> list[Edge]:
    """One edge per recommended pair; duplicate (A, B) pairs keep the larger weight."""
    position = {item.id: i for i, item in enumerate(ctx.items)}
    best: dict[tuple[int, int], Edge] = {}
    dropped = 0

    for item in ctx.items:
        for rec in item.recommendations:
            other = rec.recommended_id
            if other == item.id or other not in position:
                dropped += 1
                continue
            # Orient by item order so (A, B) and (B, A) collapse together
            if position[item.id] < position[other]:
                source, target = item.id, other
            else:
                source, target = other, item.id
            weight = recommendation_weight(rec.rating)
            current = best.get((source, target))
            if current is None or weight > current.weight:
                best[(source, target)] = Edge(source, target, weight)

    ctx.diagnostics.dropped_edges += dropped
    if dropped:
        logger.info("Dropped %d recommendations to unknown or self ids", dropped)
    # Insertion order of first sighting keeps the output stable
    return list(best.values())


@strategy(
    stage=Stage.SIMILARITY,
    name="recommendations",
    description="Edges from item recommendation lists, weighted by rating",
)
def recommendation_graph(ctx: PipelineContext, config: PipelineConfig) -> None:
    edges = build_recommendation_edges(ctx)
    finalize_graph(ctx, edges, config.similarity)
