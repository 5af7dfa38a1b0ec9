"""Edge-set finalisation shared by all similarity strategies."""

from __future__ import annotations

import logging

from atlasmap.engine.config import SimilarityConfig
from atlasmap.engine.context import Edge, PipelineContext
from atlasmap.errors import PipelineError

logger = logging.getLogger(__name__)

ISOLATED_POLICIES = ("retain", "drop")


def finalize_graph(ctx: PipelineContext, edges: list[Edge], config: SimilarityConfig) -> None:
    """Store ``edges`` on the context and apply the isolated-item policy."""
    if config.isolated_items not in ISOLATED_POLICIES:
        raise ValueError(
            f"isolated_items must be one of {ISOLATED_POLICIES}, got '{config.isolated_items}'"
        )

    connected: set[int] = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)

    isolated = [item.id for item in ctx.items if item.id not in connected]
    ctx.diagnostics.isolated_items = len(isolated)
    ctx.edges = edges

    if config.isolated_items == "drop" and isolated:
        ctx.items = [item for item in ctx.items if item.id in connected]
        ctx.diagnostics.dropped_isolated = len(isolated)
        logger.info("Dropped %d isolated items", len(isolated))
        if not ctx.items:
            raise PipelineError("No items remain after dropping isolated items", stage="similarity")

    logger.info(
        "Graph has %d items and %d edges (%d isolated)",
        ctx.num_items,
        len(ctx.edges),
        len(isolated),
    )
