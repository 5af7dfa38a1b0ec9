"""Flat layout — a single force simulation with one particle per item.

Pays the full force cost on every item, so it suits small catalogs; large
ones belong to the hierarchical engine.
"""

from __future__ import annotations

import logging

from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.layout.hierarchical import run_tier, tier_links
from atlasmap.engine.layout.hues import assign_hues
from atlasmap.engine.layout.nodes import LayoutNode, LayoutResult
from atlasmap.engine.registry import Stage, strategy
from atlasmap.utils.math_helpers import phyllotaxis
from atlasmap.utils.random_streams import Stream, stream

logger = logging.getLogger(__name__)


def flat_layout_result(ctx: PipelineContext, config: PipelineConfig) -> LayoutResult:
    sizes = {c.id: c.size for c in ctx.communities}
    hues = assign_hues(sorted(sizes), sizes, stream(config.seed, Stream.HUES))
    seeds = phyllotaxis(ctx.num_items)
    nodes = [
        LayoutNode(
            id=str(item.id),
            cluster_id=ctx.membership.get(item.id, -1),
            tier=0,
            x=float(seeds[i, 0]),
            y=float(seeds[i, 1]),
            hue=hues.get(ctx.membership.get(item.id, -1), 0.0),
            members=[item.id],
        )
        for i, item in enumerate(ctx.items)
    ]
    logger.info("Flat layout: %d particles", len(nodes))
    run_tier(
        nodes,
        tier_links(nodes, ctx),
        config.layout.flat_iterations,
        config.layout,
        stream(config.seed, Stream.SIMULATION, 0),
    )
    return LayoutResult(
        positions={n.members[0]: (n.x, n.y) for n in nodes},
        hues={n.members[0]: n.hue for n in nodes},
        nodes=nodes,
        tiers_run=1,
    )


@strategy(
    stage=Stage.LAYOUT,
    name="flat",
    description="Single-tier force simulation over every item",
)
def flat_layout(ctx: PipelineContext, config: PipelineConfig) -> None:
    ctx.layout = flat_layout_result(ctx, config)
