"""Louvain modularity optimisation via networkx."""

from __future__ import annotations

import logging

import networkx as nx

from atlasmap.engine.community.summary import build_communities, canonical_membership
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.registry import Stage, strategy

logger = logging.getLogger(__name__)


def to_networkx(ctx: PipelineContext) -> nx.Graph:
    """Undirected weighted graph with nodes inserted in item order."""
    graph = nx.Graph()
    graph.add_nodes_from(item.id for item in ctx.items)
    for edge in ctx.edges:
        if graph.has_node(edge.source) and graph.has_node(edge.target):
            graph.add_edge(edge.source, edge.target, weight=edge.weight)
    return graph


def louvain_labels(ctx: PipelineContext, resolution: float = 1.0, seed: int = 42) -> dict[int, int]:
    graph = to_networkx(ctx)
    communities = nx.community.louvain_communities(
        graph, weight="weight", resolution=resolution, seed=seed
    )
    logger.debug("Louvain found %d raw communities at resolution %.2f", len(communities), resolution)
    return {node: cid for cid, members in enumerate(communities) for node in members}


@strategy(
    stage=Stage.COMMUNITY,
    name="louvain",
    description="Multi-level modularity optimisation (Louvain)",
)
def louvain(ctx: PipelineContext, config: PipelineConfig) -> None:
    raw = louvain_labels(ctx, config.community.resolution, config.seed)
    build_communities(ctx, canonical_membership(ctx, raw), config.community.top_n)
