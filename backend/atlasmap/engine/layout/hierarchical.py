"""Hierarchical coarse-to-fine layout.

Tier 0 simulates one particle per community. Every later tier splits each
particle's members across up to 2**tier children seeded next to it and
re-simulates the finer set. Items are finally scattered on a small circle
around the particle that holds them, so the full O(n²) force cost is only
ever paid on a few hundred particles.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from atlasmap.engine.config import LayoutConfig, PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.layout.density import normalize_density
from atlasmap.engine.layout.forces import ForceSimulation
from atlasmap.engine.layout.hues import assign_hues
from atlasmap.engine.layout.nodes import LayoutNode, LayoutResult
from atlasmap.engine.registry import Stage, strategy
from atlasmap.utils.math_helpers import phyllotaxis
from atlasmap.utils.random_streams import Stream, stream

logger = logging.getLogger(__name__)


def tier_links(nodes: list[LayoutNode], ctx: PipelineContext) -> list[tuple[int, int, float]]:
    """One link per pair of distinct particles holding the two ends of some item edge.

    The link takes the weight of the first such item edge met in edge order,
    not an aggregate over all of them.
    """
    owner: dict[int, int] = {}
    for idx, node in enumerate(nodes):
        for member in node.members:
            owner[member] = idx

    links: list[tuple[int, int, float]] = []
    seen: set[tuple[int, int]] = set()
    for edge in ctx.edges:
        a = owner.get(edge.source)
        b = owner.get(edge.target)
        if a is None or b is None or a == b:
            continue
        key = (min(a, b), max(a, b))
        if key in seen:
            continue
        seen.add(key)
        links.append((a, b, edge.weight))
    return links


def run_tier(
    nodes: list[LayoutNode],
    links: list[tuple[int, int, float]],
    iterations: int,
    layout: LayoutConfig,
    rng: np.random.Generator,
) -> None:
    """Simulate one tier and write the settled positions back onto ``nodes``."""
    positions = np.array([[n.x, n.y] for n in nodes], dtype=np.float64).reshape(-1, 2)
    sim = ForceSimulation(positions, links, layout.forces, rng)

    def _normalize(s: ForceSimulation) -> None:
        normalize_density(s.pos, layout.target_density)

    settled = sim.run(iterations, on_batch=_normalize, batch_size=max(1, layout.density_interval))
    for node, (x, y) in zip(nodes, settled):
        node.x = float(x)
        node.y = float(y)
    logger.info("  %d particles, %d links, %d ticks (alpha %.4f)", len(nodes), len(links), sim.ticks, sim.alpha)


class HierarchicalLayoutEngine:
    """Assigns every item a 2-D position and hue via tiered force simulation."""

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self.layout = config.layout

    def initial_nodes(self, ctx: PipelineContext) -> list[LayoutNode]:
        communities = sorted(ctx.communities, key=lambda c: c.id)
        sizes = {c.id: c.size for c in communities}
        hues = assign_hues([c.id for c in communities], sizes, stream(self.config.seed, Stream.HUES))
        seeds = phyllotaxis(len(communities))
        return [
            LayoutNode(
                id=str(c.id),
                cluster_id=c.id,
                tier=0,
                x=float(seeds[i, 0]),
                y=float(seeds[i, 1]),
                hue=hues[c.id],
                members=list(c.members),
            )
            for i, c in enumerate(communities)
        ]

    def subdivide(self, parents: list[LayoutNode], tier: int) -> list[LayoutNode]:
        """Split each parent into up to 2**tier children holding even shares of its members."""
        rng = stream(self.config.seed, Stream.JITTER, tier)
        jitter = self.layout.jitter
        children: list[LayoutNode] = []
        for parent in parents:
            count = max(1, min(2**tier, math.ceil(len(parent.members) / self.layout.members_per_subgroup)))
            shares = np.array_split(np.array(parent.members, dtype=np.int64), count)
            for i, share in enumerate(shares):
                dx, dy = (rng.random(2) - 0.5) * 2 * jitter
                children.append(
                    LayoutNode(
                        id=f"{parent.id}.{i}",
                        cluster_id=parent.cluster_id,
                        tier=tier,
                        x=parent.x + float(dx),
                        y=parent.y + float(dy),
                        hue=parent.hue,
                        members=[int(m) for m in share],
                        parent=parent.id,
                    )
                )
        return children

    def finalize(
        self,
        ctx: PipelineContext,
        nodes: list[LayoutNode],
        ancestors: list[LayoutNode],
    ) -> LayoutResult:
        """Place each item on a small circle around the particle that holds it.

        ``ancestors`` are the settled particles of every earlier tier; items no
        final particle holds are placed near the deepest of them that does.
        """
        rng = stream(self.config.seed, Stream.PLACEMENT)
        r_min, r_max = self.layout.placement_radius_min, self.layout.placement_radius_max
        result = LayoutResult(nodes=nodes, tiers_run=self.layout.max_tier + 1)

        for node in nodes:
            count = len(node.members)
            for i, member in enumerate(node.members):
                if count == 1:
                    result.positions[member] = (node.x, node.y)
                else:
                    angle = 2 * math.pi * i / count
                    radius = float(rng.uniform(r_min, r_max))
                    result.positions[member] = (
                        node.x + math.cos(angle) * radius,
                        node.y + math.sin(angle) * radius,
                    )
                result.hues[member] = node.hue

        missing = [item for item in ctx.items if item.id not in result.positions]
        if missing:
            self._place_unresolved(ctx, missing, [*ancestors, *nodes], result)
        return result

    @staticmethod
    def _nearest_ancestor(item_id: int, cluster_id: int, lineage: list[LayoutNode]) -> LayoutNode | None:
        """Deepest particle holding ``item_id``, else the tier-0 particle of its community."""
        holders = [n for n in lineage if item_id in n.members]
        if holders:
            return max(holders, key=lambda n: n.tier)
        for node in lineage:
            if node.tier == 0 and node.cluster_id == cluster_id:
                return node
        return None

    def _place_unresolved(self, ctx, missing, lineage: list[LayoutNode], result: LayoutResult) -> None:
        rng = stream(self.config.seed, Stream.FALLBACK)
        spread = self.layout.fallback_spread
        for item in missing:
            anchor = self._nearest_ancestor(item.id, ctx.membership.get(item.id, -1), lineage)
            ax, ay, hue = (anchor.x, anchor.y, anchor.hue) if anchor else (0.0, 0.0, 0.0)
            dx, dy = (rng.random(2) - 0.5) * 2 * spread
            result.positions[item.id] = (ax + float(dx), ay + float(dy))
            result.hues[item.id] = hue
        ctx.diagnostics.unresolved_placements = len(missing)
        logger.warning("%d items had no final layout particle; placed near the nearest ancestor", len(missing))

    def run(self, ctx: PipelineContext) -> LayoutResult:
        layout = self.layout
        logger.info("Tier 0: laying out %d communities", len(ctx.communities))
        nodes = self.initial_nodes(ctx)
        ancestors: list[LayoutNode] = []
        run_tier(
            nodes,
            tier_links(nodes, ctx),
            layout.tier0_iterations,
            layout,
            stream(self.config.seed, Stream.SIMULATION, 0),
        )

        for tier in range(1, layout.max_tier + 1):
            logger.info("Tier %d: subdividing clusters", tier)
            ancestors.extend(nodes)
            nodes = self.subdivide(nodes, tier)
            run_tier(
                nodes,
                tier_links(nodes, ctx),
                layout.tier_iterations,
                layout,
                stream(self.config.seed, Stream.SIMULATION, tier),
            )

        logger.info("Hierarchical layout complete: %d final particles", len(nodes))
        return self.finalize(ctx, nodes, ancestors)


@strategy(
    stage=Stage.LAYOUT,
    name="hierarchical",
    description="Coarse-to-fine tiered force simulation with density control",
)
def hierarchical_layout(ctx: PipelineContext, config: PipelineConfig) -> None:
    ctx.layout = HierarchicalLayoutEngine(config).run(ctx)
