"""Tests for the hierarchical and flat layout strategies."""

from __future__ import annotations

import math

import pytest

from atlasmap.engine.community.louvain import louvain
from atlasmap.engine.context import Edge, PipelineContext
from atlasmap.engine.layout.flat import flat_layout
from atlasmap.engine.layout.hierarchical import HierarchicalLayoutEngine, hierarchical_layout, tier_links
from atlasmap.engine.layout.nodes import LayoutNode, LayoutResult
from atlasmap.engine.similarity.metadata import metadata_graph
from tests.conftest import fast_config, make_item


def _clustered(items, config) -> PipelineContext:
    ctx = PipelineContext(items=list(items))
    metadata_graph(ctx, config)
    louvain(ctx, config)
    return ctx


def _assert_all_placed(ctx):
    layout = ctx.layout
    assert set(layout.positions) == {item.id for item in ctx.items}
    for x, y in layout.positions.values():
        assert math.isfinite(x) and math.isfinite(y)
    assert set(layout.hues) == set(layout.positions)


def test_every_item_gets_a_finite_position(catalog_items, config):
    ctx = _clustered(catalog_items, config)
    hierarchical_layout(ctx, config)
    _assert_all_placed(ctx)
    assert ctx.diagnostics.unresolved_placements == 0


def test_final_nodes_trace_back_to_tier_zero(catalog_items, config):
    ctx = _clustered(catalog_items, config)
    hierarchical_layout(ctx, config)
    community_ids = {str(c.id) for c in ctx.communities}
    for node in ctx.layout.nodes:
        assert node.tier == config.layout.max_tier
        assert node.id.startswith(f"{node.parent}.")
        assert node.id.split(".")[0] in community_ids
        assert all(ctx.membership[m] == node.cluster_id for m in node.members)


def test_items_share_their_community_hue(catalog_items, config):
    ctx = _clustered(catalog_items, config)
    hierarchical_layout(ctx, config)
    for community in ctx.communities:
        assert len({ctx.layout.hues[m] for m in community.members}) == 1


def test_small_communities_are_not_subdivided(catalog_items, config):
    ctx = _clustered(catalog_items, config)
    hierarchical_layout(ctx, config)
    assert len(ctx.layout.nodes) == len(ctx.communities)


def test_dissimilar_items_get_distinct_positions(dissimilar_items, config):
    ctx = _clustered(dissimilar_items, config)
    assert len(ctx.communities) == 4
    hierarchical_layout(ctx, config)
    _assert_all_placed(ctx)
    points = {(round(x, 6), round(y, 6)) for x, y in ctx.layout.positions.values()}
    assert len(points) == 4


def test_single_item_sits_at_origin(config):
    ctx = _clustered([make_item(1, genres=["Action"])], config)
    hierarchical_layout(ctx, config)
    assert ctx.layout.positions[1] == pytest.approx((0.0, 0.0))


def test_layout_is_reproducible(catalog_items, config):
    a = _clustered(catalog_items, config)
    b = _clustered(catalog_items, config)
    hierarchical_layout(a, config)
    hierarchical_layout(b, config)
    assert a.layout.positions == b.layout.positions
    assert a.layout.hues == b.layout.hues


def test_different_seed_changes_layout(catalog_items):
    a = _clustered(catalog_items, fast_config(seed=1))
    b = _clustered(catalog_items, fast_config(seed=2))
    hierarchical_layout(a, fast_config(seed=1))
    hierarchical_layout(b, fast_config(seed=2))
    assert a.layout.positions != b.layout.positions


def test_subdivide_splits_members_evenly(config):
    engine = HierarchicalLayoutEngine(config)
    parent = LayoutNode(id="0", cluster_id=0, tier=0, x=10.0, y=-5.0, hue=90.0, members=list(range(230)))

    tier2 = engine.subdivide([parent], tier=2)
    assert [len(c.members) for c in tier2] == [58, 58, 57, 57]
    assert [m for c in tier2 for m in c.members] == list(range(230))
    for child in tier2:
        assert child.parent == "0"
        assert child.hue == 90.0
        assert abs(child.x - 10.0) <= 25.0
        assert abs(child.y + 5.0) <= 25.0

    # ceil(230 / 50) caps the count below 2**3
    assert len(engine.subdivide([parent], tier=3)) == 5


def test_tier_links_collapse_to_first_edge():
    items = [make_item(i) for i in range(1, 5)]
    ctx = PipelineContext(
        items=items,
        edges=[Edge(1, 3, 0.4), Edge(2, 4, 0.9), Edge(1, 2, 0.7)],
    )
    nodes = [
        LayoutNode(id="0", cluster_id=0, tier=0, members=[1, 2]),
        LayoutNode(id="1", cluster_id=1, tier=0, members=[3, 4]),
    ]
    assert tier_links(nodes, ctx) == [(0, 1, 0.4)]


def test_unresolved_items_fall_back_near_their_community(config):
    items = [make_item(1), make_item(2)]
    ctx = PipelineContext(items=items, membership={1: 0, 2: 0})
    anchor = LayoutNode(id="0", cluster_id=0, tier=0, x=100.0, y=100.0, hue=30.0, members=[1, 2])
    final = [LayoutNode(id="0.0", cluster_id=0, tier=1, x=100.0, y=100.0, hue=30.0, members=[1], parent="0")]

    result = HierarchicalLayoutEngine(config).finalize(ctx, final, [anchor])
    x, y = result.positions[2]
    assert abs(x - 100.0) <= 50.0 and abs(y - 100.0) <= 50.0
    assert result.hues[2] == 30.0
    assert ctx.diagnostics.unresolved_placements == 1


def test_unresolved_items_anchor_on_deepest_holding_ancestor(config):
    ctx = PipelineContext(items=[make_item(i) for i in range(1, 4)], membership={1: 0, 2: 0, 3: 0})
    root = LayoutNode(id="0", cluster_id=0, tier=0, x=0.0, y=0.0, hue=10.0, members=[1, 2, 3])
    left = LayoutNode(id="0.0", cluster_id=0, tier=1, x=-900.0, y=0.0, hue=10.0, members=[1], parent="0")
    right = LayoutNode(id="0.1", cluster_id=0, tier=1, x=900.0, y=900.0, hue=10.0, members=[2, 3], parent="0")
    # Tier 2 lost the child holding item 3
    final = [
        LayoutNode(id="0.0.0", cluster_id=0, tier=2, x=-900.0, y=0.0, hue=10.0, members=[1], parent="0.0"),
        LayoutNode(id="0.1.0", cluster_id=0, tier=2, x=900.0, y=900.0, hue=10.0, members=[2], parent="0.1"),
    ]

    result = HierarchicalLayoutEngine(config).finalize(ctx, final, [root, left, right])
    x, y = result.positions[3]
    assert abs(x - 900.0) <= 50.0 and abs(y - 900.0) <= 50.0
    assert ctx.diagnostics.unresolved_placements == 1


def test_unresolved_item_outside_every_particle_uses_its_community(config):
    ctx = PipelineContext(items=[make_item(1), make_item(2)], membership={1: 4, 2: 4})
    root = LayoutNode(id="4", cluster_id=4, tier=0, x=-300.0, y=200.0, hue=90.0, members=[1])
    result = HierarchicalLayoutEngine(config).finalize(ctx, [root], [])
    x, y = result.positions[2]
    assert abs(x + 300.0) <= 50.0 and abs(y - 200.0) <= 50.0
    assert result.hues[2] == 90.0


def test_members_are_placed_on_a_ring(config):
    ctx = PipelineContext(items=[make_item(i) for i in range(1, 5)])
    node = LayoutNode(id="0", cluster_id=0, tier=0, x=0.0, y=0.0, members=[1, 2, 3, 4])
    result = HierarchicalLayoutEngine(config).finalize(ctx, [node], [node])
    for x, y in result.positions.values():
        assert 20.0 <= math.hypot(x, y) <= 50.0


def test_layout_result_round_trips_through_dict(catalog_items, config):
    ctx = _clustered(catalog_items, config)
    hierarchical_layout(ctx, config)
    restored = LayoutResult.from_dict(ctx.layout.to_dict())
    assert restored.positions == ctx.layout.positions
    assert restored.nodes == ctx.layout.nodes


def test_flat_layout_places_one_particle_per_item(catalog_items, config):
    ctx = _clustered(catalog_items, fast_config(layout={"strategy": "flat"}))
    flat_layout(ctx, config)
    _assert_all_placed(ctx)
    assert len(ctx.layout.nodes) == len(catalog_items)
    assert ctx.layout.tiers_run == 1
