"""Tests for the metadata and recommendation graph strategies."""

from __future__ import annotations

import pytest

from atlasmap.engine.context import Edge, PipelineContext
from atlasmap.engine.similarity.metadata import metadata_graph, score_all_pairs
from atlasmap.engine.similarity.recommendations import (
    build_recommendation_edges,
    recommendation_graph,
    recommendation_weight,
)
from atlasmap.errors import PipelineError
from atlasmap.models.item import Recommendation
from tests.conftest import fast_config, make_item


def test_metadata_edges_respect_threshold(catalog_ctx, config):
    metadata_graph(catalog_ctx, config)
    assert catalog_ctx.edges
    for edge in catalog_ctx.edges:
        assert config.similarity.min_similarity <= edge.weight <= 1.0
        assert edge.source != edge.target


def test_metadata_edges_are_ordered_by_item_position(catalog_ctx, config):
    metadata_graph(catalog_ctx, config)
    position = {item.id: i for i, item in enumerate(catalog_ctx.items)}
    assert all(position[e.source] < position[e.target] for e in catalog_ctx.edges)
    keys = [e.key for e in catalog_ctx.edges]
    assert len(keys) == len(set(keys))


def test_sequels_are_connected(catalog_ctx, config):
    metadata_graph(catalog_ctx, config)
    keys = {e.key for e in catalog_ctx.edges}
    assert (1, 2) in keys
    assert (5, 6) in keys
    assert (9, 10) in keys


def test_raising_threshold_never_adds_edges(catalog_items):
    counts = []
    for threshold in (0.0, 0.1, 0.25, 0.5, 0.75, 1.0):
        ctx = PipelineContext(items=list(catalog_items))
        counts.append(len(score_all_pairs(ctx, fast_config(similarity={"min_similarity": threshold}))))
    assert counts == sorted(counts, reverse=True)


def test_all_pairs_are_scored(catalog_ctx, config):
    score_all_pairs(catalog_ctx, config)
    assert catalog_ctx.diagnostics.pairs_scored == 12 * 11 // 2


def test_progress_reported_every_interval(catalog_ctx):
    fractions = []
    catalog_ctx.progress_callback = fractions.append
    score_all_pairs(catalog_ctx, fast_config(similarity={"progress_interval": 11}))
    # 66 pairs -> reports at 11, 22, ..., 66
    assert len(fractions) == 6
    assert fractions[-1] == pytest.approx(1.0)


def test_dissimilar_items_produce_no_edges(dissimilar_items, config):
    ctx = PipelineContext(items=dissimilar_items)
    metadata_graph(ctx, config)
    assert ctx.edges == []
    assert ctx.diagnostics.isolated_items == 4
    assert ctx.num_items == 4


def test_drop_isolated_items(config):
    items = [
        make_item(1, genres=["Action"]),
        make_item(2, genres=["Action"]),
        make_item(3, genres=["Romance"]),
    ]
    ctx = PipelineContext(items=items)
    metadata_graph(ctx, fast_config(similarity={"isolated_items": "drop"}))
    assert [i.id for i in ctx.items] == [1, 2]
    assert ctx.diagnostics.dropped_isolated == 1


def test_drop_isolated_with_no_edges_aborts(dissimilar_items):
    ctx = PipelineContext(items=dissimilar_items)
    with pytest.raises(PipelineError):
        metadata_graph(ctx, fast_config(similarity={"isolated_items": "drop"}))


def test_unknown_isolated_policy_rejected(dissimilar_items):
    ctx = PipelineContext(items=dissimilar_items)
    with pytest.raises(ValueError):
        metadata_graph(ctx, fast_config(similarity={"isolated_items": "ignore"}))


def test_recommendation_weight_floor():
    assert recommendation_weight(40) == 1.0
    assert recommendation_weight(250) == 2.5


def _with_recs(item_id, *recs):
    return make_item(
        item_id,
        recommendations=tuple(Recommendation(recommended_id=r, rating=w) for r, w in recs),
    )


def test_recommendation_duplicates_keep_larger_weight():
    items = [
        _with_recs(1, (2, 150)),
        _with_recs(2, (1, 300), (3, 50)),
        _with_recs(3),
    ]
    edges = build_recommendation_edges(PipelineContext(items=items))
    assert edges == [Edge(1, 2, 3.0), Edge(2, 3, 1.0)]


def test_recommendations_to_unknown_or_self_are_dropped(config):
    items = [_with_recs(1, (1, 200), (99, 200), (2, 120)), _with_recs(2)]
    ctx = PipelineContext(items=items)
    recommendation_graph(ctx, config)
    assert ctx.edges == [Edge(1, 2, 1.2)]
    assert ctx.diagnostics.dropped_edges == 2
