"""Tests for the pipeline orchestrator."""

import pytest

from atlasmap.engine.context import PipelineContext
from atlasmap.engine.pipeline import Pipeline, create_pipeline
from atlasmap.engine.registry import Stage, StrategyRegistry, StrategySpec
from atlasmap.engine.serializer import to_json
from atlasmap.errors import CatalogError, PipelineError
from tests.conftest import fast_config


def _registry(**overrides) -> StrategyRegistry:
    """Registry with one recording strategy per stage under the default names."""
    reg = StrategyRegistry()
    calls = []
    names = {
        Stage.SIMILARITY: "metadata",
        Stage.COMMUNITY: "louvain",
        Stage.LAYOUT: "hierarchical",
        Stage.SERIALIZE: "compact",
    }
    for stage, name in names.items():

        def fn(ctx, config, _stage=stage):
            calls.append(_stage)

        reg.register(StrategySpec(stage=stage, name=name, fn=overrides.get(stage.name.lower(), fn)))
    reg.calls = calls
    return reg


def test_pipeline_runs_stages_in_order(catalog_ctx):
    reg = _registry()
    Pipeline(registry=reg).run(catalog_ctx)
    assert reg.calls == [Stage.SIMILARITY, Stage.COMMUNITY, Stage.LAYOUT, Stage.SERIALIZE]
    assert catalog_ctx.completed_stages == ["similarity", "community", "layout", "serialize"]
    assert set(catalog_ctx.diagnostics.stage_timings_ms) == set(catalog_ctx.completed_stages)


def test_stage_failure_aborts_the_run(catalog_ctx):
    def fail(ctx, config):
        raise ValueError("boom")

    reg = _registry(community=fail)
    with pytest.raises(PipelineError, match="boom") as exc_info:
        Pipeline(registry=reg).run(catalog_ctx)
    assert exc_info.value.stage == "community"
    assert reg.calls == [Stage.SIMILARITY]
    assert catalog_ctx.completed_stages == ["similarity"]


def test_streaming_events(catalog_ctx):
    def report(ctx, config):
        ctx.report_progress(0.5)

    events = list(Pipeline(registry=_registry(similarity=report)).run_streaming(catalog_ctx))
    statuses = [(e["stage"], e["status"]) for e in events]
    assert statuses[:3] == [("SIMILARITY", "running"), ("SIMILARITY", "running"), ("SIMILARITY", "ok")]
    assert events[1]["sub_progress"] == 0.5
    assert statuses[-1] == ("SERIALIZE", "ok")
    assert all(e["total"] == 4 for e in events)


def test_streaming_reports_error_event(catalog_ctx):
    def fail(ctx, config):
        raise RuntimeError("layout exploded")

    events = []
    with pytest.raises(PipelineError):
        for event in Pipeline(registry=_registry(layout=fail)).run_streaming(catalog_ctx):
            events.append(event)
    assert events[-1]["status"] == "error"
    assert events[-1]["stage"] == "LAYOUT"
    assert "layout exploded" in events[-1]["error"]


def test_empty_input_raises():
    with pytest.raises(CatalogError):
        Pipeline(registry=_registry()).run(PipelineContext())


def test_unknown_strategy_is_a_pipeline_error(catalog_ctx):
    config = fast_config(community={"strategy": "spectral"})
    with pytest.raises(PipelineError, match="spectral"):
        create_pipeline(config).run(catalog_ctx)


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"community": {"strategy": "genre"}},
        {"community": {"strategy": "label_propagation"}},
        {"layout": {"strategy": "flat"}},
        {"similarity": {"strategy": "recommendations"}},
    ],
)
def test_full_pipeline_variants(catalog_items, overrides):
    ctx = PipelineContext(items=list(catalog_items))
    create_pipeline(fast_config(**overrides)).run(ctx)
    assert len(ctx.document.items) == len(catalog_items)
    assert sorted(int(i.id) for i in ctx.document.items) == sorted(i.id for i in catalog_items)


def test_full_pipeline_is_bit_identical_across_runs(catalog_items, config):
    first = create_pipeline(config).run(PipelineContext(items=list(catalog_items)))
    second = create_pipeline(config).run(PipelineContext(items=list(catalog_items)))
    assert to_json(first.document) == to_json(second.document)


def test_parallel_scoring_matches_sequential(catalog_items):
    sequential = create_pipeline(fast_config()).run(PipelineContext(items=list(catalog_items)))
    parallel = create_pipeline(fast_config(similarity={"workers": 2})).run(PipelineContext(items=list(catalog_items)))
    assert sequential.edges == parallel.edges
