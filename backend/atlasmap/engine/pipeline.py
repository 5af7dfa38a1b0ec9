"""Pipeline orchestrator — runs the four stages in order behind hard barriers."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from typing import Any

from atlasmap.engine.checkpoint import CheckpointStore, run_fingerprint
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.registry import Stage, StrategyRegistry, StrategySpec, get_registry
from atlasmap.errors import AtlasMapError, CatalogError, PipelineError

logger = logging.getLogger(__name__)

SERIALIZER = "compact"


class Pipeline:
    """Orchestrates similarity → communities → layout → serialization."""

    def __init__(
        self,
        registry: StrategyRegistry | None = None,
        config: PipelineConfig | None = None,
        checkpoints: CheckpointStore | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or PipelineConfig()
        self.checkpoints = checkpoints

    def plan(self) -> list[StrategySpec]:
        """The strategy selected for each stage, in execution order."""
        return [
            self.registry.get(Stage.SIMILARITY, self.config.similarity.strategy),
            self.registry.get(Stage.COMMUNITY, self.config.community.strategy),
            self.registry.get(Stage.LAYOUT, self.config.layout.strategy),
            self.registry.get(Stage.SERIALIZE, SERIALIZER),
        ]

    def run(self, ctx: PipelineContext, resume: bool = False) -> PipelineContext:
        """Run every stage on ``ctx``; raises ``PipelineError`` on the first failure."""
        for _ in self.run_streaming(ctx, resume=resume):
            pass
        return ctx

    def run_streaming(
        self, ctx: PipelineContext, resume: bool = False
    ) -> Generator[dict[str, Any], None, None]:
        """Run the pipeline, yielding a progress dict around each stage.

        The caller's ``ctx`` is mutated in-place, so after the generator is
        exhausted the context contains all results (same as ``run()``).
        """
        if not ctx.items:
            raise CatalogError("Cannot lay out an empty item set")

        try:
            plan = self.plan()
        except KeyError as e:
            raise PipelineError(str(e.args[0]), stage="config") from e
        total = len(plan)
        fingerprint = run_fingerprint(ctx.items, self.config)
        restored = self._restore(ctx, fingerprint) if resume else 0
        start = time.perf_counter()

        logger.info(
            "Pipeline: %d items, %s",
            ctx.num_items,
            " -> ".join(spec.key for spec in plan),
        )

        for index, spec in enumerate(plan):
            stage = spec.stage.name.lower()
            if index < restored:
                yield self._event(spec, index, total, "restored")
                continue

            yield self._event(spec, index, total, "running")

            sub_events: list[dict[str, Any]] = []

            def _on_sub_progress(pct: float, _spec=spec, _index=index) -> None:
                event = self._event(_spec, _index, total, "running")
                event["sub_progress"] = round(pct, 4)
                sub_events.append(event)

            ctx.progress_callback = _on_sub_progress
            t0 = time.perf_counter()
            try:
                spec.fn(ctx, self.config)
            except AtlasMapError as e:
                logger.error("  %s FAILED: %s", spec.key, e)
                yield self._event(spec, index, total, "error", error=str(e))
                raise
            except Exception as e:
                logger.error("  %s FAILED: %s", spec.key, e)
                yield self._event(spec, index, total, "error", error=str(e))
                raise PipelineError(f"{spec.key} failed: {e}", stage=stage) from e
            finally:
                ctx.progress_callback = None

            yield from sub_events

            elapsed_ms = round((time.perf_counter() - t0) * 1000, 1)
            ctx.diagnostics.stage_timings_ms[stage] = elapsed_ms
            ctx.completed_stages.append(stage)
            logger.debug("  %s completed in %.1fms", spec.key, elapsed_ms)

            if self.checkpoints is not None:
                self.checkpoints.save(spec.stage, ctx, fingerprint)

            yield self._event(spec, index, total, "ok", elapsed_ms=elapsed_ms)

        logger.info(
            "Pipeline complete: %d items, %d edges, %d communities in %.0fms",
            ctx.num_items,
            len(ctx.edges),
            len(ctx.communities),
            (time.perf_counter() - start) * 1000,
        )

    def _restore(self, ctx: PipelineContext, fingerprint: str) -> int:
        if self.checkpoints is None:
            return 0
        restored: list[Stage] = []
        for stage in self.checkpoints.completed(fingerprint):
            try:
                self.checkpoints.restore(stage, ctx)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Checkpoint for %s is unreadable; re-running from there: %s", stage.name, e)
                break
            ctx.completed_stages.append(stage.name.lower())
            restored.append(stage)
        if restored:
            logger.info("Resuming after %s", restored[-1].name)
        return len(restored)

    @staticmethod
    def _event(
        spec: StrategySpec,
        index: int,
        total: int,
        status: str,
        elapsed_ms: float = 0.0,
        error: str = "",
    ) -> dict[str, Any]:
        return {
            "stage": spec.stage.name,
            "strategy": spec.name,
            "description": spec.description,
            "index": index,
            "total": total,
            "elapsed_ms": elapsed_ms,
            "status": status,
            "error": error,
        }


def create_pipeline(
    config: PipelineConfig | None = None,
    checkpoints: CheckpointStore | None = None,
) -> Pipeline:
    """Factory function for creating a pipeline instance."""
    return Pipeline(config=config, checkpoints=checkpoints)
