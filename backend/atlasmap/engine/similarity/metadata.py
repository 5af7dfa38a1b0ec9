"""Metadata similarity graph — all-pairs weighted-factor scoring.

Pairwise cost is O(n²): n ≈ 10⁴ means ~5·10⁷ pairs, so progress is reported
every ``progress_interval`` pairs and row blocks can be scored in a process
pool. Blocks are merged in row order, so the edge sequence never depends on
the worker count.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ProcessPoolExecutor

from atlasmap.engine.config import FactorWeights, PipelineConfig
from atlasmap.engine.context import Edge, PipelineContext
from atlasmap.engine.registry import Stage, strategy
from atlasmap.engine.similarity.factors import ItemFeatures, metadata_similarity
from atlasmap.engine.similarity.graph import finalize_graph

logger = logging.getLogger(__name__)

_BLOCKS_PER_WORKER = 4


def _score_rows(
    features: list[ItemFeatures],
    start: int,
    stop: int,
    weights: FactorWeights,
    season_window: float,
    threshold: float,
) -> tuple[list[tuple[int, int, float]], int]:
    """Score rows [start, stop) against every later row. Runs in worker processes."""
    found: list[tuple[int, int, float]] = []
    pairs = 0
    n = len(features)
    for i in range(start, stop):
        a = features[i]
        for j in range(i + 1, n):
            score = metadata_similarity(a, features[j], weights, season_window)
            if score >= threshold:
                found.append((a.id, features[j].id, score))
        pairs += n - i - 1
    return found, pairs


def _row_blocks(n: int, workers: int) -> list[tuple[int, int]]:
    block = max(1, math.ceil(n / (workers * _BLOCKS_PER_WORKER)))
    return [(start, min(n, start + block)) for start in range(0, n, block)]


def score_all_pairs(ctx: PipelineContext, config: PipelineConfig) -> list[Edge]:
    sim = config.similarity
    features = [ItemFeatures.from_item(item, sim.exclude_spoiler_tags) for item in ctx.items]
    n = len(features)
    total = n * (n - 1) // 2
    interval = max(1, sim.progress_interval)

    edges: list[Edge] = []
    processed = 0

    if sim.workers > 1 and n > 1:
        logger.info("Scoring %d pairs with %d workers", total, sim.workers)
        blocks = _row_blocks(n, sim.workers)
        with ProcessPoolExecutor(max_workers=sim.workers) as pool:
            futures = [
                pool.submit(_score_rows, features, start, stop, sim.weights, sim.season_window, sim.min_similarity)
                for start, stop in blocks
            ]
            for future in futures:
                found, pairs = future.result()
                edges.extend(Edge(s, t, w) for s, t, w in found)
                processed += pairs
                ctx.report_progress(processed / total if total else 1.0)
                logger.info("Processed %d/%d pairs, %d edges so far", processed, total, len(edges))
    else:
        for i in range(n):
            a = features[i]
            for j in range(i + 1, n):
                score = metadata_similarity(a, features[j], sim.weights, sim.season_window)
                if score >= sim.min_similarity:
                    edges.append(Edge(a.id, features[j].id, score))
                processed += 1
                if processed % interval == 0:
                    ctx.report_progress(processed / total)
                    logger.info(
                        "Processed %d/%d pairs (%.1f%%), %d edges so far",
                        processed,
                        total,
                        processed / total * 100,
                        len(edges),
                    )

    ctx.diagnostics.pairs_scored = processed
    logger.info("Found %d edges above threshold %.2f", len(edges), sim.min_similarity)
    return edges


@strategy(
    stage=Stage.SIMILARITY,
    name="metadata",
    description="Weighted multi-factor metadata similarity over all item pairs",
)
def metadata_graph(ctx: PipelineContext, config: PipelineConfig) -> None:
    edges = score_all_pairs(ctx, config)
    finalize_graph(ctx, edges, config.similarity)
