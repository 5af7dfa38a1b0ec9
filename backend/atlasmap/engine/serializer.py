"""LayoutSerializer — normalises coordinates into world space and emits the compact document."""

from __future__ import annotations

import json
from typing import Any

import numpy as np

from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.registry import Stage, strategy
from atlasmap.errors import PipelineError
from atlasmap.models.document import Bounds, CompactItem, LayoutDocument
from atlasmap.utils.math_helpers import finite_or_zero, rescale_axis


def build_document(ctx: PipelineContext, world_scale: float = 20000.0, decimals: int = 3) -> LayoutDocument:
    if ctx.layout is None:
        raise PipelineError("Nothing to serialize: layout stage has not run", stage="serialize")

    positions = ctx.layout.positions
    xs = np.array([finite_or_zero(positions.get(item.id, (0.0, 0.0))[0]) for item in ctx.items])
    ys = np.array([finite_or_zero(positions.get(item.id, (0.0, 0.0))[1]) for item in ctx.items])
    # x and y are stretched independently onto the full square
    px = rescale_axis(xs, world_scale)
    py = rescale_axis(ys, world_scale)

    records: list[CompactItem] = []
    for i, item in enumerate(ctx.items):
        hue = finite_or_zero(ctx.layout.hues.get(item.id, 0.0))
        records.append(
            CompactItem(
                id=str(item.id),
                t=item.display_title,
                et=item.title.english or None,
                g=list(item.genres),
                p=item.popularity,
                c=ctx.membership.get(item.id, -1),
                h=int(round(hue)) % 360,
                x=int(px[i]),
                y=int(py[i]),
                img=item.image_url or None,
                desc=item.description or None,
            )
        )

    edges = [(str(e.source), str(e.target), round(e.weight, decimals)) for e in ctx.edges]
    return LayoutDocument(items=records, edges=edges, bounds=Bounds(width=world_scale, height=world_scale))


def parse_document(data: str | bytes | dict[str, Any]) -> LayoutDocument:
    """Validate a serialized document (JSON text or decoded dict) back into the model."""
    if isinstance(data, (str, bytes)):
        return LayoutDocument.model_validate_json(data)
    return LayoutDocument.model_validate(data)


def to_json(document: LayoutDocument) -> str:
    return json.dumps(document.to_payload(), separators=(",", ":"), ensure_ascii=False)


@strategy(
    stage=Stage.SERIALIZE,
    name="compact",
    description="World-space normalisation and compact output document",
)
def compact_document(ctx: PipelineContext, config: PipelineConfig) -> None:
    ctx.document = build_document(ctx, config.world_scale, config.edge_weight_decimals)
