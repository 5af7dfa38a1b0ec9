"""POST /api/layout — run the full layout pipeline on a posted catalog."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from atlasmap.catalog.parser import parse_items
from atlasmap.config import Settings
from atlasmap.dependencies import get_settings
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.pipeline import create_pipeline
from atlasmap.errors import AtlasMapError
from atlasmap.models.requests import LayoutRequest
from atlasmap.models.responses import CommunitySummary, LayoutResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_SENTINEL = object()  # marks end of queue


def _prepare(req: LayoutRequest, settings: Settings) -> tuple[PipelineContext, PipelineConfig]:
    """Parse the catalog and resolve the run config; raises ``HTTPException`` 422 on bad input."""
    ctx = PipelineContext()
    try:
        ctx.items = parse_items(req.items, ctx.diagnostics)
        config = PipelineConfig.from_settings(settings).with_overrides(req.config)
    except (AtlasMapError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ctx, config


def _response(ctx: PipelineContext, elapsed_ms: float) -> LayoutResponse:
    return LayoutResponse(
        document=ctx.document.to_payload() if ctx.document else {},
        communities=[CommunitySummary(**c.summary()) for c in ctx.communities],
        diagnostics=ctx.diagnostics.as_dict(),
        processing_time_ms=round(elapsed_ms, 1),
    )


async def _stream_layout(ctx: PipelineContext, config: PipelineConfig) -> AsyncGenerator[str, None]:
    """Drive pipeline.run_streaming() in a thread, yielding SSE events as they arrive."""
    start = time.perf_counter()
    pipeline = create_pipeline(config)
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    failure: list[str] = []

    def _run_pipeline() -> None:
        """Sync pipeline in thread — pushes progress dicts onto the async queue."""
        try:
            for progress in pipeline.run_streaming(ctx):
                loop.call_soon_threadsafe(queue.put_nowait, progress)
        except AtlasMapError as e:
            failure.append(str(e))
        except Exception as e:
            logger.exception("Layout stream crashed")
            failure.append(f"Internal error: {e}")
        finally:
            loop.call_soon_threadsafe(queue.put_nowait, _SENTINEL)

    loop.run_in_executor(None, _run_pipeline)

    while True:
        item = await queue.get()
        if item is _SENTINEL:
            break
        yield f"event: progress\ndata: {json.dumps(item)}\n\n"

    if failure:
        data = json.dumps({"type": "error", "message": failure[0]})
        yield f"event: error\ndata: {data}\n\n"
        return

    response = _response(ctx, (time.perf_counter() - start) * 1000)
    yield f"event: result\ndata: {response.model_dump_json()}\n\n"
    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/layout/stream")
async def layout_stream(req: LayoutRequest, settings: Settings = Depends(get_settings)) -> StreamingResponse:
    ctx, config = _prepare(req, settings)
    return StreamingResponse(
        _stream_layout(ctx, config),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/layout", response_model=LayoutResponse)
async def layout(req: LayoutRequest, settings: Settings = Depends(get_settings)) -> LayoutResponse:
    start = time.perf_counter()
    ctx, config = _prepare(req, settings)

    try:
        await asyncio.to_thread(create_pipeline(config).run, ctx)
    except AtlasMapError as e:
        logger.warning("Layout request failed: %s", e)
        raise HTTPException(status_code=422, detail=str(e)) from e

    return _response(ctx, (time.perf_counter() - start) * 1000)
