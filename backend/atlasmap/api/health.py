"""Health check + strategy listing."""

from __future__ import annotations

from fastapi import APIRouter

from atlasmap import __version__
from atlasmap.engine.registry import get_registry
from atlasmap.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        strategies_registered=get_registry().count,
    )


@router.get("/strategies")
async def strategies() -> dict[str, list[str]]:
    registry = get_registry()
    return {spec.stage.name.lower(): registry.names(spec.stage) for spec in registry.all()}
