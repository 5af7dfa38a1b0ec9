"""API request models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class LayoutRequest(BaseModel):
    items: list[dict[str, Any]] = Field(..., description="Catalog records, flat or AniList-nested")
    config: dict[str, Any] = Field(
        default_factory=dict,
        description='Nested PipelineConfig overrides (e.g. {"community": {"strategy": "genre"}})',
    )
