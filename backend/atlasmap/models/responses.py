"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    strategies_registered: int = 0


class CommunitySummary(BaseModel):
    id: int
    size: int
    primary_label: str = "Unknown"
    top_genres: list[str] = Field(default_factory=list)
    top_items: list[str] = Field(default_factory=list)


class LayoutResponse(BaseModel):
    # Compact output document, optional keys already omitted
    document: dict[str, Any]
    communities: list[CommunitySummary] = Field(default_factory=list)
    diagnostics: dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: float = 0.0
