"""Output document model — the single artefact handed to the rendering layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CompactItem(BaseModel):
    """Per-item record with short keys; absent optionals are omitted, never null."""

    model_config = ConfigDict(extra="forbid")

    id: str
    t: str
    et: str | None = None
    g: list[str] = Field(default_factory=list)
    p: int = 0
    c: int
    h: int
    x: int
    y: int
    img: str | None = None
    desc: str | None = None


class Bounds(BaseModel):
    width: float
    height: float


class LayoutDocument(BaseModel):
    """``{items, edges, bounds}`` as consumed by the renderer."""

    items: list[CompactItem] = Field(default_factory=list)
    edges: list[tuple[str, str, float]] = Field(default_factory=list)
    bounds: Bounds

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
