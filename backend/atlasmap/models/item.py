"""Catalog item model — the unit scored, clustered and positioned by the pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Titles(BaseModel):
    model_config = ConfigDict(frozen=True)

    romaji: str | None = None
    english: str | None = None
    native: str | None = None

    def first(self) -> str | None:
        return self.romaji or self.english or self.native


class RankedTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    rank: float = 0.0
    is_spoiler: bool = False


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommended_id: int
    rating: float = 0.0


class Item(BaseModel):
    """One catalogued entity. Immutable for the duration of a pipeline run."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: Titles = Field(default_factory=Titles)
    genres: tuple[str, ...] = ()
    tags: tuple[RankedTag, ...] = ()
    studio_ids: frozenset[int] = frozenset()
    staff_ids: frozenset[int] = frozenset()
    format: str | None = None
    season_year: int | None = None
    related_ids: frozenset[int] = frozenset()
    recommendations: tuple[Recommendation, ...] = ()
    popularity: int = 0
    image_url: str | None = None
    description: str | None = None

    @property
    def display_title(self) -> str:
        return self.title.first() or str(self.id)
