"""Metadata similarity factors.

score(A, B) = Σ(factor × weight) / Σ(applicable weights)

A factor whose attribute is missing on either side is left out of both sums,
so absent metadata never counts as disagreement. Every factor is symmetric.
"""

from __future__ import annotations

from dataclasses import dataclass

from atlasmap.engine.config import FactorWeights
from atlasmap.models.item import Item
from atlasmap.utils.math_helpers import jaccard


@dataclass(frozen=True)
class ItemFeatures:
    """Set-valued view of an Item, precomputed once per run."""

    id: int
    genres: frozenset[str]
    tag_ranks: dict[str, float]
    studios: frozenset[int]
    staff: frozenset[int]
    format: str | None
    season_year: int | None
    related: frozenset[int]

    @classmethod
    def from_item(cls, item: Item, exclude_spoilers: bool = True) -> ItemFeatures:
        ranks: dict[str, float] = {}
        for tag in item.tags:
            if exclude_spoilers and tag.is_spoiler:
                continue
            ranks[tag.name] = max(ranks.get(tag.name, 0.0), float(tag.rank))
        return cls(
            id=item.id,
            genres=frozenset(item.genres),
            tag_ranks=ranks,
            studios=item.studio_ids,
            staff=item.staff_ids,
            format=item.format or None,
            season_year=item.season_year,
            related=item.related_ids,
        )


def tag_overlap(a: dict[str, float], b: dict[str, float]) -> float:
    """Rank-weighted overlap: Σ min(rankA, rankB) / Σ max(rankA, rankB)."""
    match = 0.0
    total = 0.0
    for name in sorted(a.keys() | b.keys()):
        rank_a = a.get(name, 0.0)
        rank_b = b.get(name, 0.0)
        match += min(rank_a, rank_b)
        total += max(rank_a, rank_b)
    return match / total if total > 0 else 0.0


def season_proximity(year_a: int, year_b: int, window: float = 3.0) -> float:
    """Linear decay from 1.0 (same year) to 0.0 at ``window`` years apart."""
    if window <= 0:
        return 1.0 if year_a == year_b else 0.0
    return max(0.0, (window - abs(year_a - year_b)) / window)


def metadata_similarity(
    a: ItemFeatures,
    b: ItemFeatures,
    weights: FactorWeights,
    season_window: float = 3.0,
) -> float:
    score = 0.0
    applicable = 0.0

    if a.genres and b.genres:
        score += jaccard(a.genres, b.genres) * weights.genre
        applicable += weights.genre

    if a.tag_ranks and b.tag_ranks:
        score += tag_overlap(a.tag_ranks, b.tag_ranks) * weights.tag
        applicable += weights.tag

    if a.studios and b.studios:
        score += jaccard(a.studios, b.studios) * weights.studio
        applicable += weights.studio

    if a.staff and b.staff:
        score += jaccard(a.staff, b.staff) * weights.staff
        applicable += weights.staff

    if a.format and b.format:
        score += (1.0 if a.format == b.format else 0.0) * weights.format
        applicable += weights.format

    if a.season_year is not None and b.season_year is not None:
        score += season_proximity(a.season_year, b.season_year, season_window) * weights.season
        applicable += weights.season

    # Bonus only: an absent relation is not evidence of dissimilarity
    if b.id in a.related or a.id in b.related:
        score += 1.0 * weights.relation
        applicable += weights.relation

    if applicable <= 0:
        return 0.0
    return min(1.0, score / applicable)
