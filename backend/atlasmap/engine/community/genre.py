"""Genre assignment — each item joins the community of its first canonical genre."""

from __future__ import annotations

from atlasmap.engine.community.summary import build_communities
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.registry import Stage, strategy

PRIMARY_GENRES: tuple[str, ...] = (
    "Action",
    "Adventure",
    "Comedy",
    "Drama",
    "Fantasy",
    "Horror",
    "Mystery",
    "Psychological",
    "Romance",
    "Sci-Fi",
    "Slice of Life",
    "Sports",
    "Supernatural",
    "Thriller",
    "Mecha",
)

GENRE_TO_COMMUNITY: dict[str, int] = {genre: i for i, genre in enumerate(PRIMARY_GENRES)}
OTHER_COMMUNITY = len(PRIMARY_GENRES)


def genre_community(genres: tuple[str, ...] | list[str]) -> int:
    """Community id of the highest-priority canonical genre the item carries."""
    owned = set(genres)
    for genre, cid in GENRE_TO_COMMUNITY.items():
        if genre in owned:
            return cid
    return OTHER_COMMUNITY


@strategy(
    stage=Stage.COMMUNITY,
    name="genre",
    description="Deterministic first-canonical-genre bucketing",
)
def genre_assignment(ctx: PipelineContext, config: PipelineConfig) -> None:
    membership = {item.id: genre_community(item.genres) for item in ctx.items}
    build_communities(ctx, membership, config.community.top_n)
