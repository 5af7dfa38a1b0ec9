"""Community materialisation — canonical ids, summaries, degenerate-case diagnostics."""

from __future__ import annotations

import logging
from collections import Counter

from atlasmap.engine.context import Community, PipelineContext

logger = logging.getLogger(__name__)


def canonical_membership(ctx: PipelineContext, labels: dict[int, int]) -> dict[int, int]:
    """Renumber arbitrary labels 0..k-1 by size descending, then first item position."""
    groups: dict[int, list[int]] = {}
    for item in ctx.items:
        groups.setdefault(labels[item.id], []).append(item.id)
    position = {item.id: i for i, item in enumerate(ctx.items)}
    ordered = sorted(groups.values(), key=lambda members: (-len(members), position[members[0]]))
    return {member: cid for cid, members in enumerate(ordered) for member in members}


def build_communities(ctx: PipelineContext, membership: dict[int, int], top_n: int = 5) -> None:
    """Populate ``ctx.membership`` / ``ctx.communities`` from an item → community map."""
    members_by_id: dict[int, list[int]] = {}
    for item in ctx.items:
        members_by_id.setdefault(membership[item.id], []).append(item.id)

    index = ctx.item_index
    communities: list[Community] = []
    for cid in sorted(members_by_id):
        members = members_by_id[cid]
        genre_counts: Counter[str] = Counter()
        for mid in members:
            genre_counts.update(index[mid].genres)
        # most_common keeps first-seen order among equal counts
        ranked_genres = [g for g, _ in genre_counts.most_common()]
        by_popularity = sorted(members, key=lambda mid: -index[mid].popularity)
        communities.append(
            Community(
                id=cid,
                members=members,
                primary_label=ranked_genres[0] if ranked_genres else "Unknown",
                top_genres=ranked_genres[:3],
                top_items=[index[mid].display_title for mid in by_popularity[:top_n]],
            )
        )

    ctx.membership = {item.id: membership[item.id] for item in ctx.items}
    ctx.communities = communities

    ctx.diagnostics.single_community = len(communities) == 1 and ctx.num_items > 1
    if ctx.diagnostics.single_community:
        logger.warning(
            "All %d items collapsed into one community; consider raising min_similarity",
            ctx.num_items,
        )
    logger.info("Detected %d communities", len(communities))
    for community in sorted(communities, key=lambda c: -c.size)[:10]:
        logger.debug(
            "  community %d: %d items, primary %s, top %s",
            community.id,
            community.size,
            community.primary_label,
            ", ".join(community.top_items[:3]),
        )
