"""CommunityDetector strategies. Importing this package registers them."""

from atlasmap.engine.community import genre, label_propagation, louvain  # noqa: F401
from atlasmap.engine.community.genre import PRIMARY_GENRES, genre_community
from atlasmap.engine.community.summary import build_communities, canonical_membership

__all__ = ["PRIMARY_GENRES", "build_communities", "canonical_membership", "genre_community"]
