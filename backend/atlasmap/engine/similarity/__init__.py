"""SimilarityGraphBuilder strategies. Importing this package registers them."""

from atlasmap.engine.similarity import metadata, recommendations  # noqa: F401
from atlasmap.engine.similarity.factors import ItemFeatures, metadata_similarity
from atlasmap.engine.similarity.graph import finalize_graph

__all__ = ["ItemFeatures", "finalize_graph", "metadata_similarity"]
