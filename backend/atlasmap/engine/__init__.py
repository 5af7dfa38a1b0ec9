"""atlasmap layout engine: similarity graph, communities, tiered force layout, serialization."""

from atlasmap.engine.registry import Stage, get_registry, strategy
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import Community, Diagnostics, Edge, PipelineContext

# Import strategy packages so @strategy decorators fire
from atlasmap.engine import community, layout, serializer, similarity  # noqa: F401
from atlasmap.engine.pipeline import Pipeline, create_pipeline

__all__ = [
    "Community",
    "Diagnostics",
    "Edge",
    "Pipeline",
    "PipelineConfig",
    "PipelineContext",
    "Stage",
    "create_pipeline",
    "get_registry",
    "strategy",
]
