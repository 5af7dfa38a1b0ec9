"""Layout strategies. Importing this package registers them."""

from atlasmap.engine.layout import flat, hierarchical  # noqa: F401
from atlasmap.engine.layout.forces import ForceSimulation
from atlasmap.engine.layout.hierarchical import HierarchicalLayoutEngine
from atlasmap.engine.layout.nodes import LayoutNode, LayoutResult

__all__ = ["ForceSimulation", "HierarchicalLayoutEngine", "LayoutNode", "LayoutResult"]
