from atlasmap.models.document import Bounds, CompactItem, LayoutDocument
from atlasmap.models.item import Item, RankedTag, Recommendation, Titles

__all__ = [
    "Bounds",
    "CompactItem",
    "Item",
    "LayoutDocument",
    "RankedTag",
    "Recommendation",
    "Titles",
]
