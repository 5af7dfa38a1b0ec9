"""PipelineContext — the explicit handoff between stages.

Each stage reads the complete output of the previous one and writes its own:
items → edges → communities → layout → document.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from atlasmap.engine.layout.nodes import LayoutResult
    from atlasmap.models.document import LayoutDocument
    from atlasmap.models.item import Item


@dataclass(frozen=True)
class Edge:
    """Undirected weighted relation; ``source`` always precedes ``target`` in item order."""

    source: int
    target: int
    weight: float

    @property
    def key(self) -> tuple[int, int]:
        return (min(self.source, self.target), max(self.source, self.target))


@dataclass
class Community:
    id: int
    members: list[int] = field(default_factory=list)
    primary_label: str = "Unknown"
    top_genres: list[str] = field(default_factory=list)
    top_items: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "size": self.size,
            "primary_label": self.primary_label,
            "top_genres": self.top_genres,
            "top_items": self.top_items,
        }


@dataclass
class Diagnostics:
    """Non-fatal findings collected along the run."""

    pairs_scored: int = 0
    dropped_edges: int = 0
    dropped_records: int = 0
    isolated_items: int = 0
    dropped_isolated: int = 0
    single_community: bool = False
    unresolved_placements: int = 0
    stage_timings_ms: dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "pairs_scored": self.pairs_scored,
            "dropped_edges": self.dropped_edges,
            "dropped_records": self.dropped_records,
            "isolated_items": self.isolated_items,
            "dropped_isolated": self.dropped_isolated,
            "single_community": self.single_community,
            "unresolved_placements": self.unresolved_placements,
            "stage_timings_ms": dict(self.stage_timings_ms),
        }


@dataclass
class PipelineContext:
    """Shared state flowing through the four stages."""

    items: list[Item] = field(default_factory=list)

    # --- SIMILARITY ---
    edges: list[Edge] = field(default_factory=list)

    # --- COMMUNITY ---
    # item id -> community id
    membership: dict[int, int] = field(default_factory=dict)
    communities: list[Community] = field(default_factory=list)

    # --- LAYOUT ---
    layout: LayoutResult | None = None

    # --- SERIALIZE ---
    document: LayoutDocument | None = None

    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    completed_stages: list[str] = field(default_factory=list)
    progress_callback: Callable[[float], None] | None = None

    @property
    def num_items(self) -> int:
        return len(self.items)

    @property
    def item_index(self) -> dict[int, Item]:
        return {item.id: item for item in self.items}

    def report_progress(self, fraction: float) -> None:
        if self.progress_callback is not None:
            self.progress_callback(fraction)

    def community_members(self) -> dict[int, list[int]]:
        return {c.id: list(c.members) for c in self.communities}
