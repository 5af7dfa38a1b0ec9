"""Pipeline configuration — every tunable consumed by the core stages."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from atlasmap.config import Settings


@dataclass
class FactorWeights:
    """Relative weight of each metadata similarity factor."""

    genre: float = 3.0
    tag: float = 2.5
    studio: float = 1.5
    staff: float = 1.0
    format: float = 0.5
    season: float = 0.3
    relation: float = 2.0


@dataclass
class SimilarityConfig:
    strategy: str = "metadata"  # metadata | recommendations
    min_similarity: float = 0.25
    weights: FactorWeights = field(default_factory=FactorWeights)
    # Season proximity decays linearly to 0 over this many years
    season_window: float = 3.0
    exclude_spoiler_tags: bool = True
    # Pairs between progress reports
    progress_interval: int = 10000
    # >1 scores row blocks in a process pool
    workers: int = 1
    isolated_items: str = "retain"  # retain | drop


@dataclass
class CommunityConfig:
    strategy: str = "louvain"  # genre | label_propagation | louvain
    resolution: float = 1.0
    max_iterations: int = 10
    top_n: int = 5


@dataclass
class ForceConfig:
    """d3-style force model constants."""

    link_strength_factor: float = 0.5
    link_distance: float = 100.0
    repulsion_strength: float = -200.0
    repulsion_distance_max: float = 500.0
    repulsion_distance_min: float = 1.0
    velocity_decay: float = 0.4
    cooling_rate: float = 0.005
    alpha_min: float = 0.001


@dataclass
class LayoutConfig:
    strategy: str = "hierarchical"  # hierarchical | flat
    max_tier: int = 3
    tier0_iterations: int = 500
    tier_iterations: int = 300
    flat_iterations: int = 300
    forces: ForceConfig = field(default_factory=ForceConfig)
    # Lower = more spread out
    target_density: float = 0.00005
    density_interval: int = 10
    members_per_subgroup: int = 50
    jitter: float = 25.0
    placement_radius_min: float = 20.0
    placement_radius_max: float = 50.0
    fallback_spread: float = 50.0


@dataclass
class PipelineConfig:
    """Controls every stage of one pipeline run."""

    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    community: CommunityConfig = field(default_factory=CommunityConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    world_scale: float = 20000.0
    edge_weight_decimals: int = 3
    seed: int = 42

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        config = cls(world_scale=settings.world_scale, seed=settings.random_seed)
        config.similarity.min_similarity = settings.min_similarity
        return config

    def with_overrides(self, overrides: dict[str, Any]) -> PipelineConfig:
        """Return a copy with nested overrides applied.

        ``{"layout": {"max_tier": 2}, "seed": 7}`` style dicts; unknown keys raise
        ``ValueError``.
        """
        return _apply_overrides(copy.deepcopy(self), overrides)

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


def _checked(key: str, current: Any, value: Any) -> Any:
    """``value`` if it fits the type of the field's current value; raises ``ValueError``."""
    if isinstance(current, bool):
        ok = isinstance(value, bool)
    elif isinstance(current, float):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        if ok:
            value = float(value)
    elif isinstance(current, int):
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, type(current))
    if not ok:
        raise ValueError(f"Config key {key} expects {type(current).__name__}, got {type(value).__name__}")
    return value


def _apply_overrides(obj: Any, overrides: dict[str, Any]) -> Any:
    if not isinstance(overrides, dict):
        raise ValueError(f"Config overrides must be a mapping, got {type(overrides).__name__}")
    known = {f.name for f in fields(obj)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {key}")
        current = getattr(obj, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ValueError(f"Config section {key} expects a mapping, got {type(value).__name__}")
            changes[key] = _apply_overrides(current, value)
        else:
            changes[key] = _checked(key, current, value)
    return replace(obj, **changes)


def _as_dict(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        out[f.name] = _as_dict(value) if is_dataclass(value) else value
    return out
