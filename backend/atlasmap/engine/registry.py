"""Strategy registry — every interchangeable stage variant is a function registered via decorator.

Usage:
    @strategy(stage=Stage.COMMUNITY, name="genre", description="First canonical genre wins")
    def genre_assignment(ctx: PipelineContext, config: PipelineConfig) -> None:
        ...

The pipeline picks one strategy per stage by name at configuration time.
Adding a variant = creating one function with the decorator. Nothing else changes.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from atlasmap.engine.config import PipelineConfig
    from atlasmap.engine.context import PipelineContext

logger = logging.getLogger(__name__)


class Stage(enum.IntEnum):
    SIMILARITY = 0
    COMMUNITY = 1
    LAYOUT = 2
    SERIALIZE = 3


StrategyFn = Callable[["PipelineContext", "PipelineConfig"], None]


@dataclass
class StrategySpec:
    stage: Stage
    name: str
    fn: StrategyFn
    description: str = ""

    @property
    def key(self) -> str:
        return f"{self.stage.name.lower()}:{self.name}"


class StrategyRegistry:
    """Registry of all stage strategies."""

    def __init__(self) -> None:
        self._strategies: dict[tuple[Stage, str], StrategySpec] = {}

    def register(self, spec: StrategySpec) -> None:
        key = (spec.stage, spec.name)
        if key in self._strategies:
            raise ValueError(f"Duplicate strategy: {spec.key}")
        self._strategies[key] = spec
        logger.debug("Registered strategy %s", spec.key)

    def get(self, stage: Stage, name: str) -> StrategySpec:
        try:
            return self._strategies[(stage, name)]
        except KeyError:
            available = ", ".join(self.names(stage)) or "none"
            raise KeyError(
                f"Unknown {stage.name.lower()} strategy '{name}' (available: {available})"
            ) from None

    def names(self, stage: Stage) -> list[str]:
        return sorted(name for (s, name) in self._strategies if s == stage)

    def all(self) -> list[StrategySpec]:
        return sorted(self._strategies.values(), key=lambda s: (s.stage, s.name))

    @property
    def count(self) -> int:
        return len(self._strategies)


# Module-level singleton
_registry = StrategyRegistry()


def get_registry() -> StrategyRegistry:
    return _registry


def strategy(*, stage: Stage, name: str, description: str = ""):
    """Decorator to register a stage strategy."""

    def decorator(fn: StrategyFn):
        _registry.register(StrategySpec(stage=stage, name=name, fn=fn, description=description))
        return fn

    return decorator
