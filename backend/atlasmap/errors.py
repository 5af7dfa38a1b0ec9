"""Exception hierarchy for atlasmap."""

from __future__ import annotations


class AtlasMapError(Exception):
    """Base class for all pipeline-aborting errors."""


class CatalogError(AtlasMapError):
    """Input catalog is empty or unusable (no item carries an id)."""


class PipelineError(AtlasMapError):
    """A pipeline stage failed; the run cannot continue past its barrier."""

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage
