"""Checkpoint store — persisted stage outputs so a batch run can resume.

One directory per run:
- ``manifest.json``        fingerprint, completed stages, diagnostics
- ``graph.json``           items + edges (SIMILARITY)
- ``communities.json``     membership + community summaries (COMMUNITY)
- ``layout.json``          item positions, hues, final particles (LAYOUT)
- ``layout.compact.json``  the output document (SERIALIZE)
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import Community, Diagnostics, Edge, PipelineContext
from atlasmap.engine.layout.nodes import LayoutResult
from atlasmap.engine.registry import Stage
from atlasmap.engine.serializer import parse_document
from atlasmap.models.item import Item

logger = logging.getLogger(__name__)

STAGE_FILES: dict[Stage, str] = {
    Stage.SIMILARITY: "graph.json",
    Stage.COMMUNITY: "communities.json",
    Stage.LAYOUT: "layout.json",
    Stage.SERIALIZE: "layout.compact.json",
}


def run_fingerprint(items: list[Item], config: PipelineConfig) -> str:
    """Hash of the input item ids and the full configuration."""
    payload = json.dumps(
        {"items": [item.id for item in items], "config": config.to_dict()},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


def _write_atomic(path: Path, text: str) -> None:
    """Write via a sibling temp file so a crash never leaves a half-written file."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


class CheckpointStore:
    """JSON-file persistence of completed stage outputs."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.manifest_file = self.directory / "manifest.json"

    # --- manifest ---------------------------------------------------------

    def load_manifest(self) -> dict[str, Any]:
        if not self.manifest_file.exists():
            return {}
        try:
            return json.loads(self.manifest_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable checkpoint manifest %s", self.manifest_file)
            return {}

    def _write_manifest(self, manifest: dict[str, Any]) -> None:
        _write_atomic(self.manifest_file, json.dumps(manifest, indent=2))

    def completed(self, fingerprint: str) -> list[Stage]:
        """Stages with a persisted output for this fingerprint, in pipeline order."""
        manifest = self.load_manifest()
        if manifest.get("fingerprint") != fingerprint:
            return []
        done = set(manifest.get("completed", []))
        stages: list[Stage] = []
        for stage in Stage:
            if stage.name not in done or not (self.directory / STAGE_FILES[stage]).exists():
                break
            stages.append(stage)
        return stages

    def clear(self) -> None:
        for name in STAGE_FILES.values():
            (self.directory / name).unlink(missing_ok=True)
        self.manifest_file.unlink(missing_ok=True)

    # --- save / load ------------------------------------------------------

    def save(self, stage: Stage, ctx: PipelineContext, fingerprint: str) -> Path:
        path = self.directory / STAGE_FILES[stage]
        _write_atomic(path, json.dumps(self._dump(stage, ctx)))

        manifest = self.load_manifest()
        if manifest.get("fingerprint") != fingerprint:
            manifest = {"fingerprint": fingerprint, "completed": []}
        completed = [s for s in manifest.get("completed", []) if s != stage.name]
        manifest["completed"] = completed + [stage.name]
        manifest["diagnostics"] = ctx.diagnostics.as_dict()
        self._write_manifest(manifest)
        logger.info("Checkpointed %s -> %s", stage.name, path)
        return path

    def restore(self, stage: Stage, ctx: PipelineContext) -> None:
        path = self.directory / STAGE_FILES[stage]
        data = json.loads(path.read_text(encoding="utf-8"))
        self._load(stage, ctx, data)
        diagnostics = self.load_manifest().get("diagnostics")
        if diagnostics:
            known = {f.name for f in fields(Diagnostics)}
            ctx.diagnostics = Diagnostics(**{k: v for k, v in diagnostics.items() if k in known})
        logger.info("Restored %s from %s", stage.name, path)

    @staticmethod
    def _dump(stage: Stage, ctx: PipelineContext) -> Any:
        if stage == Stage.SIMILARITY:
            return {
                "items": [item.model_dump(mode="json") for item in ctx.items],
                "edges": [[e.source, e.target, e.weight] for e in ctx.edges],
            }
        if stage == Stage.COMMUNITY:
            return {
                "membership": {str(k): v for k, v in ctx.membership.items()},
                "communities": [{**c.summary(), "members": c.members} for c in ctx.communities],
            }
        if stage == Stage.LAYOUT:
            return ctx.layout.to_dict() if ctx.layout else {}
        return ctx.document.to_payload() if ctx.document else {}

    @staticmethod
    def _load(stage: Stage, ctx: PipelineContext, data: Any) -> None:
        if stage == Stage.SIMILARITY:
            ctx.items = [Item.model_validate(raw) for raw in data["items"]]
            ctx.edges = [Edge(int(s), int(t), float(w)) for s, t, w in data["edges"]]
        elif stage == Stage.COMMUNITY:
            ctx.membership = {int(k): int(v) for k, v in data["membership"].items()}
            ctx.communities = [
                Community(
                    id=c["id"],
                    members=[int(m) for m in c["members"]],
                    primary_label=c.get("primary_label", "Unknown"),
                    top_genres=c.get("top_genres", []),
                    top_items=c.get("top_items", []),
                )
                for c in data["communities"]
            ]
        elif stage == Stage.LAYOUT:
            ctx.layout = LayoutResult.from_dict(data)
        else:
            ctx.document = parse_document(data)
