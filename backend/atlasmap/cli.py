"""atlasmap command line — batch layout runs with checkpoint/resume."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from atlasmap.catalog.parser import load_items
from atlasmap.config import settings
from atlasmap.engine import get_registry
from atlasmap.engine.checkpoint import CheckpointStore
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.engine.pipeline import create_pipeline
from atlasmap.engine.registry import Stage
from atlasmap.engine.serializer import parse_document, to_json
from atlasmap.errors import AtlasMapError
from atlasmap.preview import render_preview

logger = logging.getLogger("atlasmap")


def build_parser() -> argparse.ArgumentParser:
    registry = get_registry()
    parser = argparse.ArgumentParser(prog="atlasmap", description="Lay out an item catalog as a clustered 2-D map")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the full pipeline on a JSON catalog")
    run.add_argument("input", help="JSON array of item records")
    run.add_argument("-o", "--output", default="layout.json", help="Output document path")
    run.add_argument("--checkpoint-dir", help="Persist stage outputs here (with --resume, defaults to CHECKPOINT_DIR)")
    run.add_argument("--resume", action="store_true", help="Skip stages already checkpointed for this input")
    run.add_argument("--similarity", choices=registry.names(Stage.SIMILARITY))
    run.add_argument("--community", choices=registry.names(Stage.COMMUNITY))
    run.add_argument("--layout", choices=registry.names(Stage.LAYOUT))
    run.add_argument("--seed", type=int)
    run.add_argument("--threshold", type=float, help="Minimum metadata similarity for an edge")
    run.add_argument("--workers", type=int, help="Processes for pairwise scoring")
    run.add_argument("--drop-isolated", action="store_true", help="Remove items with no edges")
    run.add_argument("--preview", help="Also render a PNG preview here")
    run.add_argument("-v", "--verbose", action="store_true")

    preview = sub.add_parser("preview", help="Render a PNG preview of a layout document")
    preview.add_argument("document", help="Layout document written by `atlasmap run`")
    preview.add_argument("-o", "--output", default="preview.png")

    sub.add_parser("strategies", help="List registered strategies")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    overrides: dict = {"similarity": {}, "community": {}, "layout": {}}
    if args.similarity:
        overrides["similarity"]["strategy"] = args.similarity
    if args.threshold is not None:
        overrides["similarity"]["min_similarity"] = args.threshold
    if args.workers is not None:
        overrides["similarity"]["workers"] = args.workers
    if args.drop_isolated:
        overrides["similarity"]["isolated_items"] = "drop"
    if args.community:
        overrides["community"]["strategy"] = args.community
    if args.layout:
        overrides["layout"]["strategy"] = args.layout
    if args.seed is not None:
        overrides["seed"] = args.seed
    return PipelineConfig.from_settings(settings).with_overrides(overrides)


def run_command(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    ctx = PipelineContext()
    ctx.items = load_items(args.input, ctx.diagnostics)

    checkpoint_dir = args.checkpoint_dir or (settings.checkpoint_dir if args.resume else None)
    checkpoints = CheckpointStore(checkpoint_dir) if checkpoint_dir else None

    create_pipeline(config, checkpoints).run(ctx, resume=args.resume)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(to_json(ctx.document), encoding="utf-8")
    logger.info("Wrote %d items to %s", len(ctx.document.items), output)
    logger.info("Diagnostics: %s", json.dumps(ctx.diagnostics.as_dict()))
    if args.preview:
        render_preview(ctx.document, args.preview, labels={c.id: c.primary_label for c in ctx.communities})
    return 0


def preview_command(args: argparse.Namespace) -> int:
    try:
        document = parse_document(Path(args.document).read_bytes())
    except (OSError, ValidationError) as e:
        raise AtlasMapError(f"{args.document} is not a readable layout document: {e}") from e
    render_preview(document, args.output)
    return 0


def list_strategies() -> int:
    for spec in get_registry().all():
        print(f"{spec.key:<32} {spec.description}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    verbose = getattr(args, "verbose", False)
    level = logging.DEBUG if verbose else getattr(logging, settings.atlasmap_log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if args.command == "strategies":
        return list_strategies()
    try:
        if args.command == "preview":
            return preview_command(args)
        return run_command(args)
    except AtlasMapError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
