"""Catalog parser — raw item records to ``Item`` models.

Two record shapes are accepted and may be mixed in one file:

- flat: ``{"id", "title", "genres", "tags": [{"name", "rank"}], "studioIds",
  "staffIds", "format", "seasonYear", "relatedIds",
  "recommendations": [{"recommendedId", "rating"}], "popularity",
  "coverImage", "description"}``
- nested, as returned by the AniList GraphQL API: ``title`` is a
  ``{romaji, english, native}`` object, studios/staff/relations/recommendations
  are ``nodes``/``edges`` connections and ``coverImage`` is ``{large, medium}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from atlasmap.engine.context import Diagnostics
from atlasmap.errors import CatalogError
from atlasmap.models.item import Item, RankedTag, Recommendation, Titles

logger = logging.getLogger(__name__)


def _pick(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _connection_ids(value: Any) -> list[int]:
    """Ids from a plain list, ``{nodes: [{id}]}`` or ``{edges: [{node: {id}}]}``."""
    if value is None:
        return []
    if isinstance(value, dict):
        if "nodes" in value:
            value = value["nodes"] or []
        elif "edges" in value:
            value = [edge.get("node") or {} for edge in value["edges"] or [] if isinstance(edge, dict)]
        else:
            return []
    ids: list[int] = []
    for entry in value:
        raw = entry.get("id") if isinstance(entry, dict) else entry
        if raw is not None:
            ids.append(int(raw))
    return ids


def _titles(record: dict[str, Any]) -> Titles:
    title = record.get("title")
    if isinstance(title, dict):
        return Titles(
            romaji=title.get("romaji") or None,
            english=title.get("english") or None,
            native=title.get("native") or None,
        )
    return Titles(
        romaji=title or None,
        english=_pick(record, "titleEnglish", "title_english") or None,
        native=_pick(record, "titleNative", "title_native") or None,
    )


def _tags(value: Any) -> tuple[RankedTag, ...]:
    tags: list[RankedTag] = []
    for tag in value or []:
        if isinstance(tag, str):
            tags.append(RankedTag(name=tag))
            continue
        if not isinstance(tag, dict) or not tag.get("name"):
            continue
        tags.append(
            RankedTag(
                name=tag["name"],
                rank=float(tag.get("rank") or 0),
                is_spoiler=bool(_pick(tag, "isMediaSpoiler", "is_spoiler")),
            )
        )
    return tuple(tags)


def _recommendations(value: Any) -> tuple[Recommendation, ...]:
    if isinstance(value, dict):
        value = [edge.get("node") or {} for edge in value.get("edges") or [] if isinstance(edge, dict)]
    recs: list[Recommendation] = []
    for rec in value or []:
        if not isinstance(rec, dict):
            continue
        target = rec.get("mediaRecommendation")
        rec_id = target.get("id") if isinstance(target, dict) else _pick(rec, "recommendedId", "recommended_id")
        if rec_id is None:
            continue
        recs.append(Recommendation(recommended_id=int(rec_id), rating=float(rec.get("rating") or 0)))
    return tuple(recs)


def _image(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("large") or value.get("medium") or None
    return value or None


def parse_item(record: dict[str, Any]) -> Item:
    """Build one ``Item``; the record must carry an ``id``."""
    return Item(
        id=int(record["id"]),
        title=_titles(record),
        genres=tuple(g for g in record.get("genres") or [] if g),
        tags=_tags(record.get("tags")),
        studio_ids=frozenset(_connection_ids(_pick(record, "studioIds", "studio_ids", "studios"))),
        staff_ids=frozenset(_connection_ids(_pick(record, "staffIds", "staff_ids", "staff"))),
        format=record.get("format") or None,
        season_year=_pick(record, "seasonYear", "season_year"),
        related_ids=frozenset(_connection_ids(_pick(record, "relatedIds", "related_ids", "relations"))),
        recommendations=_recommendations(record.get("recommendations")),
        popularity=int(record.get("popularity") or 0),
        image_url=_image(_pick(record, "coverImage", "image_url", "image")),
        description=record.get("description") or None,
    )


def parse_items(records: Iterable[dict[str, Any]], diagnostics: Diagnostics | None = None) -> list[Item]:
    """Parse records in order, skipping id-less and duplicate entries.

    Skipped records are counted on ``diagnostics.dropped_records`` when given.
    Raises ``CatalogError`` if no usable record remains.
    """
    items: list[Item] = []
    seen: set[int] = set()
    total = 0
    dropped = 0

    for record in records:
        total += 1
        if not isinstance(record, dict) or record.get("id") is None:
            dropped += 1
            continue
        try:
            item = parse_item(record)
        except (AttributeError, TypeError, ValueError, ValidationError) as e:
            logger.warning("Skipping malformed record %r: %s", record.get("id"), e)
            dropped += 1
            continue
        if item.id in seen:
            dropped += 1
            continue
        seen.add(item.id)
        items.append(item)

    if total == 0:
        raise CatalogError("Catalog is empty")
    if not items:
        raise CatalogError(f"None of the {total} catalog records carries a usable id")

    if diagnostics is not None:
        diagnostics.dropped_records += dropped
    if dropped:
        logger.warning("Dropped %d of %d catalog records (missing or duplicate id)", dropped, total)
    logger.info("Parsed %d items", len(items))
    return items


def load_items(path: Path | str, diagnostics: Diagnostics | None = None) -> list[Item]:
    """Read a JSON array of records from ``path``."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"{path} is not valid JSON: {e}") from e
    if isinstance(data, dict):
        data = _pick(data, "items", "media", "nodes")
    if not isinstance(data, list):
        raise CatalogError(f"{path} does not contain a list of item records")
    return parse_items(data, diagnostics)
