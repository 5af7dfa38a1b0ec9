"""Shared test fixtures."""

from __future__ import annotations

import pytest

from atlasmap.catalog.parser import parse_items
from atlasmap.engine.config import PipelineConfig
from atlasmap.engine.context import PipelineContext
from atlasmap.models.item import Item, RankedTag, Titles


# A small catalog in three loose families: mecha action, romance, horror mystery

CATALOG_RECORDS = [
    {
        "id": 1, "title": "Steel Vanguard", "titleEnglish": "Steel Vanguard",
        "genres": ["Action", "Mecha", "Sci-Fi"],
        "tags": [{"name": "Robots", "rank": 95}, {"name": "Military", "rank": 70}],
        "studioIds": [10], "staffIds": [100, 101], "format": "TV", "seasonYear": 2019,
        "relatedIds": [2], "popularity": 5000,
    },
    {
        "id": 2, "title": "Steel Vanguard II",
        "genres": ["Action", "Mecha", "Sci-Fi"],
        "tags": [{"name": "Robots", "rank": 90}, {"name": "Military", "rank": 60}],
        "studioIds": [10], "staffIds": [100], "format": "TV", "seasonYear": 2021,
        "relatedIds": [1], "popularity": 3200,
    },
    {
        "id": 3, "title": "Orbital Drift",
        "genres": ["Action", "Sci-Fi"],
        "tags": [{"name": "Space", "rank": 88}, {"name": "Robots", "rank": 40}],
        "studioIds": [10, 11], "format": "MOVIE", "seasonYear": 2020,
        "popularity": 2100,
    },
    {
        "id": 4, "title": "Iron Pilgrims",
        "genres": ["Mecha", "Adventure"],
        "tags": [{"name": "Robots", "rank": 80}],
        "studioIds": [11], "format": "TV", "seasonYear": 2018,
        "popularity": 900,
    },
    {
        "id": 5, "title": "Cherry Letters", "titleEnglish": "Letters in Spring",
        "genres": ["Romance", "Slice of Life"],
        "tags": [{"name": "School", "rank": 85}, {"name": "Love Triangle", "rank": 60}],
        "studioIds": [20], "staffIds": [200], "format": "TV", "seasonYear": 2015,
        "popularity": 4100, "coverImage": "https://img.example/5.jpg",
    },
    {
        "id": 6, "title": "Cherry Letters: Summer",
        "genres": ["Romance", "Slice of Life"],
        "tags": [{"name": "School", "rank": 80}, {"name": "Love Triangle", "rank": 75}],
        "studioIds": [20], "staffIds": [200, 201], "format": "TV", "seasonYear": 2016,
        "relatedIds": [5], "popularity": 2600,
    },
    {
        "id": 7, "title": "Tea House Afternoons",
        "genres": ["Slice of Life", "Comedy"],
        "tags": [{"name": "Iyashikei", "rank": 90}, {"name": "School", "rank": 30}],
        "studioIds": [21], "format": "TV", "seasonYear": 2016,
        "popularity": 1500,
    },
    {
        "id": 8, "title": "Paper Moon Romance",
        "genres": ["Romance", "Drama"],
        "tags": [{"name": "Love Triangle", "rank": 70}],
        "studioIds": [20], "format": "MOVIE", "seasonYear": 2017,
        "popularity": 1200, "description": "Two letters, one summer.",
    },
    {
        "id": 9, "title": "Hollow Lantern",
        "genres": ["Horror", "Mystery", "Supernatural"],
        "tags": [{"name": "Ghosts", "rank": 92}, {"name": "Gore", "rank": 50}],
        "studioIds": [30], "staffIds": [300], "format": "TV", "seasonYear": 2012,
        "popularity": 3900,
    },
    {
        "id": 10, "title": "Hollow Lantern: Embers",
        "genres": ["Horror", "Mystery", "Supernatural"],
        "tags": [{"name": "Ghosts", "rank": 85}, {"name": "Gore", "rank": 65}],
        "studioIds": [30], "staffIds": [300], "format": "TV", "seasonYear": 2013,
        "relatedIds": [9], "popularity": 2800,
    },
    {
        "id": 11, "title": "The Quiet Village",
        "genres": ["Mystery", "Psychological"],
        "tags": [{"name": "Ghosts", "rank": 40}, {"name": "Detective", "rank": 80}],
        "studioIds": [31], "format": "TV", "seasonYear": 2014,
        "popularity": 1700,
    },
    {
        "id": 12, "title": "Red Tide",
        "genres": ["Horror", "Thriller"],
        "tags": [{"name": "Gore", "rank": 90}],
        "studioIds": [30], "format": "OVA", "seasonYear": 2011,
        "popularity": 800,
    },
]

# The same shape the AniList GraphQL API returns
NESTED_RECORD = {
    "id": 21,
    "title": {"romaji": "Hagane no Senshi", "english": "Steel Warrior", "native": None},
    "genres": ["Action", "Mecha"],
    "tags": [
        {"name": "Robots", "rank": 91, "isMediaSpoiler": False},
        {"name": "Betrayal", "rank": 60, "isMediaSpoiler": True},
    ],
    "studios": {"nodes": [{"id": 10}, {"id": 12}]},
    "staff": {"edges": [{"node": {"id": 100}}, {"node": {"id": 102}}]},
    "format": "TV",
    "seasonYear": 2020,
    "relations": {"edges": [{"node": {"id": 1}}]},
    "recommendations": {
        "edges": [
            {"node": {"rating": 250, "mediaRecommendation": {"id": 1}}},
            {"node": {"rating": 40, "mediaRecommendation": None}},
        ]
    },
    "popularity": 4200,
    "coverImage": {"large": "https://img.example/21-large.jpg", "medium": "https://img.example/21.jpg"},
    "description": "A pilot and a machine.",
}


def make_item(item_id: int, title: str | None = None, **fields) -> Item:
    """Item with only the given attributes set."""
    if "tags" in fields:
        fields["tags"] = tuple(
            tag if isinstance(tag, RankedTag) else RankedTag(name=tag[0], rank=tag[1])
            for tag in fields["tags"]
        )
    for key in ("studio_ids", "staff_ids", "related_ids"):
        if key in fields:
            fields[key] = frozenset(fields[key])
    if "genres" in fields:
        fields["genres"] = tuple(fields["genres"])
    return Item(id=item_id, title=Titles(romaji=title or f"Item {item_id}"), **fields)


def fast_config(**overrides) -> PipelineConfig:
    """Full pipeline with short simulations."""
    config = PipelineConfig().with_overrides(
        {
            "layout": {
                "max_tier": 2,
                "tier0_iterations": 120,
                "tier_iterations": 60,
                "flat_iterations": 120,
            },
            "seed": 7,
        }
    )
    return config.with_overrides(overrides) if overrides else config


@pytest.fixture
def catalog_records() -> list[dict]:
    return [dict(record) for record in CATALOG_RECORDS]


@pytest.fixture
def catalog_items() -> list[Item]:
    return parse_items(CATALOG_RECORDS)


@pytest.fixture
def catalog_ctx(catalog_items) -> PipelineContext:
    return PipelineContext(items=list(catalog_items))


@pytest.fixture
def config() -> PipelineConfig:
    return fast_config()


@pytest.fixture
def dissimilar_items() -> list[Item]:
    """Four items that share nothing: no edges at any positive threshold."""
    return [
        make_item(1, genres=["Action"]),
        make_item(2, genres=["Romance"]),
        make_item(3, genres=["Horror"]),
        make_item(4, genres=["Sports"]),
    ]
