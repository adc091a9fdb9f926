"""Static category table and situational boost constants used for tab prioritization."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import yaml

from tastegraph.config.settings import settings

CATEGORY_TABLE_VERSION = "2025.1"


@dataclass(frozen=True)
class CategoryConfig:
    """Display and query metadata for one content category."""

    category_key: str
    display_name: str
    icon: str
    base_priority: int
    query_tags: Tuple[str, ...] = field(default_factory=tuple)
    base_estimate: int = 8


_BASE_CATEGORIES: Tuple[CategoryConfig, ...] = (
    CategoryConfig(
        category_key="place",
        display_name="Places",
        icon="🏪",
        base_priority=10,
        query_tags=(
            "urn:tag:genre:place:restaurant",
            "urn:tag:category:place:venue",
            "urn:tag:category:place:attraction",
        ),
        base_estimate=15,
    ),
    CategoryConfig(
        category_key="movie",
        display_name="Movies",
        icon="🎬",
        base_priority=6,
        query_tags=(
            "urn:tag:keyword:qloo:cinema",
            "urn:tag:genre:movie",
            "urn:tag:keyword:qloo:film",
        ),
        base_estimate=8,
    ),
    CategoryConfig(
        category_key="tv_show",
        display_name="TV Shows",
        icon="📺",
        base_priority=5,
        query_tags=(
            "urn:tag:genre:tv_show",
            "urn:tag:keyword:qloo:streaming",
            "urn:tag:keyword:qloo:series",
        ),
        base_estimate=6,
    ),
    CategoryConfig(
        category_key="artist",
        display_name="Music",
        icon="🎵",
        base_priority=7,
        query_tags=(
            "urn:tag:genre:music",
            "urn:tag:keyword:qloo:live_music",
            "urn:tag:keyword:qloo:concert",
        ),
        base_estimate=10,
    ),
    CategoryConfig(
        category_key="book",
        display_name="Books",
        icon="📚",
        base_priority=4,
        query_tags=(
            "urn:tag:genre:book",
            "urn:tag:keyword:qloo:literature",
            "urn:tag:keyword:qloo:reading",
        ),
        base_estimate=12,
    ),
    CategoryConfig(
        category_key="podcast",
        display_name="Podcasts",
        icon="🎧",
        base_priority=3,
        query_tags=(
            "urn:tag:genre:podcast",
            "urn:tag:keyword:qloo:audio",
            "urn:tag:keyword:qloo:storytelling",
        ),
        base_estimate=8,
    ),
    CategoryConfig(
        category_key="videogame",
        display_name="Games",
        icon="🎮",
        base_priority=3,
        query_tags=(
            "urn:tag:genre:videogame",
            "urn:tag:keyword:qloo:gaming",
            "urn:tag:keyword:qloo:interactive",
        ),
        base_estimate=6,
    ),
    CategoryConfig(
        category_key="destination",
        display_name="Destinations",
        icon="✈️",
        base_priority=4,
        query_tags=(
            "urn:tag:category:destination:city",
            "urn:tag:keyword:qloo:travel",
            "urn:tag:keyword:qloo:neighborhood",
        ),
        base_estimate=5,
    ),
)

# (category_key, dimension) -> additive boost. Unlisted pairs contribute 0.
SITUATION_BOOSTS: Mapping[Tuple[str, str], float] = MappingProxyType({
    ("book", "indoor"): 0.4,
    ("movie", "indoor"): 0.3,
    ("tv_show", "indoor"): 0.3,
    ("podcast", "indoor"): 0.3,
    ("videogame", "indoor"): 0.2,
    ("place", "indoor"): 0.1,
    ("destination", "indoor"): -0.1,
    ("place", "outdoor"): 0.3,
    ("destination", "outdoor"): 0.3,
    ("artist", "outdoor"): 0.2,
    ("movie", "outdoor"): -0.1,
    ("tv_show", "outdoor"): -0.2,
    ("book", "outdoor"): -0.1,
    ("podcast", "outdoor"): 0.1,
    ("videogame", "outdoor"): -0.2,
    ("place", "hybrid"): 0.2,
    ("artist", "hybrid"): 0.15,
    ("destination", "hybrid"): 0.1,
    ("movie", "hybrid"): 0.05,
    ("book", "hybrid"): 0.05,
    ("podcast", "hybrid"): 0.1,
})

TIME_BOOSTS: Mapping[Tuple[str, str], float] = MappingProxyType({
    ("place", "morning"): 0.1,
    ("place", "evening"): 0.2,
    ("place", "night"): 0.1,
    ("movie", "morning"): -0.1,
    ("movie", "afternoon"): 0.1,
    ("movie", "evening"): 0.2,
    ("movie", "night"): 0.1,
    ("tv_show", "afternoon"): 0.1,
    ("tv_show", "evening"): 0.2,
    ("tv_show", "night"): 0.1,
    ("book", "morning"): 0.1,
    ("book", "evening"): 0.1,
    ("book", "night"): -0.1,
    ("podcast", "morning"): 0.2,
    ("podcast", "afternoon"): 0.1,
    ("podcast", "night"): -0.1,
    ("artist", "morning"): -0.1,
    ("artist", "evening"): 0.3,
    ("artist", "night"): 0.2,
    ("videogame", "morning"): -0.1,
    ("videogame", "afternoon"): 0.1,
    ("videogame", "evening"): 0.2,
    ("videogame", "night"): 0.1,
    ("destination", "morning"): 0.1,
    ("destination", "night"): -0.1,
})

SEASON_BOOSTS: Mapping[Tuple[str, str], float] = MappingProxyType({
    ("place", "spring"): 0.1,
    ("place", "summer"): 0.2,
    ("place", "fall"): 0.1,
    ("destination", "spring"): 0.2,
    ("destination", "summer"): 0.3,
    ("destination", "fall"): 0.1,
    ("destination", "winter"): -0.1,
    ("artist", "spring"): 0.1,
    ("artist", "summer"): 0.3,
    ("artist", "fall"): 0.1,
    ("book", "summer"): -0.1,
    ("book", "fall"): 0.2,
    ("book", "winter"): 0.3,
    ("movie", "summer"): -0.1,
    ("movie", "fall"): 0.1,
    ("movie", "winter"): 0.2,
    ("tv_show", "summer"): -0.1,
    ("tv_show", "fall"): 0.1,
    ("tv_show", "winter"): 0.2,
    ("podcast", "winter"): 0.1,
    ("videogame", "spring"): -0.1,
    ("videogame", "summer"): -0.2,
    ("videogame", "fall"): 0.1,
    ("videogame", "winter"): 0.2,
})

_OVERRIDABLE_FIELDS = ("display_name", "icon", "base_priority", "query_tags", "base_estimate")


def _load_override_file(path: Optional[str]) -> Dict[str, Dict[str, object]]:
    if not path:
        return {}

    override_path = Path(path)
    if not override_path.exists():
        return {}

    with open(override_path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    overrides: Dict[str, Dict[str, object]] = {}
    for item in data.get("categories", []):
        key = item["category_key"]
        overrides[key] = {name: item[name] for name in _OVERRIDABLE_FIELDS if name in item}
    return overrides


def _apply_override(config: CategoryConfig, override: Dict[str, object]) -> CategoryConfig:
    if "query_tags" in override:
        override = {**override, "query_tags": tuple(override["query_tags"])}
    return replace(config, **override)


@lru_cache(maxsize=None)
def load_category_configs(override_file: Optional[str] = None) -> Tuple[CategoryConfig, ...]:
    """Return the category table in configuration order, merged with YAML overrides.

    The result is cached per override path, so the table is read once per process.
    Unknown category keys in the override file are ignored.
    """

    overrides = _load_override_file(override_file)
    return tuple(
        _apply_override(config, overrides[config.category_key])
        if config.category_key in overrides
        else config
        for config in _BASE_CATEGORIES
    )


def get_category_configs() -> Tuple[CategoryConfig, ...]:
    return load_category_configs(settings.CATEGORY_OVERRIDES_FILE)


__all__ = [
    "CATEGORY_TABLE_VERSION",
    "CategoryConfig",
    "SEASON_BOOSTS",
    "SITUATION_BOOSTS",
    "TIME_BOOSTS",
    "get_category_configs",
    "load_category_configs",
]
