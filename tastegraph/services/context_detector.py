"""Keyword heuristics that infer a VibeContext when no classifier is available."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from tastegraph.models.vibe import ExtractedSeed, Season, SeedCategory, TimeOfDay, VibeContext

logger = logging.getLogger(__name__)

INDOOR_KEYWORDS = ("cozy", "indoor", "cafe", "restaurant", "museum", "gallery", "movie", "book", "read", "study")
OUTDOOR_KEYWORDS = ("outdoor", "park", "hike", "beach", "festival", "adventure", "nature", "garden", "rooftop")

# Checked in order, first match wins
TIME_KEYWORDS: Tuple[Tuple[TimeOfDay, Tuple[str, ...]], ...] = (
    (TimeOfDay.MORNING, ("morning", "breakfast", "sunrise")),
    (TimeOfDay.AFTERNOON, ("afternoon", "lunch", "noon")),
    (TimeOfDay.EVENING, ("evening", "dinner", "sunset")),
    (TimeOfDay.NIGHT, ("night", "late", "after dark")),
)

SEASON_KEYWORDS: Tuple[Tuple[Season, Tuple[str, ...]], ...] = (
    (Season.SPRING, ("spring", "bloom", "fresh")),
    (Season.SUMMER, ("summer", "beach", "hot", "festival")),
    (Season.FALL, ("fall", "autumn", "cozy", "harvest")),
    (Season.WINTER, ("winter", "cold", "holiday", "snow")),
)

BASE_RELEVANCE: Dict[str, float] = {
    "place": 0.8,
    "movie": 0.6,
    "tv_show": 0.5,
    "artist": 0.6,
    "book": 0.4,
    "podcast": 0.4,
    "videogame": 0.3,
    "destination": 0.5,
}

INDOOR_CATEGORIES = ("book", "movie", "tv_show", "podcast", "videogame")
OUTDOOR_CATEGORIES = ("place", "destination", "artist")
INDOOR_RELEVANCE_BOOST = 0.3
OUTDOOR_RELEVANCE_BOOST = 0.2
SEED_RELEVANCE_BOOST = 0.1


def _matches(text: str, keywords: Sequence[str]) -> List[str]:
    return [keyword for keyword in keywords if keyword in text]


def detect_time_of_day(vibe: str) -> Optional[TimeOfDay]:
    lowered = vibe.lower()
    for time_of_day, keywords in TIME_KEYWORDS:
        if _matches(lowered, keywords):
            return time_of_day
    return None


def detect_season(vibe: str) -> Optional[Season]:
    lowered = vibe.lower()
    for season, keywords in SEASON_KEYWORDS:
        if _matches(lowered, keywords):
            return season
    return None


def _seed_is_relevant(category_key: str, seed: ExtractedSeed) -> bool:
    text = seed.text.lower()
    if category_key == "place":
        return seed.category in (SeedCategory.FOOD, SeedCategory.ACTIVITY)
    if category_key in ("movie", "tv_show"):
        return seed.category == SeedCategory.MEDIA or "movie" in text or "show" in text
    if category_key == "artist":
        return seed.category == SeedCategory.MEDIA or "music" in text or "concert" in text
    if category_key == "book":
        return "book" in text or "read" in text or "literature" in text
    return False


def score_entity_relevance(
    is_indoor: bool,
    is_outdoor: bool,
    seeds: Sequence[ExtractedSeed] = (),
) -> Dict[str, float]:
    """
    Rule-based per-category relevance.

    Args:
        is_indoor: Indoor context detected
        is_outdoor: Outdoor context detected
        seeds: Seeds extracted from the vibe

    Returns:
        Relevance in [0, 1] for every known category
    """
    relevance: Dict[str, float] = {}
    for category_key, base in BASE_RELEVANCE.items():
        score = base
        if is_indoor and category_key in INDOOR_CATEGORIES:
            score += INDOOR_RELEVANCE_BOOST
        if is_outdoor and category_key in OUTDOOR_CATEGORIES:
            score += OUTDOOR_RELEVANCE_BOOST
        score += SEED_RELEVANCE_BOOST * sum(1 for seed in seeds if _seed_is_relevant(category_key, seed))
        relevance[category_key] = min(score, 1.0)
    return relevance


def detect_vibe_context(vibe: str, seeds: Sequence[ExtractedSeed] = ()) -> VibeContext:
    """Infer situational context from the vibe text alone."""

    lowered = vibe.lower()
    indoor_hits = _matches(lowered, INDOOR_KEYWORDS)
    outdoor_hits = _matches(lowered, OUTDOOR_KEYWORDS)

    is_indoor = len(indoor_hits) > len(outdoor_hits)
    is_outdoor = len(outdoor_hits) > len(indoor_hits)
    is_hybrid = bool(indoor_hits) and bool(outdoor_hits)
    confidence = max(len(indoor_hits), len(outdoor_hits)) / max(len(INDOOR_KEYWORDS), len(OUTDOOR_KEYWORDS))

    context = VibeContext(
        is_indoor=is_indoor,
        is_outdoor=is_outdoor,
        is_hybrid=is_hybrid,
        time_of_day=detect_time_of_day(vibe),
        season=detect_season(vibe),
        entity_relevance=score_entity_relevance(is_indoor, is_outdoor, seeds),
        confidence_score=min(confidence, 1.0),
    )
    logger.debug(f"Heuristic context for '{vibe}': indicators={indoor_hits + outdoor_hits}")
    return context


__all__ = [
    "detect_season",
    "detect_time_of_day",
    "detect_vibe_context",
    "score_entity_relevance",
]
