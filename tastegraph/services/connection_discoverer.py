"""
ConnectionDiscoverer - Cross-category connection discovery between candidate entities

Each pair of entities from two different categories is scored with:
- shared tonal keywords (+0.15 each)
- seed phrases present in both descriptions (+0.2 each)
- curated genre groups matched by both descriptions (+0.25 per group)
- shared name tokens longer than 3 characters (+0.15 each)
- a shared neighborhood in both locations (+0.1)

Pairs with no signal get a flat baseline so every sampled pair stays a weak
connection before thresholding.
"""

import logging
import re
from itertools import combinations
from typing import List, Mapping, Optional, Sequence

from tastegraph.models.entities import CandidateEntity, CulturalConnection
from tastegraph.models.vibe import ExtractedSeed
from tastegraph.services.errors import EcosystemContractError

logger = logging.getLogger(__name__)

CULTURAL_KEYWORDS = (
    "artisanal", "indie", "local", "authentic", "creative", "intimate", "vintage", "craft",
    "organic", "sustainable", "community", "underground", "experimental", "traditional",
    "modern", "eclectic", "bohemian", "outdoor", "adventure", "nature", "hiking",
    "exploration", "wilderness", "scenic", "dramatic", "epic", "journey", "quest",
    "survival", "action", "thriller", "suspense", "mystery", "dark", "intense", "gritty",
    "family", "friendship", "love", "betrayal", "redemption", "coming-of-age", "dystopian",
    "fantasy", "sci-fi", "historical", "biographical", "documentary",
)

# Short terms that hide inside longer words ("olive", "cooperative", "rocky") match whole words only
WHOLE_WORD_KEYWORDS = ("cozy", "nostalgic", "romantic", "live")

GENRE_GROUPS = (
    ("action", "adventure", "thriller"),
    ("drama", "mystery", "suspense"),
    ("comedy", "family", "romantic"),
    ("fantasy", "sci-fi", "supernatural"),
    ("documentary", "biographical", "historical"),
)

WHOLE_WORD_GENRE_GROUPS = (
    ("jazz", "blues", "soul", "swing"),
    ("rock", "punk", "grunge"),
    ("classical", "orchestral", "opera"),
    ("folk", "acoustic", "singer-songwriter"),
    ("coffee", "espresso", "roastery"),
)

NEIGHBORHOODS = ("downtown", "uptown", "arts district", "old town", "creative district")

_WORD_PATTERNS = {
    term: re.compile(rf"\b{re.escape(term)}\b")
    for term in WHOLE_WORD_KEYWORDS + tuple(genre for group in WHOLE_WORD_GENRE_GROUPS for genre in group)
}

KEYWORD_WEIGHT = 0.15
SEED_WEIGHT = 0.2
GENRE_WEIGHT = 0.25
NAME_TOKEN_WEIGHT = 0.15
LOCATION_WEIGHT = 0.1
BASELINE_STRENGTH = 0.35
MIN_NAME_TOKEN_LENGTH = 4


def _has_word(text: str, term: str) -> bool:
    return _WORD_PATTERNS[term].search(text) is not None


class ConnectionDiscoverer:
    """
    Discover scored connections across category boundaries.

    Only the first ``sample_size`` entities of each category are compared,
    which bounds the work at O(C² · K²).
    """

    def __init__(
        self,
        sample_size: int = 3,
        min_strength: float = 0.3,
        max_connections: int = 20,
    ):
        self.sample_size = sample_size
        self.min_strength = min_strength
        self.max_connections = max_connections

    def discover(
        self,
        entities_by_category: Mapping[str, Sequence[CandidateEntity]],
        seeds: Sequence[ExtractedSeed],
    ) -> List[CulturalConnection]:
        """
        Score every sampled cross-category pair and keep the strongest.

        Args:
            entities_by_category: Entities keyed by category, in priority order
            seeds: Seeds extracted from the vibe

        Returns:
            Connections at or above the threshold, strongest first

        Raises:
            EcosystemContractError: An entity is filed under a different category
        """
        samples = {
            key: self._sample(key, entities)
            for key, entities in entities_by_category.items()
        }

        connections: List[CulturalConnection] = []
        for first_key, second_key in combinations(samples.keys(), 2):
            for first in samples[first_key]:
                for second in samples[second_key]:
                    connection = self.connect(first, second, seeds)
                    if connection.connection_strength >= self.min_strength:
                        connections.append(connection)

        connections.sort(key=lambda item: item.connection_strength, reverse=True)
        logger.debug(
            "Discovered %d connections across %d categories",
            len(connections),
            len(samples),
        )
        return connections[:self.max_connections]

    def _sample(self, key: str, entities: Sequence[CandidateEntity]) -> List[CandidateEntity]:
        sample = list(entities[:self.sample_size])
        for entity in sample:
            if entity.category != key:
                raise EcosystemContractError(
                    f"Entity '{entity.name}' has category '{entity.category}' but is filed under '{key}'"
                )
        return sample

    def connect(
        self,
        first: CandidateEntity,
        second: CandidateEntity,
        seeds: Sequence[ExtractedSeed],
    ) -> CulturalConnection:
        """Score a single pair of entities from different categories."""

        strength = 0.0
        themes: List[str] = []
        reason: Optional[str] = None

        desc1 = first.description.lower()
        desc2 = second.description.lower()

        for keyword in CULTURAL_KEYWORDS:
            if keyword in desc1 and keyword in desc2:
                strength += KEYWORD_WEIGHT
                themes.append(keyword)
        for keyword in WHOLE_WORD_KEYWORDS:
            if _has_word(desc1, keyword) and _has_word(desc2, keyword):
                strength += KEYWORD_WEIGHT
                themes.append(keyword)

        for seed in seeds:
            seed_text = seed.text.lower()
            if seed_text in desc1 and seed_text in desc2:
                strength += SEED_WEIGHT
                themes.append(seed.text)

        genre_matches = [
            (group, any(genre in desc1 for genre in group) and any(genre in desc2 for genre in group))
            for group in GENRE_GROUPS
        ] + [
            (group, any(_has_word(desc1, genre) for genre in group) and any(_has_word(desc2, genre) for genre in group))
            for group in WHOLE_WORD_GENRE_GROUPS
        ]
        for group, matched in genre_matches:
            if matched:
                strength += GENRE_WEIGHT
                themes.append(f"{group[0]} genre")
                if reason is None:
                    reason = f"Both share {group[0]} genre elements"

        words1 = [word for word in first.name.lower().split() if len(word) >= MIN_NAME_TOKEN_LENGTH]
        words2 = set(word for word in second.name.lower().split() if len(word) >= MIN_NAME_TOKEN_LENGTH)
        for word in dict.fromkeys(words1):
            if word in words2:
                strength += NAME_TOKEN_WEIGHT
                themes.append(f'"{word}" theme')
                if reason is None:
                    reason = f'Both feature "{word}" elements'

        if first.location and second.location:
            loc1 = first.location.lower()
            loc2 = second.location.lower()
            for area in NEIGHBORHOODS:
                if area in loc1 and area in loc2:
                    strength += LOCATION_WEIGHT
                    themes.append(f"{area} area")
                    break

        if strength == 0:
            strength = BASELINE_STRENGTH
            top_seed = seeds[0].text if seeds else "adventure"
            reason = f"Both reflect your {top_seed} preferences"
        elif reason is None:
            unique_themes = list(dict.fromkeys(themes))
            reason = f"Connected through {' and '.join(unique_themes[:2])} elements"

        return CulturalConnection(
            from_entity=first,
            to_entity=second,
            connection_strength=min(strength, 1.0),
            connection_reason=reason,
            shared_themes=themes,
        )


__all__ = [
    "CULTURAL_KEYWORDS",
    "ConnectionDiscoverer",
    "GENRE_GROUPS",
    "NEIGHBORHOODS",
    "WHOLE_WORD_GENRE_GROUPS",
    "WHOLE_WORD_KEYWORDS",
]
