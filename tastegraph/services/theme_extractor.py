"""Aggregate connection themes into ranked cultural themes."""

import logging
from typing import Dict, List, Mapping, Sequence

from tastegraph.models.ecosystem import CulturalTheme
from tastegraph.models.entities import CandidateEntity, CulturalConnection

logger = logging.getLogger(__name__)

THEME_DESCRIPTIONS: Mapping[str, str] = {
    "artisanal": "Handcrafted, authentic experiences that value quality over quantity",
    "indie": "Independent, creative expressions outside mainstream culture",
    "local": "Community-rooted experiences that celebrate place and tradition",
    "authentic": "Genuine, unfiltered cultural expressions",
    "creative": "Innovative, artistic approaches to culture and experience",
    "intimate": "Personal, close-knit cultural experiences",
    "vintage": "Nostalgic, time-honored cultural elements",
    "sustainable": "Environmentally and socially conscious cultural choices",
    "community": "Shared, collective cultural experiences",
}

STRENGTH_FLOOR = 0.2
MAX_EXAMPLES = 4
FALLBACK_STRENGTH = 0.6
FALLBACK_EXAMPLES = 3


class ThemeExtractor:
    """Turn shared connection themes into ranked ``CulturalTheme`` records."""

    def __init__(self, max_themes: int = 8):
        self.max_themes = max_themes

    def extract_themes(
        self,
        entities_by_category: Mapping[str, Sequence[CandidateEntity]],
        connections: Sequence[CulturalConnection],
        vibe: str,
    ) -> List[CulturalTheme]:
        strengths: Dict[str, float] = {}
        categories: Dict[str, List[str]] = {}
        examples: Dict[str, List[str]] = {}

        for connection in connections:
            for theme in connection.shared_themes:
                strengths[theme] = strengths.get(theme, 0.0) + connection.connection_strength
                theme_categories = categories.setdefault(theme, [])
                theme_examples = examples.setdefault(theme, [])
                for entity in (connection.from_entity, connection.to_entity):
                    if entity.category not in theme_categories:
                        theme_categories.append(entity.category)
                    if entity.name not in theme_examples:
                        theme_examples.append(entity.name)

        themes = [
            CulturalTheme(
                theme=theme,
                strength=min(total, 1.0),
                entity_types=categories[theme],
                examples=examples[theme][:MAX_EXAMPLES],
                description=self.describe(theme, vibe),
            )
            for theme, total in strengths.items()
            if total > STRENGTH_FLOOR
        ]
        themes.sort(key=lambda item: item.strength, reverse=True)
        themes = themes[:self.max_themes]

        if not themes:
            themes = self.fallback_themes(entities_by_category, vibe)
            logger.debug("No shared themes found, using %d category themes", len(themes))

        return themes

    def fallback_themes(
        self,
        entities_by_category: Mapping[str, Sequence[CandidateEntity]],
        vibe: str,
    ) -> List[CulturalTheme]:
        """One moderate theme per non-empty category."""

        themes: List[CulturalTheme] = []
        for category, entities in entities_by_category.items():
            if not entities:
                continue
            names = list(dict.fromkeys(entity.name for entity in entities))
            themes.append(
                CulturalTheme(
                    theme=f"{category} preferences",
                    strength=FALLBACK_STRENGTH,
                    entity_types=[category],
                    examples=names[:FALLBACK_EXAMPLES],
                    description=f"Your taste in {category} reflects your {vibe} vibe",
                )
            )
        return themes[:self.max_themes]

    @staticmethod
    def describe(theme: str, vibe: str) -> str:
        return THEME_DESCRIPTIONS.get(theme, f"Cultural theme reflecting {theme} values in {vibe}")


__all__ = [
    "THEME_DESCRIPTIONS",
    "ThemeExtractor",
]
