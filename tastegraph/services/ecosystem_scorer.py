"""
EcosystemScorer - Single coherence score for a cultural ecosystem

Weights (sum to 1.0 at saturation):
- connection density: 0.4
- mean theme strength: 0.3 (fixed 0.15 without themes)
- category diversity: 0.3 (saturates at 5 categories)
"""

from typing import Mapping, Sequence

from tastegraph.models.ecosystem import CulturalTheme
from tastegraph.models.entities import CandidateEntity, CulturalConnection

DENSITY_WEIGHT = 0.4
THEME_WEIGHT = 0.3
DIVERSITY_WEIGHT = 0.3
THEME_FLOOR = 0.15
DIVERSITY_SATURATION = 5


class EcosystemScorer:
    """Pure arithmetic coherence scorer."""

    def score(
        self,
        connections: Sequence[CulturalConnection],
        themes: Sequence[CulturalTheme],
        entities_by_category: Mapping[str, Sequence[CandidateEntity]],
    ) -> float:
        """
        Score how tightly the ecosystem hangs together.

        Args:
            connections: Discovered connections
            themes: Extracted themes
            entities_by_category: Entities keyed by category

        Returns:
            Score in [0, 1]; exactly 0 when there are no entities
        """
        total_entities = sum(len(entities) for entities in entities_by_category.values())
        if total_entities == 0:
            return 0.0

        max_pairs = total_entities * (total_entities - 1) / 2
        density = min((len(connections) + 1) / max(max_pairs / 4, 1), 1.0) * DENSITY_WEIGHT

        if themes:
            theme_strength = sum(theme.strength for theme in themes) / len(themes) * THEME_WEIGHT
        else:
            theme_strength = THEME_FLOOR

        categories_present = sum(1 for entities in entities_by_category.values() if entities)
        diversity = min(categories_present / DIVERSITY_SATURATION, 1.0) * DIVERSITY_WEIGHT

        return max(0.0, min(1.0, density + theme_strength + diversity))
