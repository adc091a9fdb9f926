"""Structured insight synthesis for cultural ecosystems."""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from tastegraph.models.ecosystem import CulturalInsight, CulturalTheme, InsightType
from tastegraph.models.entities import CandidateEntity, CulturalConnection
from tastegraph.models.vibe import CulturalProfile

logger = logging.getLogger(__name__)

DIVERSITY_CONFIDENCE = 0.8
PROFILE_CONFIDENCE = 0.9
SUGGESTION_CONFIDENCE = 0.85
MAX_SUGGESTIONS = 2
EMERGING_CONFIDENCE = 0.6
BROAD_DOMAIN_COUNT = 4
COHERENCE_THRESHOLD = 0.3

ExternalInsight = Union[CulturalInsight, Mapping[str, Any]]


class InsightSynthesizer:
    """
    Build the ordered insight list of an ecosystem.

    Built-in insights always come first: diversity, then the vibe analysis
    profile when one is given, then dominant theme, bridge and coherence.
    Validated insights from the narrative collaborator follow.
    """

    def synthesize(
        self,
        vibe: str,
        entities_by_category: Mapping[str, Sequence[CandidateEntity]],
        connections: Sequence[CulturalConnection],
        themes: Sequence[CulturalTheme],
        external_insights: Optional[Sequence[ExternalInsight]] = None,
        profile: Optional[CulturalProfile] = None,
    ) -> List[CulturalInsight]:
        category_keys = [key for key, entities in entities_by_category.items() if entities]
        total_entities = sum(len(entities) for entities in entities_by_category.values())

        insights = [self._diversity_profile(vibe, category_keys, total_entities)]

        if profile is not None:
            insights.extend(self._profile_insights(profile))

        if themes:
            insights.append(self._dominant_theme(themes[0]))

        if connections:
            insights.append(self._bridge_discovery(connections[0]))
        elif len(category_keys) >= 2:
            insights.append(self._emerging_connections(vibe, category_keys))

        insights.append(self._coherence(connections, category_keys, total_entities))

        if external_insights:
            insights.extend(self.validate_external(external_insights))

        return insights

    def _diversity_profile(self, vibe: str, category_keys: List[str], total_entities: int) -> CulturalInsight:
        breadth = "broad" if len(category_keys) >= BROAD_DOMAIN_COUNT else "focused"
        return CulturalInsight(
            type=InsightType.PATTERN,
            title="Cultural Diversity Profile",
            description=(
                f"Your {vibe} taste spans {len(category_keys)} cultural domains with "
                f"{total_entities} total recommendations, showing {breadth} cultural interests."
            ),
            confidence=DIVERSITY_CONFIDENCE,
            supporting_entities=list(category_keys),
        )

    def _profile_insights(self, profile: CulturalProfile) -> List[CulturalInsight]:
        insights: List[CulturalInsight] = []
        if profile.summary.strip():
            insights.append(
                CulturalInsight(
                    type=InsightType.PATTERN,
                    title="Cultural Personality Analysis",
                    description=profile.summary.strip(),
                    confidence=PROFILE_CONFIDENCE,
                    supporting_entities=list(profile.primary_themes),
                )
            )
        suggestions = [item.strip() for item in profile.recommendations if item.strip()]
        if suggestions:
            insights.append(
                CulturalInsight(
                    type=InsightType.RECOMMENDATION,
                    title="Personalized Discovery Suggestions",
                    description=" ".join(suggestions[:MAX_SUGGESTIONS]),
                    confidence=SUGGESTION_CONFIDENCE,
                    supporting_entities=list(profile.personality_traits),
                )
            )
        return insights

    def _dominant_theme(self, theme: CulturalTheme) -> CulturalInsight:
        return CulturalInsight(
            type=InsightType.PATTERN,
            title=f"{theme.theme} Pattern",
            description=(
                f"Your cultural ecosystem shows strong {theme.theme} preferences, appearing across "
                f"{len(theme.entity_types)} different cultural domains."
            ),
            confidence=theme.strength,
            supporting_entities=list(theme.examples),
        )

    def _bridge_discovery(self, connection: CulturalConnection) -> CulturalInsight:
        return CulturalInsight(
            type=InsightType.CONNECTION,
            title="Cultural Bridge Discovery",
            description=(
                f"{connection.from_entity.name} and {connection.to_entity.name} connect through: "
                f"{connection.connection_reason}"
            ),
            confidence=connection.connection_strength,
            supporting_entities=[connection.from_entity.name, connection.to_entity.name],
        )

    def _emerging_connections(self, vibe: str, category_keys: List[str]) -> CulturalInsight:
        return CulturalInsight(
            type=InsightType.CONNECTION,
            title="Emerging Cultural Connections",
            description=(
                f"Your {vibe} preferences create potential bridges between "
                f"{' and '.join(category_keys[:2])}, suggesting opportunities for cross-cultural discovery."
            ),
            confidence=EMERGING_CONFIDENCE,
            supporting_entities=list(category_keys),
        )

    def _coherence(
        self,
        connections: Sequence[CulturalConnection],
        category_keys: List[str],
        total_entities: int,
    ) -> CulturalInsight:
        density = len(connections) / max(total_entities, 1)
        if density > COHERENCE_THRESHOLD:
            title = "Highly Coherent Cultural Ecosystem"
            description = (
                "Your recommendations form a tightly connected cultural network - "
                "perfect for deep exploration of a specific aesthetic."
            )
        else:
            title = "Diverse Cultural Exploration"
            description = (
                "Your recommendations span diverse cultural territories - "
                "great for broad cultural discovery."
            )
        return CulturalInsight(
            type=InsightType.RECOMMENDATION,
            title=title,
            description=description,
            confidence=min(density * 2, 1.0),
            supporting_entities=list(category_keys),
        )

    @staticmethod
    def validate_external(external_insights: Sequence[ExternalInsight]) -> List[CulturalInsight]:
        """Keep external insights that carry a title, description, type and confidence."""

        accepted: List[CulturalInsight] = []
        for raw in external_insights:
            if isinstance(raw, CulturalInsight):
                accepted.append(raw)
                continue
            try:
                accepted.append(CulturalInsight.model_validate(_normalize_keys(raw)))
            except (ValidationError, TypeError, ValueError) as exc:
                logger.warning(f"Dropping malformed external insight: {exc}")
        return accepted


def _normalize_keys(raw: Mapping[str, Any]) -> dict:
    """Accept the camelCase keys narrative providers reply with."""

    aliases = {
        "supportingEntities": "supporting_entities",
        "actionableAdvice": "actionable_advice",
    }
    return {aliases.get(key, key): value for key, value in dict(raw).items()}


__all__ = [
    "InsightSynthesizer",
]
