"""
CategoryPrioritizer - Dynamic tab selection for a vibe context

Scores every configured content category with:
- base priority (priority / 10)
- entity relevance (relevance × 0.5)
- indoor / outdoor / hybrid situational boosts
- time-of-day and seasonal adjustments
- confidence dampening (× 0.5 + confidence × 0.5)

The result is clamped to [0, 2] and the strongest categories become tabs.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from tastegraph.config.categories import (
    SEASON_BOOSTS,
    SITUATION_BOOSTS,
    TIME_BOOSTS,
    CategoryConfig,
    get_category_configs,
)
from tastegraph.models.ecosystem import DynamicTabConfig
from tastegraph.models.vibe import VibeContext

logger = logging.getLogger(__name__)

MAX_PRIORITY = 2.0
TABS_WITH_RELEVANCE = 5
TABS_WITHOUT_RELEVANCE = 3
MIN_ESTIMATED_COUNT = 3
MAX_ESTIMATED_COUNT = 20


@dataclass
class CategoryScore:
    """Composite score and explanation trail for one category."""

    config: CategoryConfig
    total: float
    details: List[str] = field(default_factory=list)


def _signed(value: float) -> str:
    return f"+{value:.2f}" if value > 0 else f"{value:.2f}"


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


class CategoryPrioritizer:
    """
    Rank content categories for a vibe context.

    Pure and deterministic: identical contexts give identical tabs, and ties
    keep configuration order.
    """

    def __init__(self, configs: Optional[Sequence[CategoryConfig]] = None):
        """
        Initialize prioritizer.

        Args:
            configs: Category table to rank, defaults to the configured table
        """
        self.configs: Tuple[CategoryConfig, ...] = tuple(configs) if configs is not None else get_category_configs()

    def score_category(self, config: CategoryConfig, context: VibeContext) -> CategoryScore:
        """
        Compute the composite score for one category.

        Args:
            config: Category to score
            context: Situational context of the vibe

        Returns:
            CategoryScore with the clamped total and the explanation trail
        """
        key = config.category_key
        score = config.base_priority / 10
        details = [f"Base: {score:.2f}"]

        if context.entity_relevance is not None:
            entity_boost = context.entity_relevance.get(key, 0.0) * 0.5
            score += entity_boost
            if entity_boost > 0.1:
                details.append(f"AI Entity: +{entity_boost:.2f}")

        for enabled, dimension, label in (
            (context.is_indoor, "indoor", "Indoor"),
            (context.is_outdoor, "outdoor", "Outdoor"),
            (context.is_hybrid, "hybrid", "Hybrid"),
        ):
            if not enabled:
                continue
            boost = SITUATION_BOOSTS.get((key, dimension), 0.0)
            score += boost
            if boost != 0:
                details.append(f"{label}: {_signed(boost)}")

        if context.time_of_day is not None:
            time_boost = TIME_BOOSTS.get((key, context.time_of_day.value), 0.0)
            score += time_boost
            if abs(time_boost) > 0.05:
                details.append(f"{context.time_of_day.value}: {_signed(time_boost)}")

        if context.season is not None:
            season_boost = SEASON_BOOSTS.get((key, context.season.value), 0.0)
            score += season_boost
            if abs(season_boost) > 0.05:
                details.append(f"{context.season.value}: {_signed(season_boost)}")

        if context.confidence_score is not None:
            multiplier = 0.5 + context.confidence_score * 0.5
            score *= multiplier
            if context.confidence_score < 0.8:
                details.append(f"Confidence: ×{multiplier:.2f}")

        return CategoryScore(config=config, total=max(0.0, min(MAX_PRIORITY, score)), details=details)

    def estimate_count(self, config: CategoryConfig, context: VibeContext) -> int:
        estimate = float(config.base_estimate)
        if context.entity_relevance is not None:
            relevance = context.entity_relevance.get(config.category_key, 0.0)
            estimate = _round_half_up(estimate * (0.5 + relevance * 0.5))
        return max(MIN_ESTIMATED_COUNT, min(MAX_ESTIMATED_COUNT, int(estimate)))

    def compute_tabs(self, context: VibeContext) -> List[DynamicTabConfig]:
        """Return ranked tabs for the context; the first one is active."""

        scored = [self.score_category(config, context) for config in self.configs]
        # sorted() is stable, so equal scores keep configuration order
        scored = sorted(scored, key=lambda item: item.total, reverse=True)

        limit = TABS_WITH_RELEVANCE if context.entity_relevance is not None else TABS_WITHOUT_RELEVANCE
        kept = scored[:limit]

        tabs = [
            DynamicTabConfig(
                id=f"tab_{item.config.category_key}",
                category_key=item.config.category_key,
                display_name=item.config.display_name,
                icon=item.config.icon,
                priority=item.total,
                is_active=index == 0,
                estimated_count=self.estimate_count(item.config, context),
                query_tags=list(item.config.query_tags),
                scoring_details=item.details,
            )
            for index, item in enumerate(kept)
        ]

        logger.debug(
            "Generated dynamic tabs: %s",
            ", ".join(f"{tab.display_name} ({tab.priority:.2f})" for tab in tabs),
        )
        return tabs


def get_dynamic_tabs(context: VibeContext) -> List[DynamicTabConfig]:
    """Rank tabs with the default category table."""
    return CategoryPrioritizer().compute_tabs(context)


__all__ = [
    "CategoryPrioritizer",
    "CategoryScore",
    "get_dynamic_tabs",
]
