"""
Tastegraph Models
Data models for vibe context, candidate entities and cultural ecosystems
"""

from .vibe import CulturalProfile, ExtractedSeed, Season, SeedCategory, TimeOfDay, VibeContext
from .entities import CandidateEntity, CulturalConnection
from .ecosystem import (
    CulturalEcosystem,
    CulturalInsight,
    CulturalTheme,
    DynamicTabConfig,
    InsightType,
)
from .narrative import (
    CategorySummary,
    ConnectionSummary,
    EntitySummary,
    NarrativeRequest,
    NarrativeResult,
    ThemeSummary,
)

__all__ = [
    # Vibe
    "CulturalProfile",
    "ExtractedSeed",
    "Season",
    "SeedCategory",
    "TimeOfDay",
    "VibeContext",
    # Entities
    "CandidateEntity",
    "CulturalConnection",
    # Ecosystem
    "CulturalEcosystem",
    "CulturalInsight",
    "CulturalTheme",
    "DynamicTabConfig",
    "InsightType",
    # Narrative
    "CategorySummary",
    "ConnectionSummary",
    "EntitySummary",
    "NarrativeRequest",
    "NarrativeResult",
    "ThemeSummary",
]
