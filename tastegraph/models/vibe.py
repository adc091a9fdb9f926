"""
Vibe Models - Seeds extracted from a user's vibe and the situational context inferred from it
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class SeedCategory(str, Enum):
    """Kind of concept a seed refers to"""
    FOOD = "food"
    ACTIVITY = "activity"
    MEDIA = "media"
    GENERAL = "general"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class ExtractedSeed(BaseModel):
    """
    Concrete, searchable phrase extracted from a vibe.

    Produced once per vibe by an external extractor and only read afterwards
    by prioritization, fetching and connection discovery.
    """

    model_config = {"frozen": True}

    text: str = Field(..., min_length=1, description="Seed phrase, e.g. 'indie bookstore'")
    category: SeedCategory = Field(default=SeedCategory.GENERAL, description="Seed kind")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0, description="Extractor confidence")
    search_terms: List[str] = Field(default_factory=list, description="Ordered search terms")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        """Validate seed text is not only whitespace"""
        if not v.strip():
            raise ValueError("Seed text cannot be empty")
        return v.strip()


class VibeContext(BaseModel):
    """
    Situational attributes inferred from a vibe.

    Indoor, outdoor and hybrid flags inform each other but are not exclusive.
    """

    model_config = {"frozen": True}

    is_indoor: bool = False
    is_outdoor: bool = False
    is_hybrid: bool = False
    time_of_day: Optional[TimeOfDay] = None
    season: Optional[Season] = None
    entity_relevance: Optional[Dict[str, float]] = Field(
        default=None,
        description="Per-category relevance in [0, 1]",
    )
    confidence_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("entity_relevance")
    @classmethod
    def relevance_in_range(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is None:
            return v
        for key, value in v.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Relevance for {key} must be within [0, 1], got {value}")
        return v


class CulturalProfile(BaseModel):
    """Personality summary produced alongside the seeds by the vibe analysis."""

    model_config = {"frozen": True}

    summary: str = Field(default="", description="Short personality description")
    primary_themes: List[str] = Field(default_factory=list)
    personality_traits: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list, description="Discovery suggestions, best first")
