"""
Ecosystem Models - Tabs, themes, insights and the assembled cultural ecosystem
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .entities import CandidateEntity, CulturalConnection
from .vibe import ExtractedSeed


class DynamicTabConfig(BaseModel):
    """One ranked content category selected for a vibe."""

    id: str = Field(..., description="Tab identifier, 'tab_<category_key>'")
    category_key: str
    display_name: str
    icon: str
    priority: float = Field(..., ge=0.0, le=2.0, description="Composite score after boosts and dampening")
    is_active: bool = False
    estimated_count: int = Field(..., ge=3, le=20, description="Suggested number of candidates to fetch")
    query_tags: List[str] = Field(default_factory=list)
    scoring_details: List[str] = Field(default_factory=list, description="Explanation trail of applied boosts")


class CulturalTheme(BaseModel):
    """Recurring label aggregated across connections."""

    theme: str = Field(..., min_length=1)
    strength: float = Field(..., ge=0.0, le=1.0)
    entity_types: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list, description="Deduplicated entity names")
    description: str = ""
    psychological_meaning: Optional[str] = None


class InsightType(str, Enum):
    PATTERN = "pattern"
    CONNECTION = "connection"
    RECOMMENDATION = "recommendation"
    PSYCHOLOGICAL = "psychological"


class CulturalInsight(BaseModel):
    """Structured, display-ready observation about an ecosystem."""

    type: InsightType
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    supporting_entities: List[str] = Field(default_factory=list)
    actionable_advice: Optional[str] = None


class CulturalEcosystem(BaseModel):
    """
    Cross-domain result for one processed vibe.

    Built once per request and never mutated. Connections and themes are
    sorted by strength, strongest first. ``is_minimal`` marks the placeholder
    returned when no entities could be gathered at all.
    """

    model_config = {"frozen": True}

    core_vibe: str = Field(..., min_length=1)
    location_hint: str = ""
    primary_seeds: List[ExtractedSeed] = Field(default_factory=list)
    entities: Dict[str, List[CandidateEntity]] = Field(default_factory=dict)
    connections: List[CulturalConnection] = Field(default_factory=list)
    cultural_themes: List[CulturalTheme] = Field(default_factory=list)
    ecosystem_score: float = Field(..., ge=0.0, le=1.0)
    insights: List[CulturalInsight] = Field(default_factory=list)
    ecosystem_narrative: Optional[str] = None
    tabs: List[DynamicTabConfig] = Field(default_factory=list)
    is_minimal: bool = False

    @property
    def total_entities(self) -> int:
        return sum(len(items) for items in self.entities.values())

    def entity_by_id(self, entity_id: str) -> Optional[CandidateEntity]:
        for items in self.entities.values():
            for entity in items:
                if entity.id == entity_id:
                    return entity
        return None

    def edges(self) -> List[Tuple[str, str, Dict[str, Any]]]:
        return [connection.as_edge() for connection in self.connections]
