"""
Narrative Models - Structured summary sent to the narrative collaborator and its reply
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class EntitySummary(BaseModel):
    name: str
    description: str = ""
    category: str


class CategorySummary(BaseModel):
    category: str
    count: int = Field(..., ge=0)
    top_items: List[EntitySummary] = Field(default_factory=list)


class ConnectionSummary(BaseModel):
    from_name: str
    from_category: str
    to_name: str
    to_category: str
    strength: float
    reason: str
    themes: List[str] = Field(default_factory=list)


class ThemeSummary(BaseModel):
    theme: str
    strength: float
    entity_types: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)


class NarrativeRequest(BaseModel):
    """Compact view of an ecosystem handed to the narrative generator."""

    vibe: str
    location_hint: str = ""
    categories: List[CategorySummary] = Field(default_factory=list)
    connections: List[ConnectionSummary] = Field(default_factory=list)
    themes: List[ThemeSummary] = Field(default_factory=list)


class NarrativeResult(BaseModel):
    """
    Loosely structured reply from the narrative generator.

    Items stay as plain mappings; the engine resolves connections against
    known entities and validates insights before merging anything.
    """

    connections: List[Dict[str, Any]] = Field(default_factory=list)
    themes: List[Dict[str, Any]] = Field(default_factory=list)
    insights: List[Dict[str, Any]] = Field(default_factory=list)
    narrative_text: str = ""
