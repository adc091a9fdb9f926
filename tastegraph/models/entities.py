"""
Entity Models - Candidate entities supplied by the recommendation provider
and the cross-category connections discovered between them
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    return _SLUG_PATTERN.sub("-", value.lower()).strip("-")


class CandidateEntity(BaseModel):
    """
    Single recommendation returned by the candidate fetcher.

    Immutable once fetched. Missing descriptions and locations are kept as
    empty strings so downstream substring matching never sees None.
    """

    model_config = {"frozen": True}

    id: str = Field(default="", description="Provider identifier, derived from category and name when absent")
    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field(default="", description="Free-text description")
    location: str = Field(default="", description="Address, city or neighborhood")
    score: float = Field(default=0.0, description="Provider relevance score")
    category: str = Field(..., min_length=1, description="Category key, e.g. 'place' or 'book'")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque provider payload")

    @field_validator("description", "location", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="before")
    @classmethod
    def derive_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and data.get("name") and data.get("category"):
            data = {**data, "id": f"{data['category']}:{slugify(str(data['name']))}"}
        return data


class CulturalConnection(BaseModel):
    """
    Scored relationship between two entities from different categories.

    Entities are held by reference; the ecosystem's per-category map stays
    the owner. ``as_edge`` gives the flat (from_id, to_id, attributes) form.
    """

    model_config = {"frozen": True}

    from_entity: CandidateEntity
    to_entity: CandidateEntity
    connection_strength: float = Field(..., ge=0.0, le=1.0)
    connection_reason: str = Field(..., min_length=1)
    shared_themes: List[str] = Field(default_factory=list)
    psychological_insight: Optional[str] = None

    @field_validator("shared_themes")
    @classmethod
    def dedupe_themes(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def spans_categories(self) -> "CulturalConnection":
        if self.from_entity.category == self.to_entity.category:
            raise ValueError(
                f"Connections must span categories, both entities are '{self.from_entity.category}'"
            )
        return self

    @property
    def from_id(self) -> str:
        return self.from_entity.id

    @property
    def to_id(self) -> str:
        return self.to_entity.id

    def as_edge(self) -> Tuple[str, str, Dict[str, Any]]:
        return (
            self.from_id,
            self.to_id,
            {
                "connection_strength": self.connection_strength,
                "connection_reason": self.connection_reason,
                "shared_themes": list(self.shared_themes),
            },
        )
