"""Narrative generation collaborator: prompt building, chat-completion client and reply merging."""

import json
import logging
from textwrap import dedent
from typing import Any, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

import httpx
from pydantic import ValidationError

from tastegraph.config.settings import settings
from tastegraph.models.ecosystem import CulturalTheme
from tastegraph.models.entities import CandidateEntity, CulturalConnection
from tastegraph.models.narrative import (
    CategorySummary,
    ConnectionSummary,
    EntitySummary,
    NarrativeRequest,
    NarrativeResult,
    ThemeSummary,
)
from tastegraph.services.errors import NarrativeFailure

logger = logging.getLogger(__name__)

TOP_ITEMS_PER_CATEGORY = 5
TOP_CONNECTIONS = 10
DESCRIPTION_SNIPPET = 100
AI_STRENGTH_RANGE = (0.7, 0.95)

SYSTEM_PROMPT = "You are a world-class cultural anthropologist. Respond only with valid JSON."

PROMPT_TEMPLATE = dedent(
    """
    You are a world-class cultural anthropologist analyzing a person's cultural ecosystem.
    Provide deep, sophisticated analysis of their taste profile.

    PERSON'S VIBE: "{vibe}" in {location}

    CULTURAL DOMAINS ({category_count} types, {total_items} total items):
    {domains}

    EXISTING CONNECTIONS ({connection_count} found):
    {connections}

    EXISTING THEMES:
    {themes}

    TASK: Respond with JSON using exactly these keys:
    - "aiConnections": list of {{"fromEntity", "toEntity", "connectionStrength" (0.7-0.95),
      "connectionReason", "sharedThemes", "psychologicalInsight"}}
    - "aiThemes": list of {{"theme", "strength" (0.7-0.95), "description", "psychologicalMeaning",
      "entityTypes", "examples"}}
    - "aiInsights": list of {{"type" (pattern|connection|recommendation|psychological), "title",
      "description", "confidence" (0.8-0.95), "supportingEntities", "actionableAdvice"}}
    - "ecosystemNarrative": a 3-4 sentence story of this person's cultural identity

    Use entity names exactly as listed above. Favor unexpected connections between different
    cultural domains and avoid clichés.
    """
).strip()


@runtime_checkable
class NarrativeGenerator(Protocol):
    """Protocol for pluggable narrative generators."""

    async def generate(self, request: NarrativeRequest) -> NarrativeResult:  # pragma: no cover - interface
        """Produce narrative connections, themes, insights and text for an ecosystem summary."""


def build_narrative_request(
    vibe: str,
    location_hint: str,
    entities_by_category: Mapping[str, Sequence[CandidateEntity]],
    connections: Sequence[CulturalConnection],
    themes: Sequence[CulturalTheme],
) -> NarrativeRequest:
    """Summarize an ecosystem for the narrative generator."""

    return NarrativeRequest(
        vibe=vibe,
        location_hint=location_hint,
        categories=[
            CategorySummary(
                category=category,
                count=len(entities),
                top_items=[
                    EntitySummary(
                        name=entity.name,
                        description=entity.description[:DESCRIPTION_SNIPPET],
                        category=entity.category,
                    )
                    for entity in entities[:TOP_ITEMS_PER_CATEGORY]
                ],
            )
            for category, entities in entities_by_category.items()
        ],
        connections=[
            ConnectionSummary(
                from_name=connection.from_entity.name,
                from_category=connection.from_entity.category,
                to_name=connection.to_entity.name,
                to_category=connection.to_entity.category,
                strength=connection.connection_strength,
                reason=connection.connection_reason,
                themes=list(connection.shared_themes),
            )
            for connection in connections[:TOP_CONNECTIONS]
        ],
        themes=[
            ThemeSummary(
                theme=theme.theme,
                strength=theme.strength,
                entity_types=list(theme.entity_types),
                examples=list(theme.examples),
            )
            for theme in themes
        ],
    )


class BaseNarrativeGenerator:
    """Shared utilities for narrative generators."""

    @staticmethod
    def build_prompt(request: NarrativeRequest) -> str:
        total_items = sum(category.count for category in request.categories)

        domain_sections: List[str] = []
        for category in request.categories:
            lines = [f"{category.category.upper()} ({category.count} items):"]
            lines.extend(f"• {item.name}: {item.description}" for item in category.top_items)
            domain_sections.append("\n".join(lines))

        connection_lines = [
            f"• {c.from_name} ({c.from_category}) ↔ {c.to_name} ({c.to_category}): "
            f"{c.reason} [{round(c.strength * 100)}% strength]"
            for c in request.connections
        ]
        theme_lines = [f"• {t.theme}: {round(t.strength * 100)}% strength" for t in request.themes]

        domains_text = "\n\n".join(domain_sections) or "None"
        connections_text = "\n".join(connection_lines) or "None"
        themes_text = "\n".join(theme_lines) or "None"
        location = request.location_hint or "an unspecified city"

        return PROMPT_TEMPLATE.format(
            vibe=request.vibe,
            location=location,
            category_count=len(request.categories),
            total_items=total_items,
            domains=domains_text,
            connection_count=len(request.connections),
            connections=connections_text,
            themes=themes_text,
        )

    @staticmethod
    def parse_reply(content: str) -> NarrativeResult:
        """Parse a JSON reply, tolerating markdown code fences."""

        cleaned = content.replace("```json", "").replace("```", "").strip()
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise NarrativeFailure(f"reply is not valid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise NarrativeFailure("reply is not a JSON object")

        try:
            return NarrativeResult(
                connections=payload.get("aiConnections") or [],
                themes=payload.get("aiThemes") or [],
                insights=payload.get("aiInsights") or [],
                narrative_text=payload.get("ecosystemNarrative") or "",
            )
        except ValidationError as exc:
            raise NarrativeFailure(f"reply has unexpected shape: {exc}") from exc


class HttpNarrativeGenerator(BaseNarrativeGenerator):
    """Narrative generator backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = (base_url or settings.NARRATIVE_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.NARRATIVE_API_KEY
        self.model = model or settings.NARRATIVE_MODEL
        self.max_tokens = max_tokens or settings.NARRATIVE_MAX_TOKENS
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def generate(self, request: NarrativeRequest) -> NarrativeResult:
        if not self.api_key:
            raise NarrativeFailure("narrative API key not configured")

        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": 0.7,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(request)},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self.client.post(f"{self.base_url}/chat/completions", json=body, headers=headers)
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPError as exc:
            raise NarrativeFailure(f"request failed: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise NarrativeFailure(f"unexpected completion payload: {exc}") from exc

        result = self.parse_reply(content or "")
        logger.info(
            "Narrative analysis complete: %d connections, %d themes, %d insights",
            len(result.connections),
            len(result.themes),
            len(result.insights),
        )
        return result

    async def aclose(self) -> None:
        await self.client.aclose()


def _clamp(value: Any, bounds=AI_STRENGTH_RANGE) -> float:
    low, high = bounds
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = low
    return max(low, min(high, number))


def find_entity_by_name(
    name: str,
    entities_by_category: Mapping[str, Sequence[CandidateEntity]],
) -> Optional[CandidateEntity]:
    """Case-insensitive containment match in either direction, first hit in category order."""

    needle = name.lower().strip()
    if not needle:
        return None
    for entities in entities_by_category.values():
        for entity in entities:
            candidate = entity.name.lower()
            if needle in candidate or candidate in needle:
                return entity
    return None


def resolve_narrative_connections(
    result: NarrativeResult,
    entities_by_category: Mapping[str, Sequence[CandidateEntity]],
) -> List[CulturalConnection]:
    """Turn narrative connections into validated cross-category connections."""

    resolved: List[CulturalConnection] = []
    for raw in result.connections:
        if not isinstance(raw, dict):
            continue
        source = find_entity_by_name(str(raw.get("fromEntity") or ""), entities_by_category)
        target = find_entity_by_name(str(raw.get("toEntity") or ""), entities_by_category)
        if source is None or target is None or source.category == target.category:
            logger.debug(f"Skipping unresolved narrative connection: {raw.get('fromEntity')} -> {raw.get('toEntity')}")
            continue
        themes = raw.get("sharedThemes") or []
        try:
            resolved.append(
                CulturalConnection(
                    from_entity=source,
                    to_entity=target,
                    connection_strength=_clamp(raw.get("connectionStrength")),
                    connection_reason=raw.get("connectionReason") or "AI-identified cultural connection",
                    shared_themes=[str(theme) for theme in themes] if isinstance(themes, list) else [],
                    psychological_insight=raw.get("psychologicalInsight"),
                )
            )
        except ValidationError as exc:
            logger.warning(f"Dropping malformed narrative connection: {exc}")
    return resolved


def resolve_narrative_themes(result: NarrativeResult) -> List[CulturalTheme]:
    themes: List[CulturalTheme] = []
    for raw in result.themes:
        if not isinstance(raw, dict) or not raw.get("theme"):
            continue
        try:
            themes.append(
                CulturalTheme(
                    theme=str(raw["theme"]),
                    strength=_clamp(raw.get("strength")),
                    entity_types=list(raw.get("entityTypes") or []),
                    examples=list(dict.fromkeys(raw.get("examples") or [])),
                    description=raw.get("description") or "",
                    psychological_meaning=raw.get("psychologicalMeaning"),
                )
            )
        except (ValidationError, TypeError) as exc:
            logger.warning(f"Dropping malformed narrative theme: {exc}")
    return themes


__all__ = [
    "BaseNarrativeGenerator",
    "HttpNarrativeGenerator",
    "NarrativeGenerator",
    "build_narrative_request",
    "find_entity_by_name",
    "resolve_narrative_connections",
    "resolve_narrative_themes",
]
