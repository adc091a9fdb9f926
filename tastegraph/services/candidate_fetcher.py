"""Candidate fetcher interface and the HTTP adapter for the recommendation provider."""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import httpx
from pydantic import ValidationError

from tastegraph.config.settings import settings
from tastegraph.models.entities import CandidateEntity
from tastegraph.models.vibe import ExtractedSeed
from tastegraph.services.errors import FetchFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class CandidateFetcher(Protocol):
    """Protocol for pluggable recommendation providers."""

    async def fetch(
        self,
        category_key: str,
        location_hint: str,
        tags: Sequence[str],
        seeds: Sequence[ExtractedSeed],
        limit: int,
    ) -> Sequence[Any]:  # pragma: no cover - interface
        """Return candidate entities (models or mappings) for one category."""


class HttpCandidateFetcher:
    """Fetch location-aware recommendations from the insights API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = (base_url or settings.RECOMMENDATION_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.RECOMMENDATION_API_KEY
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch(
        self,
        category_key: str,
        location_hint: str,
        tags: Sequence[str],
        seeds: Sequence[ExtractedSeed],
        limit: int,
    ) -> List[CandidateEntity]:
        params: List[tuple] = [
            ("filter.type", f"urn:entity:{category_key}"),
            ("filter.location.query", location_hint),
            ("limit", str(limit)),
        ]
        params.extend(("filter.tags", tag) for tag in tags)

        headers = {"X-Api-Key": self.api_key} if self.api_key else {}

        try:
            response = await self.client.get(f"{self.base_url}/v2/insights", params=params, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise FetchFailure(category_key, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchFailure(category_key, "response body is not JSON") from exc

        results = payload.get("results") if isinstance(payload, dict) else None
        raw_entities = results.get("entities") if isinstance(results, dict) else None
        if not isinstance(raw_entities, list):
            raise FetchFailure(category_key, "response has no results.entities list")

        try:
            entities = [self._to_entity(raw, category_key, location_hint) for raw in raw_entities]
        except (ValidationError, AttributeError) as exc:
            raise FetchFailure(category_key, f"malformed entity: {exc}") from exc

        logger.info(f"Found {len(entities)} {category_key} recommendations for {location_hint}")
        return entities

    @staticmethod
    def _to_entity(raw: Dict[str, Any], category_key: str, location_hint: str) -> CandidateEntity:
        properties = raw.get("properties") or {}
        name = raw.get("name")
        return CandidateEntity(
            id=raw.get("entity_id") or raw.get("id") or "",
            name=name,
            description=properties.get("description") or f"{name} in {location_hint}",
            location=properties.get("address") or location_hint,
            score=raw.get("score") or 0.8,
            category=category_key,
            metadata={
                "address": properties.get("address"),
                "phone": properties.get("phone"),
                "website": properties.get("website"),
                "rating": properties.get("business_rating") or properties.get("rating"),
                "price_level": properties.get("price_level"),
                "hours": properties.get("hours"),
            },
        )

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = [
    "CandidateFetcher",
    "HttpCandidateFetcher",
]
