"""
Ecosystem engine - builds a cultural ecosystem for one vibe

Pipeline:
1. Rank categories for the vibe context (CategoryPrioritizer)
2. Fetch candidates for every selected tab concurrently
3. Discover cross-category connections and extract themes
4. Optionally merge narrative connections, themes and insights
5. Score the ecosystem and synthesize insights
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from tastegraph.config.settings import settings
from tastegraph.models.ecosystem import (
    CulturalEcosystem,
    CulturalInsight,
    CulturalTheme,
    DynamicTabConfig,
    InsightType,
)
from tastegraph.models.entities import CandidateEntity, CulturalConnection
from tastegraph.models.narrative import NarrativeResult
from tastegraph.models.vibe import CulturalProfile, ExtractedSeed, VibeContext
from tastegraph.services.candidate_fetcher import CandidateFetcher
from tastegraph.services.connection_discoverer import ConnectionDiscoverer
from tastegraph.services.ecosystem_scorer import EcosystemScorer
from tastegraph.services.errors import (
    EcosystemBuildError,
    EcosystemContractError,
    EmptyInputFailure,
    FetchFailure,
    NarrativeFailure,
)
from tastegraph.services.insight_synthesizer import InsightSynthesizer
from tastegraph.services.narrative import (
    NarrativeGenerator,
    build_narrative_request,
    resolve_narrative_connections,
    resolve_narrative_themes,
)
from tastegraph.services.prioritizer import CategoryPrioritizer
from tastegraph.services.telemetry import TelemetryStore, get_telemetry_store
from tastegraph.services.theme_extractor import ThemeExtractor

logger = logging.getLogger(__name__)

MINIMAL_INSIGHT_CONFIDENCE = 0.5

# Collaborators may be protocol objects or bare callables, sync or async
CandidateSource = Union[CandidateFetcher, Callable[..., Any]]
NarrativeSource = Union[NarrativeGenerator, Callable[..., Any]]
AsyncCall = Callable[..., Awaitable[Any]]


def _as_async_call(collaborator: Any, method_name: str, role: str) -> AsyncCall:
    """
    Normalize a collaborator to a single awaitable call.

    Accepts an object exposing ``method_name`` or a plain callable. Coroutine
    functions are awaited directly; synchronous ones run in a worker thread so
    they cannot stall the event loop or the timeouts around them.

    Raises:
        EcosystemContractError: The collaborator is not callable at all
    """
    method = getattr(collaborator, method_name, None)
    target = method if callable(method) else collaborator
    if not callable(target):
        raise EcosystemContractError(
            f"{role} must be callable or expose .{method_name}(), got {type(collaborator).__name__}"
        )

    if inspect.iscoroutinefunction(target):
        return target

    async def call(*args: Any) -> Any:
        result = await asyncio.to_thread(target, *args)
        if inspect.isawaitable(result):
            result = await result
        return result

    return call


def minimal_ecosystem(
    vibe: str,
    location_hint: str,
    seeds: Sequence[ExtractedSeed],
    tabs: Sequence[DynamicTabConfig] = (),
) -> CulturalEcosystem:
    """Placeholder ecosystem returned when no entities could be gathered."""

    return CulturalEcosystem(
        core_vibe=vibe,
        location_hint=location_hint,
        primary_seeds=list(seeds),
        entities={},
        connections=[],
        cultural_themes=[],
        ecosystem_score=0.0,
        insights=[
            CulturalInsight(
                type=InsightType.RECOMMENDATION,
                title="Limited Data Available",
                description=(
                    "We couldn't gather enough cultural data to build a full ecosystem. "
                    "This might be due to API limitations or limited data for your vibe."
                ),
                confidence=MINIMAL_INSIGHT_CONFIDENCE,
                supporting_entities=[],
            )
        ],
        tabs=list(tabs),
        is_minimal=True,
    )


class EcosystemEngine:
    """Orchestrate prioritization, fetching, discovery and synthesis for a vibe."""

    def __init__(
        self,
        prioritizer: Optional[CategoryPrioritizer] = None,
        discoverer: Optional[ConnectionDiscoverer] = None,
        theme_extractor: Optional[ThemeExtractor] = None,
        scorer: Optional[EcosystemScorer] = None,
        synthesizer: Optional[InsightSynthesizer] = None,
        telemetry_store: Optional[TelemetryStore] = None,
        fetch_timeout_s: Optional[float] = None,
        narrative_timeout_s: Optional[float] = None,
    ) -> None:
        self.prioritizer = prioritizer or CategoryPrioritizer()
        self.discoverer = discoverer or ConnectionDiscoverer(
            sample_size=settings.CONNECTION_SAMPLE_SIZE,
            min_strength=settings.MIN_CONNECTION_STRENGTH,
            max_connections=settings.MAX_CONNECTIONS,
        )
        self.theme_extractor = theme_extractor or ThemeExtractor(max_themes=settings.MAX_THEMES)
        self.scorer = scorer or EcosystemScorer()
        self.synthesizer = synthesizer or InsightSynthesizer()
        self.telemetry = telemetry_store or get_telemetry_store()
        self.fetch_timeout_s = fetch_timeout_s or settings.FETCH_TIMEOUT_SECONDS
        self.narrative_timeout_s = narrative_timeout_s or settings.NARRATIVE_TIMEOUT_SECONDS

    async def build_ecosystem(
        self,
        vibe: str,
        location_hint: str,
        context: VibeContext,
        seeds: Sequence[ExtractedSeed],
        fetch_candidates: CandidateSource,
        generate_narrative: Optional[NarrativeSource] = None,
        profile: Optional[CulturalProfile] = None,
    ) -> CulturalEcosystem:
        """
        Build the cultural ecosystem for a vibe.

        Collaborator failures degrade the result instead of raising. When no
        category yields any entity the minimal ecosystem is returned.

        Raises:
            EcosystemContractError: A collaborator is neither callable nor exposes its method
            EcosystemBuildError: The result object itself cannot be constructed
        """
        fetch = _as_async_call(fetch_candidates, "fetch", "fetch_candidates")
        generate = (
            _as_async_call(generate_narrative, "generate", "generate_narrative")
            if generate_narrative is not None
            else None
        )

        tabs = self.prioritizer.compute_tabs(context)
        entities = await self._fetch_all(tabs, location_hint, seeds, fetch)

        try:
            try:
                self._require_entities(entities)
            except EmptyInputFailure as exc:
                logger.warning(f"Returning minimal ecosystem for '{vibe}': {exc}")
                return minimal_ecosystem(vibe, location_hint, seeds, tabs)

            connections = self.discoverer.discover(entities, seeds)
            themes = self.theme_extractor.extract_themes(entities, connections, vibe)

            narrative: Optional[NarrativeResult] = None
            if generate is not None:
                narrative = await self._generate_narrative(
                    generate, vibe, location_hint, entities, connections, themes
                )

            external_insights: List[Dict[str, Any]] = []
            narrative_text: Optional[str] = None
            if narrative is not None:
                connections, themes = self._merge_narrative(narrative, entities, connections, themes)
                external_insights = narrative.insights
                narrative_text = narrative.narrative_text or None

            score = self.scorer.score(connections, themes, entities)
            insights = self.synthesizer.synthesize(
                vibe, entities, connections, themes, external_insights, profile=profile
            )

            ecosystem = CulturalEcosystem(
                core_vibe=vibe,
                location_hint=location_hint,
                primary_seeds=list(seeds),
                entities=entities,
                connections=connections,
                cultural_themes=themes,
                ecosystem_score=score,
                insights=insights,
                ecosystem_narrative=narrative_text,
                tabs=tabs,
            )
        except ValidationError as exc:
            raise EcosystemBuildError(f"Could not assemble ecosystem for '{vibe}': {exc}") from exc

        logger.info(
            f"Built ecosystem for '{vibe}': {ecosystem.total_entities} entities, "
            f"{len(ecosystem.connections)} connections, {len(ecosystem.cultural_themes)} themes, "
            f"score {ecosystem.ecosystem_score:.2f}"
        )
        return ecosystem

    async def fetch_all(
        self,
        tabs: Sequence[DynamicTabConfig],
        location_hint: str,
        seeds: Sequence[ExtractedSeed],
        fetch_candidates: CandidateSource,
    ) -> Dict[str, List[CandidateEntity]]:
        """Fetch every tab concurrently; failed or empty categories are left out."""

        fetch = _as_async_call(fetch_candidates, "fetch", "fetch_candidates")
        return await self._fetch_all(tabs, location_hint, seeds, fetch)

    async def _fetch_all(
        self,
        tabs: Sequence[DynamicTabConfig],
        location_hint: str,
        seeds: Sequence[ExtractedSeed],
        fetch: AsyncCall,
    ) -> Dict[str, List[CandidateEntity]]:
        tasks = [self._fetch_category(tab, location_hint, seeds, fetch) for tab in tabs]
        results: List[Tuple[str, List[CandidateEntity]]] = await asyncio.gather(*tasks)
        return {key: items for key, items in results if items}

    async def _fetch_category(
        self,
        tab: DynamicTabConfig,
        location_hint: str,
        seeds: Sequence[ExtractedSeed],
        fetch: AsyncCall,
    ) -> Tuple[str, List[CandidateEntity]]:
        key = tab.category_key
        collaborator = f"fetch.{key}"
        start = time.perf_counter()

        try:
            try:
                raw_items = await asyncio.wait_for(
                    fetch(key, location_hint, list(tab.query_tags), list(seeds), tab.estimated_count),
                    timeout=self.fetch_timeout_s,
                )
            except FetchFailure:
                raise
            except asyncio.TimeoutError as exc:
                raise FetchFailure(key, f"timed out after {self.fetch_timeout_s}s") from exc
            except Exception as exc:
                raise FetchFailure(key, str(exc) or type(exc).__name__) from exc
            items = self._coerce_entities(key, raw_items or [])
        except FetchFailure as failure:
            latency_ms = (time.perf_counter() - start) * 1000
            self.telemetry.record_failure(collaborator, latency_ms, failure.reason)
            logger.warning(f"Candidate fetch failed for {key}: {failure.reason}")
            return key, []

        latency_ms = (time.perf_counter() - start) * 1000
        self.telemetry.record_success(collaborator, latency_ms)
        return key, items

    @staticmethod
    def _coerce_entities(key: str, raw_items: Sequence[Any]) -> List[CandidateEntity]:
        items: List[CandidateEntity] = []
        for raw in raw_items:
            try:
                if isinstance(raw, CandidateEntity):
                    entity = raw
                else:
                    entity = CandidateEntity.model_validate({"category": key, **dict(raw)})
            except (ValidationError, TypeError, ValueError) as exc:
                raise FetchFailure(key, f"malformed entity: {exc}") from exc
            if entity.category != key:
                raise FetchFailure(key, f"returned '{entity.category}' entity '{entity.name}'")
            items.append(entity)
        return items

    @staticmethod
    def _require_entities(entities: Mapping[str, Sequence[CandidateEntity]]) -> None:
        if not any(entities.values()):
            raise EmptyInputFailure("no category produced any entity")

    async def _generate_narrative(
        self,
        generate: AsyncCall,
        vibe: str,
        location_hint: str,
        entities: Mapping[str, Sequence[CandidateEntity]],
        connections: Sequence[CulturalConnection],
        themes: Sequence[CulturalTheme],
    ) -> Optional[NarrativeResult]:
        request = build_narrative_request(vibe, location_hint, entities, connections, themes)
        start = time.perf_counter()

        try:
            try:
                result = await asyncio.wait_for(generate(request), timeout=self.narrative_timeout_s)
            except NarrativeFailure:
                raise
            except asyncio.TimeoutError as exc:
                raise NarrativeFailure(f"timed out after {self.narrative_timeout_s}s") from exc
            except Exception as exc:
                raise NarrativeFailure(str(exc) or type(exc).__name__) from exc
            if not isinstance(result, NarrativeResult):
                raise NarrativeFailure(f"unexpected result type {type(result).__name__}")
        except NarrativeFailure as failure:
            latency_ms = (time.perf_counter() - start) * 1000
            self.telemetry.record_failure("narrative", latency_ms, str(failure))
            logger.warning(f"Narrative generation failed, continuing without it: {failure}")
            return None

        latency_ms = (time.perf_counter() - start) * 1000
        self.telemetry.record_success("narrative", latency_ms)
        return result

    def _merge_narrative(
        self,
        narrative: NarrativeResult,
        entities: Mapping[str, Sequence[CandidateEntity]],
        connections: List[CulturalConnection],
        themes: List[CulturalTheme],
    ) -> Tuple[List[CulturalConnection], List[CulturalTheme]]:
        merged_connections = connections + resolve_narrative_connections(narrative, entities)
        merged_connections.sort(key=lambda item: item.connection_strength, reverse=True)

        merged_themes = themes + resolve_narrative_themes(narrative)
        merged_themes.sort(key=lambda item: item.strength, reverse=True)

        return (
            merged_connections[:self.discoverer.max_connections],
            merged_themes[:self.theme_extractor.max_themes],
        )


async def build_ecosystem(
    vibe: str,
    location_hint: str,
    context: VibeContext,
    seeds: Sequence[ExtractedSeed],
    fetch_candidates: CandidateSource,
    generate_narrative: Optional[NarrativeSource] = None,
    profile: Optional[CulturalProfile] = None,
) -> CulturalEcosystem:
    """Build an ecosystem with a default engine."""
    engine = EcosystemEngine()
    return await engine.build_ecosystem(
        vibe, location_hint, context, seeds, fetch_candidates, generate_narrative, profile=profile
    )


__all__ = [
    "EcosystemEngine",
    "build_ecosystem",
    "minimal_ecosystem",
]
