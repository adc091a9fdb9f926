import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from tastegraph.models.entities import CandidateEntity  # noqa: E402
from tastegraph.models.narrative import NarrativeRequest, NarrativeResult  # noqa: E402
from tastegraph.models.vibe import CulturalProfile, ExtractedSeed, SeedCategory, VibeContext  # noqa: E402
from tastegraph.services import ecosystem_engine as engine_module  # noqa: E402
from tastegraph.services.ecosystem_engine import EcosystemEngine, build_ecosystem  # noqa: E402
from tastegraph.services.errors import (  # noqa: E402
    EcosystemBuildError,
    EcosystemContractError,
    FetchFailure,
    NarrativeFailure,
)
from tastegraph.services.telemetry import TelemetryStore  # noqa: E402


def _catalog():
    return {
        "place": [CandidateEntity(name="Jazz Lounge", category="place", description="intimate jazz club with craft cocktails")],
        "artist": [CandidateEntity(name="Jazz Quartet", category="artist", description="live jazz performances")],
        "movie": [CandidateEntity(name="Whiplash", category="movie", description="intimate live drama about a jazz drummer")],
    }


class StubFetcher:
    def __init__(self, catalog):
        self.catalog = catalog
        self.calls = []

    async def fetch(self, category_key, location_hint, tags, seeds, limit):
        self.calls.append((category_key, location_hint, limit))
        outcome = self.catalog.get(category_key, [])
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SlowPlaceFetcher(StubFetcher):
    async def fetch(self, category_key, location_hint, tags, seeds, limit):
        if category_key == "place":
            await asyncio.sleep(1)
        return await super().fetch(category_key, location_hint, tags, seeds, limit)


class StubNarrative:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    async def generate(self, request: NarrativeRequest):
        self.requests.append(request)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def telemetry():
    return TelemetryStore()


@pytest.fixture
def engine(telemetry):
    return EcosystemEngine(telemetry_store=telemetry, fetch_timeout_s=0.05, narrative_timeout_s=0.05)


@pytest.fixture
def seeds():
    return [ExtractedSeed(text="jazz", category=SeedCategory.MEDIA)]


@pytest.mark.asyncio
async def test_build_ecosystem_end_to_end(engine, telemetry, seeds):
    fetcher = StubFetcher(_catalog())

    ecosystem = await engine.build_ecosystem("late night jazz", "Chicago", VibeContext(), seeds, fetcher)

    assert [tab.category_key for tab in ecosystem.tabs] == ["place", "artist", "movie"]
    assert {call[0] for call in fetcher.calls} == {"place", "artist", "movie"}
    assert ("place", "Chicago", 15) in fetcher.calls
    assert list(ecosystem.entities) == ["place", "artist", "movie"]
    assert ecosystem.total_entities == 3
    assert not ecosystem.is_minimal
    assert ecosystem.ecosystem_narrative is None

    assert len(ecosystem.connections) == 3
    strengths = [connection.connection_strength for connection in ecosystem.connections]
    assert strengths == sorted(strengths, reverse=True)
    for connection in ecosystem.connections:
        assert 0.3 <= connection.connection_strength <= 1.0
        assert connection.from_entity.category != connection.to_entity.category
        for entity in (connection.from_entity, connection.to_entity):
            assert any(entity is item for item in ecosystem.entities[entity.category])

    assert ecosystem.cultural_themes
    assert 0.0 < ecosystem.ecosystem_score <= 1.0
    assert ecosystem.insights[0].title == "Cultural Diversity Profile"
    assert ecosystem.primary_seeds == seeds

    metrics = telemetry.get_all_metrics()
    assert metrics["fetch.place"].successes == 1
    assert "narrative" not in metrics


@pytest.mark.asyncio
async def test_build_is_deterministic(engine, seeds):
    first = await engine.build_ecosystem("late night jazz", "Chicago", VibeContext(), seeds, StubFetcher(_catalog()))
    second = await engine.build_ecosystem("late night jazz", "Chicago", VibeContext(), seeds, StubFetcher(_catalog()))

    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_failing_categories_are_dropped(engine, telemetry):
    catalog = _catalog()
    catalog["movie"] = FetchFailure("movie", "HTTP 503")
    catalog["artist"] = RuntimeError("connection reset")

    ecosystem = await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], StubFetcher(catalog))

    assert list(ecosystem.entities) == ["place"]
    assert ecosystem.connections == []
    assert [tab.category_key for tab in ecosystem.tabs] == ["place", "artist", "movie"]
    metrics = telemetry.get_all_metrics()
    assert metrics["fetch.movie"].last_error == "HTTP 503"
    assert metrics["fetch.artist"].last_error == "connection reset"
    assert metrics["fetch.place"].successes == 1


@pytest.mark.asyncio
async def test_slow_category_times_out(engine, telemetry):
    ecosystem = await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], SlowPlaceFetcher(_catalog()))

    assert "place" not in ecosystem.entities
    assert set(ecosystem.entities) == {"artist", "movie"}
    assert "timed out" in telemetry.get_metrics("fetch.place").last_error


@pytest.mark.asyncio
async def test_mapping_candidates_are_coerced(engine):
    catalog = _catalog()
    catalog["place"] = [{"name": "Green Mill", "description": "historic jazz bar"}]

    ecosystem = await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], StubFetcher(catalog))

    place = ecosystem.entities["place"][0]
    assert place.category == "place"
    assert place.id == "place:green-mill"


@pytest.mark.asyncio
async def test_entity_from_wrong_category_fails_that_category(engine, telemetry):
    catalog = _catalog()
    catalog["place"] = [CandidateEntity(name="Misfiled Novel", category="book")]

    ecosystem = await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], StubFetcher(catalog))

    assert "place" not in ecosystem.entities
    assert "returned 'book'" in telemetry.get_metrics("fetch.place").last_error


@pytest.mark.asyncio
async def test_no_entities_yields_minimal_ecosystem(engine, seeds):
    ecosystem = await engine.build_ecosystem("jazz", "Chicago", VibeContext(), seeds, StubFetcher({}))

    assert ecosystem.is_minimal
    assert ecosystem.entities == {}
    assert ecosystem.connections == []
    assert ecosystem.ecosystem_score == 0.0
    assert len(ecosystem.insights) == 1
    assert ecosystem.insights[0].title == "Limited Data Available"
    assert ecosystem.insights[0].confidence == 0.5
    assert len(ecosystem.tabs) == 3


@pytest.mark.asyncio
async def test_narrative_is_merged(engine, telemetry):
    narrative = StubNarrative(
        NarrativeResult(
            connections=[
                {
                    "fromEntity": "jazz lounge",
                    "toEntity": "Whiplash",
                    "connectionStrength": 1.4,
                    "connectionReason": "Late-night obsession with the craft",
                    "sharedThemes": ["devotion"],
                },
                {"fromEntity": "Nobody Known", "toEntity": "Whiplash"},
            ],
            themes=[{"theme": "nocturnal devotion", "strength": 0.5, "entityTypes": ["place", "movie"]}],
            insights=[
                {
                    "type": "psychological",
                    "title": "Devotee",
                    "description": "You admire mastery earned late at night.",
                    "confidence": 0.9,
                }
            ],
            narrative_text="A city of smoky rooms and relentless rhythm.",
        )
    )

    ecosystem = await engine.build_ecosystem(
        "late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()), narrative
    )

    request = narrative.requests[0]
    assert request.vibe == "late night jazz"
    assert [category.category for category in request.categories] == ["place", "artist", "movie"]

    top = ecosystem.connections[0]
    assert top.connection_strength == pytest.approx(0.95)
    assert top.connection_reason == "Late-night obsession with the craft"
    assert top.from_entity is ecosystem.entities["place"][0]
    assert len(ecosystem.connections) == 4

    themes = {theme.theme: theme for theme in ecosystem.cultural_themes}
    assert themes["nocturnal devotion"].strength == pytest.approx(0.7)
    assert ecosystem.insights[-1].title == "Devotee"
    assert ecosystem.ecosystem_narrative == "A city of smoky rooms and relentless rhythm."
    assert telemetry.get_metrics("narrative").successes == 1


@pytest.mark.asyncio
async def test_narrative_failure_is_tolerated(engine, telemetry):
    narrative = StubNarrative(NarrativeFailure("reply is not valid JSON"))

    ecosystem = await engine.build_ecosystem(
        "late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()), narrative
    )

    assert ecosystem.ecosystem_narrative is None
    assert len(ecosystem.connections) == 3
    assert telemetry.get_metrics("narrative").last_error == "reply is not valid JSON"


@pytest.mark.asyncio
async def test_unexpected_narrative_result_is_tolerated(engine, telemetry):
    narrative = StubNarrative({"ecosystemNarrative": "raw dict"})

    ecosystem = await engine.build_ecosystem(
        "late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()), narrative
    )

    assert ecosystem.ecosystem_narrative is None
    assert telemetry.get_metrics("narrative").failures == 1


@pytest.mark.asyncio
async def test_empty_vibe_cannot_be_assembled(engine):
    with pytest.raises(EcosystemBuildError):
        await engine.build_ecosystem("", "Chicago", VibeContext(), [], StubFetcher(_catalog()))


@pytest.mark.asyncio
async def test_module_level_build_uses_default_engine(monkeypatch, telemetry):
    monkeypatch.setattr(engine_module, "get_telemetry_store", lambda: telemetry)

    ecosystem = await build_ecosystem("late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()))

    assert ecosystem.total_entities == 3
    assert telemetry.get_metrics("fetch.artist").successes == 1


class SyncFetcher:
    def __init__(self, catalog):
        self.catalog = catalog

    def fetch(self, category_key, location_hint, tags, seeds, limit):
        return self.catalog.get(category_key, [])


class TimedFetcher:
    def __init__(self, catalog, delay):
        self.catalog = catalog
        self.delay = delay
        self.starts = []
        self.ends = []

    async def fetch(self, category_key, location_hint, tags, seeds, limit):
        loop = asyncio.get_running_loop()
        self.starts.append(loop.time())
        await asyncio.sleep(self.delay)
        self.ends.append(loop.time())
        return self.catalog.get(category_key, [])


@pytest.fixture
def patient_engine(telemetry):
    return EcosystemEngine(telemetry_store=telemetry, fetch_timeout_s=2.0, narrative_timeout_s=2.0)


@pytest.mark.asyncio
async def test_plain_async_function_can_fetch(engine, telemetry):
    catalog = _catalog()

    async def fetch(category_key, location_hint, tags, seeds, limit):
        return catalog.get(category_key, [])

    ecosystem = await engine.build_ecosystem("late night jazz", "Chicago", VibeContext(), [], fetch)

    assert not ecosystem.is_minimal
    assert ecosystem.total_entities == 3
    assert telemetry.get_metrics("fetch.place").successes == 1


@pytest.mark.asyncio
async def test_sync_fetchers_run_off_the_event_loop(patient_engine):
    catalog = _catalog()

    def fetch(category_key, location_hint, tags, seeds, limit):
        return catalog.get(category_key, [])

    from_object = await patient_engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], SyncFetcher(catalog))
    from_function = await patient_engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], fetch)

    assert from_object.total_entities == 3
    assert from_function.total_entities == 3
    assert not from_object.is_minimal


@pytest.mark.asyncio
async def test_fetch_all_accepts_plain_callable(engine):
    tabs = engine.prioritizer.compute_tabs(VibeContext())

    async def fetch(category_key, location_hint, tags, seeds, limit):
        return _catalog().get(category_key, [])

    entities = await engine.fetch_all(tabs, "Chicago", [], fetch)

    assert set(entities) == {"place", "artist", "movie"}


@pytest.mark.asyncio
@pytest.mark.parametrize("collaborator", [42, "fetch", None])
async def test_uncallable_fetcher_is_rejected(engine, telemetry, collaborator):
    with pytest.raises(EcosystemContractError, match="fetch_candidates"):
        await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], collaborator)
    assert telemetry.get_all_metrics() == {}


@pytest.mark.asyncio
async def test_plain_async_function_can_narrate(engine):
    seen = []

    async def narrate(request):
        seen.append(request.vibe)
        return NarrativeResult(narrative_text="Smoke and brass.")

    ecosystem = await engine.build_ecosystem(
        "late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()), narrate
    )

    assert seen == ["late night jazz"]
    assert ecosystem.ecosystem_narrative == "Smoke and brass."


@pytest.mark.asyncio
async def test_uncallable_narrative_is_rejected(engine):
    fetcher = StubFetcher(_catalog())

    with pytest.raises(EcosystemContractError, match="generate_narrative"):
        await engine.build_ecosystem("jazz", "Chicago", VibeContext(), [], fetcher, object())
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_categories_are_fetched_concurrently(telemetry):
    engine = EcosystemEngine(telemetry_store=telemetry, fetch_timeout_s=1.0)
    fetcher = TimedFetcher(_catalog(), delay=0.1)
    loop = asyncio.get_running_loop()

    started = loop.time()
    ecosystem = await engine.build_ecosystem("late night jazz", "Chicago", VibeContext(), [], fetcher)
    elapsed = loop.time() - started

    assert ecosystem.total_entities == 3
    assert len(fetcher.starts) == 3
    assert max(fetcher.starts) < min(fetcher.ends)
    assert elapsed < 0.25


@pytest.mark.asyncio
async def test_profile_insights_are_included(engine):
    profile = CulturalProfile(summary="Drawn to smoky rooms and virtuosity.", recommendations=["Find a jam session."])

    ecosystem = await engine.build_ecosystem(
        "late night jazz", "Chicago", VibeContext(), [], StubFetcher(_catalog()), profile=profile
    )

    titles = [insight.title for insight in ecosystem.insights]
    assert titles[:3] == [
        "Cultural Diversity Profile",
        "Cultural Personality Analysis",
        "Personalized Discovery Suggestions",
    ]
    assert ecosystem.insights[1].description == "Drawn to smoky rooms and virtuosity."
