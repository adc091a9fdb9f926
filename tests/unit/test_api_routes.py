import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from tastegraph.api.routes import ecosystem as ecosystem_module  # noqa: E402
from tastegraph.api.routes import stats as stats_module  # noqa: E402
from tastegraph.app_factory import create_app  # noqa: E402
from tastegraph.models.entities import CandidateEntity  # noqa: E402
from tastegraph.services.ecosystem_engine import EcosystemEngine  # noqa: E402
from tastegraph.services.errors import EcosystemBuildError  # noqa: E402
from tastegraph.services.telemetry import CollaboratorMetrics, TelemetryStore  # noqa: E402


class StubFetcher:
    async def fetch(self, category_key, location_hint, tags, seeds, limit):  # pragma: no cover - simple stub
        catalog = {
            "place": [CandidateEntity(name="Jazz Lounge", category="place", description="intimate jazz club")],
            "artist": [CandidateEntity(name="Jazz Quartet", category="artist", description="live jazz")],
        }
        return catalog.get(category_key, [])


class FailingEngine:
    async def build_ecosystem(self, **kwargs):  # pragma: no cover - simple stub
        raise EcosystemBuildError("core vibe missing")


class StubTelemetry:
    def __init__(self):
        self._metrics = {
            "narrative": CollaboratorMetrics(
                collaborator="narrative",
                total_calls=2,
                successes=1,
                failures=1,
                total_latency_ms=900.0,
                last_error="timed out after 30.0s",
                last_updated="2025-10-07T16:55:00Z",
            ),
            "fetch.place": CollaboratorMetrics(
                collaborator="fetch.place",
                total_calls=5,
                successes=4,
                failures=1,
                total_latency_ms=450.0,
                last_error="HTTP 503",
                last_updated="2025-10-07T16:55:00Z",
            ),
        }

    def get_all_metrics(self):  # pragma: no cover - simple stub
        return dict(self._metrics)


@pytest.fixture
def client(monkeypatch):
    app = FastAPI()
    app.include_router(ecosystem_module.router)
    app.include_router(stats_module.router)

    monkeypatch.setattr(ecosystem_module, "_engine", EcosystemEngine(telemetry_store=TelemetryStore()))
    monkeypatch.setattr(ecosystem_module, "get_candidate_fetcher", lambda: StubFetcher())
    monkeypatch.setattr(ecosystem_module, "get_narrative_generator", lambda: None)
    monkeypatch.setattr(stats_module, "get_telemetry_store", lambda: StubTelemetry())

    return TestClient(app)


def test_context_endpoint_detects_indoor_morning(client):
    response = client.post("/api/context", json={"vibe": "cozy cafe morning with a good book"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["is_indoor"] is True
    assert payload["time_of_day"] == "morning"
    assert payload["season"] == "fall"
    assert payload["entity_relevance"]["book"] == pytest.approx(0.7)


def test_tabs_endpoint_ranks_categories(client):
    response = client.post("/api/tabs", json={"is_indoor": True, "entity_relevance": {"book": 0.9, "place": 0.5}})

    assert response.status_code == 200
    tabs = response.json()
    assert tabs[0]["category_key"] == "place"
    assert tabs[0]["is_active"] is True
    assert sum(tab["is_active"] for tab in tabs) == 1
    assert "destination" not in [tab["category_key"] for tab in tabs]


def test_tabs_endpoint_rejects_out_of_range_relevance(client):
    response = client.post("/api/tabs", json={"entity_relevance": {"book": 1.5}})

    assert response.status_code == 422


def test_ecosystem_endpoint_builds_ecosystem(client):
    response = client.post(
        "/api/ecosystem",
        json={"vibe": "late night jazz", "location_hint": "Chicago", "context": {}},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["core_vibe"] == "late night jazz"
    assert set(payload["entities"]) == {"place", "artist"}
    assert payload["is_minimal"] is False
    connection = payload["connections"][0]
    assert connection["from_entity"]["name"] == "Jazz Lounge"
    assert connection["to_entity"]["name"] == "Jazz Quartet"
    assert 0.0 <= payload["ecosystem_score"] <= 1.0
    assert payload["insights"][0]["title"] == "Cultural Diversity Profile"


def test_ecosystem_endpoint_rejects_blank_vibe(client):
    response = client.post("/api/ecosystem", json={"vibe": ""})

    assert response.status_code == 422


def test_ecosystem_build_error_maps_to_422(client, monkeypatch):
    monkeypatch.setattr(ecosystem_module, "get_ecosystem_engine", lambda: FailingEngine())

    response = client.post("/api/ecosystem", json={"vibe": "anything"})

    assert response.status_code == 422
    assert response.json()["detail"] == "core vibe missing"


def test_collaborator_metrics(client):
    response = client.get("/api/stats/collaborators")

    assert response.status_code == 200
    payload = response.json()
    assert [entry["collaborator"] for entry in payload["collaborators"]] == ["fetch.place", "narrative"]
    fetch = payload["collaborators"][0]
    assert fetch["total_calls"] == 5
    assert fetch["success_rate"] == pytest.approx(0.8)
    assert fetch["average_latency_ms"] == pytest.approx(90.0)
    assert payload["category_table_version"]


def test_app_serves_health_and_index():
    client = TestClient(create_app())

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    index = client.get("/").json()
    assert index["endpoints"]["ecosystem"] == "/api/ecosystem"
    assert client.get("/api/stats/collaborators").status_code == 200


class ClosableCollaborator:
    def __init__(self):
        self.closed = 0

    async def aclose(self):
        self.closed += 1


def test_shutdown_closes_collaborator_clients(monkeypatch):
    fetcher = ClosableCollaborator()
    generator = ClosableCollaborator()
    monkeypatch.setattr(ecosystem_module, "_candidate_fetcher", fetcher)
    monkeypatch.setattr(ecosystem_module, "_narrative_generator", generator)

    with TestClient(create_app()) as client:
        assert client.get("/health").status_code == 200
        assert fetcher.closed == 0

    assert fetcher.closed == 1
    assert generator.closed == 1
    assert ecosystem_module._candidate_fetcher is None
    assert ecosystem_module._narrative_generator is None


def test_ecosystem_endpoint_accepts_profile(client):
    response = client.post(
        "/api/ecosystem",
        json={
            "vibe": "late night jazz",
            "profile": {"summary": "A restless listener.", "primary_themes": ["improvisation"]},
        },
    )

    assert response.status_code == 200
    insight = response.json()["insights"][1]
    assert insight["title"] == "Cultural Personality Analysis"
    assert insight["supporting_entities"] == ["improvisation"]
