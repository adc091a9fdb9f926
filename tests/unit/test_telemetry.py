import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from tastegraph.services.telemetry import TelemetryStore, get_telemetry_store  # noqa: E402


def test_record_success_updates_metrics():
    store = TelemetryStore()
    metrics = store.record_success("fetch.place", latency_ms=100.0)

    assert metrics.total_calls == 1
    assert metrics.successes == 1
    assert metrics.failures == 0
    assert metrics.average_latency_ms == 100.0
    assert metrics.success_rate == 1.0
    assert metrics.last_updated is not None


def test_record_failure_tracks_error():
    store = TelemetryStore()
    store.record_failure("narrative", latency_ms=80.0, error="timeout")
    metrics = store.get_metrics("narrative")

    assert metrics.failures == 1
    assert metrics.last_error == "timeout"
    assert metrics.total_calls == 1
    assert metrics.success_rate == 0.0


def test_success_clears_last_error():
    store = TelemetryStore()
    store.record_failure("fetch.book", latency_ms=50.0, error="HTTP 502")
    metrics = store.record_success("fetch.book", latency_ms=70.0)

    assert metrics.last_error is None
    assert metrics.average_latency_ms == 60.0
    assert metrics.success_rate == 0.5


def test_get_all_metrics_returns_snapshot():
    store = TelemetryStore()
    store.record_success("fetch.artist", latency_ms=90.0)
    store.record_failure("fetch.artist", latency_ms=120.0, error="rate limit")

    metrics_map = store.get_all_metrics()
    metrics = metrics_map["fetch.artist"]
    assert metrics.total_calls == 2
    assert metrics.successes == 1
    assert metrics.failures == 1

    store.reset()
    assert store.get_all_metrics() == {}
    assert "fetch.artist" in metrics_map


def test_unknown_collaborator_starts_empty():
    metrics = TelemetryStore().get_metrics("fetch.podcast")

    assert metrics.total_calls == 0
    assert metrics.average_latency_ms == 0.0


def test_global_store_is_shared():
    assert get_telemetry_store() is get_telemetry_store()
