"""Telemetry collection for external collaborators (candidate fetches and narrative generation)."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CollaboratorMetrics:
    """Aggregate metrics for a single collaborator."""

    collaborator: str
    total_calls: int = 0
    successes: int = 0
    failures: int = 0
    total_latency_ms: float = 0.0
    last_error: Optional[str] = None
    last_updated: Optional[str] = None

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.successes / self.total_calls

    @property
    def average_latency_ms(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.total_latency_ms / self.total_calls


class TelemetryStore:
    """Keep collaborator telemetry in process memory."""

    def __init__(self) -> None:
        self._metrics: Dict[str, CollaboratorMetrics] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, collaborator: str) -> CollaboratorMetrics:
        metrics = self._metrics.get(collaborator)
        if metrics is None:
            metrics = CollaboratorMetrics(collaborator=collaborator)
            self._metrics[collaborator] = metrics
        return metrics

    def record_success(self, collaborator: str, latency_ms: float) -> CollaboratorMetrics:
        with self._lock:
            metrics = self._get_or_create(collaborator)
            metrics.total_calls += 1
            metrics.successes += 1
            metrics.total_latency_ms += latency_ms
            metrics.last_error = None
            metrics.last_updated = datetime.now(timezone.utc).isoformat()
            return metrics

    def record_failure(self, collaborator: str, latency_ms: float, error: str) -> CollaboratorMetrics:
        with self._lock:
            metrics = self._get_or_create(collaborator)
            metrics.total_calls += 1
            metrics.failures += 1
            metrics.total_latency_ms += latency_ms
            metrics.last_error = error
            metrics.last_updated = datetime.now(timezone.utc).isoformat()
        logger.debug("Recorded failure for %s: %s", collaborator, error)
        return metrics

    def get_metrics(self, collaborator: str) -> CollaboratorMetrics:
        with self._lock:
            return self._get_or_create(collaborator)

    def get_all_metrics(self) -> Dict[str, CollaboratorMetrics]:
        with self._lock:
            return dict(self._metrics)

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


_default_store: Optional[TelemetryStore] = None


def get_telemetry_store() -> TelemetryStore:
    """Return global telemetry store singleton."""

    global _default_store
    if _default_store is None:
        _default_store = TelemetryStore()
    return _default_store


__all__ = [
    "CollaboratorMetrics",
    "TelemetryStore",
    "get_telemetry_store",
]
