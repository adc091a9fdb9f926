"""Stats endpoints for collaborator telemetry."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter

from tastegraph.config.categories import CATEGORY_TABLE_VERSION
from tastegraph.services.telemetry import get_telemetry_store

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/collaborators")
async def get_collaborator_metrics() -> Dict[str, Any]:
    """Expose fetch and narrative telemetry for dashboards and tooling."""

    telemetry_store = get_telemetry_store()
    metrics_map = telemetry_store.get_all_metrics()

    collaborators: List[Dict[str, Any]] = []
    for name in sorted(metrics_map):
        metrics = metrics_map[name]
        collaborators.append({
            "collaborator": name,
            "total_calls": metrics.total_calls,
            "successes": metrics.successes,
            "failures": metrics.failures,
            "success_rate": metrics.success_rate,
            "average_latency_ms": metrics.average_latency_ms,
            "last_error": metrics.last_error,
            "last_updated": metrics.last_updated,
        })

    return {
        "collaborators": collaborators,
        "category_table_version": CATEGORY_TABLE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
