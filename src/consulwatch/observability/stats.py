"""Fetch statistics — latency percentiles and status counts from the event log."""

from __future__ import annotations

from typing import TYPE_CHECKING

from consulwatch.observability.events import FetchCompleted

if TYPE_CHECKING:
    from consulwatch.observability.log import EventLog


def compute_fetch_stats(
    log: EventLog,
    *,
    limit: int = 1000,
) -> dict:
    """Compute aggregate statistics from recent ``FetchCompleted`` events.

    Returns a dict with p50, p95, p99 fetch durations, counts per status
    (``"error"`` for transport failures) and counts per resource.

    """
    fetches = log.query(event_type=FetchCompleted, limit=limit)
    if not fetches:
        return {"count": 0}

    durations = sorted(f.duration_ms for f in fetches)
    count = len(durations)

    def percentile(data: list[float], pct: float) -> float:
        idx = int(len(data) * pct / 100)
        return data[min(idx, len(data) - 1)]

    by_status: dict[str, int] = {}
    by_resource: dict[str, int] = {}
    for f in fetches:
        status = "error" if f.error else str(f.status)
        by_status[status] = by_status.get(status, 0) + 1
        by_resource[f.resource] = by_resource.get(f.resource, 0) + 1

    return {
        "count": count,
        "duration_ms": {
            "p50": round(percentile(durations, 50), 1),
            "p95": round(percentile(durations, 95), 1),
            "p99": round(percentile(durations, 99), 1),
            "min": round(durations[0], 1),
            "max": round(durations[-1], 1),
        },
        "by_status": by_status,
        "by_resource": by_resource,
    }
