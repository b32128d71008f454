"""Watch-engine observability — structured events for every fetch cycle.

Records events from:
- **Watch loops**: one ``FetchCompleted`` per fetch, including server errors
  and transport failures
- **Aggregator**: ``SnapshotPublished`` and ``ObservationDropped``

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from many watch tasks.

Quick Start:
    >>> from consulwatch.observability import WatchCollector, EventLog
    >>> log = EventLog()
    >>> collector = WatchCollector(log)
    >>> # Pass collector to ObservableRegistry(client, collector=collector)

"""

from consulwatch.observability.collector import WatchCollector
from consulwatch.observability.events import (
    FetchCompleted,
    ObservationDropped,
    SnapshotPublished,
    WatchEvent,
    now_ns,
)
from consulwatch.observability.log import EventLog
from consulwatch.observability.stats import compute_fetch_stats

__all__ = [
    "EventLog",
    "FetchCompleted",
    "ObservationDropped",
    "SnapshotPublished",
    "WatchCollector",
    "WatchEvent",
    "compute_fetch_stats",
    "now_ns",
]
