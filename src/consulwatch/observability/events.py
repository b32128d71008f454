"""Structured diagnostic events for the watch engine.

One ``FetchCompleted`` is produced for every fetch cycle, whatever its
outcome.  The aggregator adds ``SnapshotPublished`` and ``ObservationDropped``.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Watch loop events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FetchCompleted:
    """A blocking fetch returned or failed.

    Attributes:
        resource: Service name, key, or key prefix.
        kind: Resource kind (``service``, ``key``, ``prefix``).
        operation: Fetch operation name (``GetService``, ``GetKey``, ``GetKeys``).
        request_index: Cursor the fetch was issued with.
        response_index: Cursor returned by the registry (``None`` on failure).
        status: HTTP-style status code (``None`` on failure).
        duration_ms: Wall time spent in the fetch.
        seconds_until_retry: Backoff applied after a server error, else 0.
        error: Failure description for transport failures, else empty.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    resource: str
    kind: str
    operation: str
    request_index: int
    response_index: int | None
    status: int | None
    duration_ms: float
    seconds_until_retry: float
    error: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Aggregator events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SnapshotPublished:
    """An observation was applied and a new snapshot published.

    Attributes:
        resource: Resource whose entry changed.
        kind: Resource kind.
        index: Cursor of the applied observation.
        services: Number of services recorded in the new snapshot.
        keys: Number of keys recorded in the new snapshot.
        prefixes: Number of key prefixes recorded in the new snapshot.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    resource: str
    kind: str
    index: int
    services: int
    keys: int
    prefixes: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ObservationDropped:
    """The aggregator refused an observation with a non-accepted status."""

    resource: str
    kind: str
    status: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type WatchEvent = FetchCompleted | SnapshotPublished | ObservationDropped


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
