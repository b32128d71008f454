"""Watch collector — records watch-engine events into an event log.

Every watch loop and the aggregator accept an optional collector; passing
``None`` disables telemetry without changing behavior.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe for concurrent use from multiple tasks and threads.

"""

from __future__ import annotations

import sys

from consulwatch.observability.events import (
    FetchCompleted,
    ObservationDropped,
    SnapshotPublished,
    now_ns,
)
from consulwatch.observability.log import EventLog


class WatchCollector:
    """Event sink for the watch engine.

    Args:
        log: The EventLog to store events in.
        verbose: Print a one-line summary of each fetch to stderr.

    """

    __slots__ = ("_log", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = False) -> None:
        self._log = log if log is not None else EventLog()
        self._verbose = verbose

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Watch loop events -----

    def record_fetch(
        self,
        resource: str,
        kind: str,
        operation: str,
        *,
        request_index: int,
        response_index: int | None = None,
        status: int | None = None,
        duration_ms: float = 0.0,
        seconds_until_retry: float = 0.0,
        error: str = "",
    ) -> FetchCompleted:
        """Record the outcome of one fetch cycle."""
        event = FetchCompleted(
            resource=resource,
            kind=kind,
            operation=operation,
            request_index=request_index,
            response_index=response_index,
            status=status,
            duration_ms=duration_ms,
            seconds_until_retry=seconds_until_retry,
            error=error,
            timestamp_ns=now_ns(),
        )
        self._log.append(event)
        if self._verbose:
            self._print_fetch(event)
        return event

    # ----- Aggregator events -----

    def record_snapshot(
        self,
        resource: str,
        kind: str,
        *,
        index: int,
        services: int = 0,
        keys: int = 0,
        prefixes: int = 0,
    ) -> None:
        """Record a published snapshot."""
        self._log.append(
            SnapshotPublished(
                resource=resource,
                kind=kind,
                index=index,
                services=services,
                keys=keys,
                prefixes=prefixes,
                timestamp_ns=now_ns(),
            )
        )

    def record_dropped(self, resource: str, kind: str, *, status: int) -> None:
        """Record an observation the aggregator refused."""
        self._log.append(
            ObservationDropped(
                resource=resource,
                kind=kind,
                status=status,
                timestamp_ns=now_ns(),
            )
        )

    def _print_fetch(self, e: FetchCompleted) -> None:
        """Print a one-line fetch summary to stderr."""
        if e.error:
            outcome = f"failed: {e.error}"
        else:
            outcome = f"{e.status} index {e.request_index} -> {e.response_index}"
            if e.seconds_until_retry:
                outcome += f", retry in {e.seconds_until_retry:g}s"
        print(
            f"  [{e.duration_ms:.0f}ms] {e.operation} {e.resource} {outcome}",
            file=sys.stderr,
        )
