"""Watch loop — turns one blocking-query resource into an observation stream.

Each loop owns a single cursor and keeps exactly one fetch in flight:

- 2xx / 404 / other statuses: advance the cursor, emit an ``Observation``
- 5xx: keep the cursor, emit nothing, optionally sleep ``retry_delay``
- fetch raises: stop and raise ``WatchError`` with the resource and cursor

Cancelling the consuming task (or closing the iterator) cancels the
in-flight fetch; no further fetch is issued.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from consulwatch._errors import WatchError
from consulwatch.models import OPERATIONS, Observation, is_server_error

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from consulwatch._types import FetchFunc, ResourceKind
    from consulwatch.observability.collector import WatchCollector


def next_index(current: int, returned: int) -> int:
    """Cursor to use for the next fetch.

    A cursor that moves backwards means the registry's index was reset
    (e.g. a snapshot restore); restart from a fresh read.
    """
    if returned < current:
        return 0
    return returned


class WatchLoop:
    """Self-renewing long-poll over a single resource.

    Iterating the loop starts fetching; every iteration is independent, so
    iterate a given instance from one consumer only.

    Args:
        fetch: Awaitable fetch taking the cursor and returning a ``QueryResult``.
        resource: Service name, key, or key prefix (used in diagnostics).
        kind: Resource kind.
        retry_delay: Seconds to wait after a 5xx before retrying.
        collector: Optional sink for one ``FetchCompleted`` per cycle.

    """

    __slots__ = ("_collector", "_fetch", "_index", "_retry_delay", "kind", "resource")

    def __init__(
        self,
        fetch: FetchFunc,
        resource: str,
        kind: ResourceKind,
        *,
        retry_delay: float | None = None,
        collector: WatchCollector | None = None,
    ) -> None:
        self._fetch = fetch
        self.resource = resource
        self.kind = kind
        self._retry_delay = retry_delay
        self._collector = collector
        self._index = 0

    @property
    def index(self) -> int:
        """Cursor the next fetch will be issued with."""
        return self._index

    def __aiter__(self) -> AsyncIterator[Observation]:
        return self.observations()

    async def observations(self) -> AsyncIterator[Observation]:
        """Fetch forever, yielding every non-server-error outcome."""
        operation = OPERATIONS[self.kind]
        collector = self._collector
        self._index = 0

        while True:
            index = self._index
            t0 = time.perf_counter()
            try:
                result = await self._fetch(index)
            except Exception as exc:
                if collector is not None:
                    collector.record_fetch(
                        self.resource, self.kind, operation,
                        request_index=index,
                        duration_ms=(time.perf_counter() - t0) * 1000,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                raise WatchError(self.resource, self.kind, index, str(exc)) from exc

            duration_ms = (time.perf_counter() - t0) * 1000

            if is_server_error(result.status):
                delay = self._retry_delay or 0.0
                if collector is not None:
                    collector.record_fetch(
                        self.resource, self.kind, operation,
                        request_index=index,
                        response_index=result.last_index,
                        status=result.status,
                        duration_ms=duration_ms,
                        seconds_until_retry=delay,
                    )
                # Cursor unchanged: the retry repeats the same query
                if delay > 0:
                    await asyncio.sleep(delay)
                continue

            if collector is not None:
                collector.record_fetch(
                    self.resource, self.kind, operation,
                    request_index=index,
                    response_index=result.last_index,
                    status=result.status,
                    duration_ms=duration_ms,
                )

            self._index = next_index(index, result.last_index)
            yield Observation.from_result(self.resource, self.kind, result)


def long_poll(
    fetch: FetchFunc,
    resource: str,
    kind: ResourceKind,
    *,
    retry_delay: float | None = None,
    collector: WatchCollector | None = None,
) -> AsyncIterator[Observation]:
    """Observation stream for one resource (a fresh ``WatchLoop``, iterated)."""
    loop = WatchLoop(fetch, resource, kind, retry_delay=retry_delay, collector=collector)
    return loop.observations()
