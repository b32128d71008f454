"""Observable registry — the public entry point to the watch engine.

Wraps a ``RegistryClient`` and turns its blocking fetches into async
streams::

    async with ObservableRegistry.from_config(config) as registry:
        deps = Dependencies.of(services=["web"], keys=["config/flag"])
        async for state in registry.observe_dependencies(deps):
            ...

Streams are lazy: nothing is fetched until iteration starts, and leaving
the ``async for`` stops every underlying watch loop.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from consulwatch.watch.aggregator import StateAggregator
from consulwatch.watch.gate import gate
from consulwatch.watch.loop import WatchLoop
from consulwatch.watch.merge import merge

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable
    from types import TracebackType

    import httpx

    from consulwatch._types import FetchFunc, ResourceKind
    from consulwatch.client import RegistryClient
    from consulwatch.config import WatchConfig
    from consulwatch.dependencies import Dependencies
    from consulwatch.models import Observation
    from consulwatch.observability.collector import WatchCollector
    from consulwatch.state import RegistryState


class ObservableRegistry:
    """Streams of observations and dependency-gated snapshots.

    Args:
        client: Source of blocking fetches.
        retry_delay: Seconds each watch loop waits after a 5xx.
        collector: Optional telemetry sink shared by all loops and aggregators.
        owns_client: Close ``client`` in ``aclose()``.

    """

    def __init__(
        self,
        client: RegistryClient,
        *,
        retry_delay: float | None = None,
        collector: WatchCollector | None = None,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._retry_delay = retry_delay
        self._collector = collector
        self._owns_client = owns_client

    @classmethod
    def from_config(
        cls,
        config: WatchConfig,
        *,
        collector: WatchCollector | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ObservableRegistry:
        """Build a registry backed by an ``HttpRegistryClient`` it owns."""
        from consulwatch.client import HttpRegistryClient

        return cls(
            HttpRegistryClient(config, transport=transport),
            retry_delay=config.retry_delay,
            collector=collector,
            owns_client=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ObservableRegistry:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ----- Single resources -----

    def watch_service(self, name: str) -> WatchLoop:
        return self._loop(partial(self._client.fetch_service, name), name, "service")

    def watch_key(self, key: str) -> WatchLoop:
        return self._loop(partial(self._client.fetch_key, key), key, "key")

    def watch_key_prefix(self, prefix: str) -> WatchLoop:
        return self._loop(partial(self._client.fetch_key_prefix, prefix), prefix, "prefix")

    def observe_service(self, name: str) -> AsyncIterator[Observation]:
        return self.watch_service(name).observations()

    def observe_key(self, key: str) -> AsyncIterator[Observation]:
        return self.watch_key(key).observations()

    def observe_key_prefix(self, prefix: str) -> AsyncIterator[Observation]:
        return self.watch_key_prefix(prefix).observations()

    # ----- Merged streams -----

    def observe_services(self, names: Iterable[str]) -> AsyncIterator[Observation]:
        return merge(*(self.observe_service(n) for n in names))

    def observe_keys(self, keys: Iterable[str]) -> AsyncIterator[Observation]:
        return merge(*(self.observe_key(k) for k in keys))

    def observe_key_prefixes(self, prefixes: Iterable[str]) -> AsyncIterator[Observation]:
        return merge(*(self.observe_key_prefix(p) for p in prefixes))

    # ----- Aggregated state -----

    def observe_dependencies(
        self,
        dependencies: Dependencies,
        *,
        aggregator: StateAggregator | None = None,
    ) -> AsyncIterator[RegistryState]:
        """Snapshots in which every dependency has been observed.

        All watched resources share one aggregator; a fatal failure on any of
        them ends the whole stream with ``WatchError``.

        Args:
            dependencies: Resources to watch and require.
            aggregator: Aggregator to fold into (fresh and empty by default).

        """
        streams = [
            *(self.observe_service(s) for s in sorted(dependencies.services)),
            *(self.observe_key(k) for k in sorted(dependencies.keys)),
            *(self.observe_key_prefix(p) for p in sorted(dependencies.key_prefixes)),
        ]
        if aggregator is None:
            aggregator = StateAggregator(collector=self._collector)
        return gate(aggregator.snapshots(merge(*streams)), dependencies)

    def _loop(self, fetch: FetchFunc, resource: str, kind: ResourceKind) -> WatchLoop:
        return WatchLoop(
            fetch,
            resource,
            kind,
            retry_delay=self._retry_delay,
            collector=self._collector,
        )
