"""State aggregator — folds observations into immutable registry snapshots.

The aggregator owns the single ``RegistryState`` slot.  Reading the current
state, computing its successor and publishing it happen under one lock, so
snapshots form a total order no matter how many watch loops feed it.

Thread Safety:
    ``apply`` is guarded by a ``threading.RLock`` and may be called from
    several threads; listeners are invoked inside the lock, in order, and
    may call back into the aggregator.

"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from consulwatch.state import RegistryState
from consulwatch.watch._aio import closing_iter

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable

    from consulwatch.models import Observation
    from consulwatch.observability.collector import WatchCollector


def apply_observation(state: RegistryState, observation: Observation) -> RegistryState | None:
    """Successor of ``state`` after ``observation``, or ``None`` if it is not applicable.

    Only found and not-found statuses are applied.  A service entry is
    replaced wholesale, a key becomes ``ABSENT`` when not found, and an
    empty or missing prefix becomes ``MISSING_OR_EMPTY``.
    """
    if not observation.accepted:
        return None

    name = observation.resource
    if observation.kind == "service":
        return state.update_service(name, observation.payload or ())
    if observation.kind == "key":
        if observation.not_found or observation.payload is None:
            return state.mark_key_absent(name)
        return state.update_kv_node(name, observation.payload)
    if observation.kind == "prefix":
        nodes = observation.payload if observation.found else None
        return state.update_kv_nodes(name, nodes)
    return None


class StateAggregator:
    """Serializes observations into a sequence of snapshots.

    Args:
        initial: Starting state (empty by default).
        collector: Optional sink for snapshot and drop events.

    """

    __slots__ = ("_collector", "_listeners", "_lock", "_state")

    def __init__(
        self,
        initial: RegistryState | None = None,
        *,
        collector: WatchCollector | None = None,
    ) -> None:
        self._state = initial if initial is not None else RegistryState()
        self._collector = collector
        self._listeners: list[Callable[[RegistryState], None]] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> RegistryState:
        """The most recently published snapshot."""
        with self._lock:
            return self._state

    def subscribe(self, listener: Callable[[RegistryState], None]) -> None:
        """Register a callback receiving every published snapshot."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[RegistryState], None]) -> None:
        """Remove a callback (no-op if it was never registered)."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def apply(self, observation: Observation) -> RegistryState | None:
        """Apply one observation and publish the resulting snapshot.

        Returns the new snapshot, or ``None`` when the observation was
        dropped (non-accepted status or unknown kind).  The snapshot is
        committed and recorded before listeners run; every listener is
        called even if an earlier one raises, and the first listener error
        is then re-raised.

        """
        collector = self._collector
        errors: list[Exception] = []
        with self._lock:
            state = apply_observation(self._state, observation)
            if state is None:
                if collector is not None:
                    collector.record_dropped(
                        observation.resource, observation.kind, status=observation.status
                    )
                return None

            self._state = state
            if collector is not None:
                collector.record_snapshot(
                    observation.resource,
                    observation.kind,
                    index=observation.index,
                    services=len(state.services),
                    keys=len(state.keys),
                    prefixes=len(state.prefixes),
                )
            # Reentrant lock: listeners may read state or (un)subscribe
            for listener in tuple(self._listeners):
                try:
                    listener(state)
                except Exception as exc:
                    errors.append(exc)

        if errors:
            raise errors[0]
        return state

    async def snapshots(
        self, observations: AsyncIterable[Observation]
    ) -> AsyncIterator[RegistryState]:
        """Apply ``observations`` in arrival order, yielding each new snapshot."""
        async with closing_iter(observations) as stream:
            async for observation in stream:
                state = self.apply(observation)
                if state is not None:
                    yield state
