"""Shared test fixtures for consulwatch."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any

import pytest

from consulwatch.models import KVNode, QueryResult, ServiceNode
from consulwatch.observability.collector import WatchCollector
from consulwatch.observability.log import EventLog


# ---------------------------------------------------------------------------
# Result builders
# ---------------------------------------------------------------------------


def ok(payload: Any, index: int) -> QueryResult[Any]:
    return QueryResult(payload, index, 200)


def not_found(index: int, payload: Any = None) -> QueryResult[Any]:
    return QueryResult(payload, index, 404)


def server_error(index: int, status: int = 500) -> QueryResult[Any]:
    return QueryResult(None, index, status)


def service_node(name: str = "web", node: str = "node-1", port: int = 8080) -> ServiceNode:
    return ServiceNode(
        node=node,
        address="10.0.0.1",
        service_id=f"{name}-{node}",
        service_name=name,
        service_port=port,
    )


def kv(key: str, value: str | None = "v", modify_index: int = 1) -> KVNode:
    return KVNode(
        key=key,
        value=None if value is None else value.encode(),
        modify_index=modify_index,
    )


# ---------------------------------------------------------------------------
# Fake fetches
# ---------------------------------------------------------------------------


class QueueFetch:
    """Fetch whose results are pushed by the test.

    Each call records the cursor it was given and blocks until the test puts
    a ``QueryResult`` (returned) or an exception (raised) on ``queue``.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[Any] = asyncio.Queue()
        self.calls: list[int] = []
        self.cancelled = 0

    def push(self, *items: Any) -> None:
        for item in items:
            self.queue.put_nowait(item)

    async def __call__(self, index: int) -> QueryResult[Any]:
        self.calls.append(index)
        try:
            item = await self.queue.get()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if isinstance(item, BaseException):
            raise item
        return item


class FakeRegistryClient:
    """In-memory RegistryClient with one QueueFetch per resource."""

    def __init__(self) -> None:
        self.services: defaultdict[str, QueueFetch] = defaultdict(QueueFetch)
        self.keys: defaultdict[str, QueueFetch] = defaultdict(QueueFetch)
        self.prefixes: defaultdict[str, QueueFetch] = defaultdict(QueueFetch)
        self.closed = False

    async def fetch_service(self, name: str, index: int) -> QueryResult[Any]:
        return await self.services[name](index)

    async def fetch_key(self, key: str, index: int) -> QueryResult[Any]:
        return await self.keys[key](index)

    async def fetch_key_prefix(self, prefix: str, index: int) -> QueryResult[Any]:
        return await self.prefixes[prefix](index)

    async def aclose(self) -> None:
        self.closed = True


async def take(stream: AsyncIterator[Any], n: int, timeout: float = 2.0) -> list[Any]:
    """Pull exactly ``n`` items from ``stream`` or fail after ``timeout``."""

    async def _collect() -> list[Any]:
        return [await anext(stream) for _ in range(n)]

    return await asyncio.wait_for(_collect(), timeout)


async def settle() -> None:
    """Let every ready task run until it blocks again."""
    for _ in range(10):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def collector() -> WatchCollector:
    return WatchCollector(EventLog())


@pytest.fixture
def client() -> FakeRegistryClient:
    return FakeRegistryClient()
