"""Async iteration helpers shared by the watch stages."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from contextlib import asynccontextmanager


@asynccontextmanager
async def closing_iter[T](source: AsyncIterable[T]) -> AsyncIterator[AsyncIterator[T]]:
    """Iterate ``source`` and close it on exit, even when abandoned mid-stream.

    Nested async generators are not closed when their consumer is; without
    this an upstream watch loop would keep fetching until garbage collected.
    """
    iterator = aiter(source)
    try:
        yield iterator
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
