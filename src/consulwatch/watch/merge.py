"""Fan-in merge — interleaves many observation streams into one.

Each source runs in its own task and pushes into a shared queue, so a slow
long-poll never holds back the others.  The queue holds one item: a source
waits for the consumer instead of buffering ahead of it.  Per-source order is preserved;
across sources, items appear in completion order.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Literal

from consulwatch.watch._aio import closing_iter

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

type _Message = tuple[Literal["item", "error", "done"], Any]


async def _pump[T](source: AsyncIterable[T], queue: asyncio.Queue[_Message]) -> None:
    """Forward every item of ``source`` to ``queue``, then report how it ended."""
    try:
        async with closing_iter(source) as items:
            async for item in items:
                await queue.put(("item", item))
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        await queue.put(("error", exc))
    else:
        await queue.put(("done", None))


async def merge[T](*sources: AsyncIterable[T]) -> AsyncIterator[T]:
    """Merge ``sources`` into a single stream.

    Sources start when iteration starts.  The merged stream ends once every
    source is exhausted.  The first source to fail cancels all others and its
    exception is raised to the consumer.  Closing the merged stream cancels
    every source.

    """
    if not sources:
        return

    queue: asyncio.Queue[_Message] = asyncio.Queue(maxsize=1)
    tasks = [asyncio.create_task(_pump(source, queue)) for source in sources]
    remaining = len(tasks)
    try:
        while remaining:
            tag, value = await queue.get()
            if tag == "item":
                yield value
            elif tag == "error":
                raise value
            else:
                remaining -= 1
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
