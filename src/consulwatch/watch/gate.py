"""Dependency gate — forwards only snapshots that satisfy a dependency set."""

from __future__ import annotations

from typing import TYPE_CHECKING

from consulwatch.watch._aio import closing_iter

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from consulwatch.dependencies import Dependencies
    from consulwatch.state import RegistryState


async def gate(
    snapshots: AsyncIterable[RegistryState],
    dependencies: Dependencies,
) -> AsyncIterator[RegistryState]:
    """Yield each snapshot in which every dependency has a recorded entry.

    Each snapshot is tested on its own; a satisfied snapshot does not let
    later ones through unchecked.
    """
    async with closing_iter(snapshots) as stream:
        async for snapshot in stream:
            if snapshot.satisfies_all(dependencies):
                yield snapshot
