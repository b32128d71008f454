"""Dependency sets — the resources an application needs before it starts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Dependencies:
    """Service names, exact keys and key prefixes an application requires.

    The aggregate state satisfies a dependency set once every listed resource
    has a recorded entry, whether found, absent or a missing-or-empty tombstone.

    Attributes:
        services: Service names to watch.
        keys: Exact keys to watch.
        key_prefixes: Key prefixes to watch recursively.

    """

    services: frozenset[str] = frozenset()
    keys: frozenset[str] = frozenset()
    key_prefixes: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        services: Iterable[str] = (),
        keys: Iterable[str] = (),
        key_prefixes: Iterable[str] = (),
    ) -> Dependencies:
        """Build a dependency set from any iterables of names."""
        return cls(
            services=frozenset(services),
            keys=frozenset(keys),
            key_prefixes=frozenset(key_prefixes),
        )

    def __or__(self, other: Dependencies) -> Dependencies:
        if not isinstance(other, Dependencies):
            return NotImplemented
        return Dependencies(
            services=self.services | other.services,
            keys=self.keys | other.keys,
            key_prefixes=self.key_prefixes | other.key_prefixes,
        )

    def __len__(self) -> int:
        return len(self.services) + len(self.keys) + len(self.key_prefixes)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0
