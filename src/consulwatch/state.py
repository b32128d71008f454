"""Immutable aggregate of everything observed from the registry.

Every update returns a new ``RegistryState``; the receiver is never modified.
Entries for different resources live in separate read-only mappings, so an
update only copies the mapping that holds the changed resource.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from consulwatch.dependencies import Dependencies
from consulwatch.models import KVNode, ServiceNode


class Marker(enum.Enum):
    """Recorded markers that stand in for a payload."""

    ABSENT = "absent"
    MISSING_OR_EMPTY = "missing_or_empty"

    def __repr__(self) -> str:
        return self.name


# Key confirmed not to exist.
ABSENT = Marker.ABSENT
# Key prefix confirmed to have no keys below it.
MISSING_OR_EMPTY = Marker.MISSING_OR_EMPTY


type KeyEntry = KVNode | Marker
type PrefixEntry = tuple[KVNode, ...] | Marker


def _frozen(mapping: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


def _with(mapping: Mapping[str, Any], name: str, entry: Any) -> Mapping[str, Any]:
    updated = dict(mapping)
    updated[name] = entry
    return MappingProxyType(updated)


@dataclass(frozen=True, slots=True)
class RegistryState:
    """Snapshot of the last accepted payload of each observed resource.

    A resource that has never been observed has no entry at all; this is
    distinct from an absent key (``ABSENT``) and from a prefix with no keys
    (``MISSING_OR_EMPTY``).

    Attributes:
        services: Service name -> instances, in registry order (may be empty).
        keys: Key -> ``KVNode`` or ``ABSENT``.
        prefixes: Key prefix -> nodes sorted by key, or ``MISSING_OR_EMPTY``.

    """

    services: Mapping[str, tuple[ServiceNode, ...]] = field(default_factory=_frozen)
    keys: Mapping[str, KeyEntry] = field(default_factory=_frozen)
    prefixes: Mapping[str, PrefixEntry] = field(default_factory=_frozen)

    # ----- Updates -----

    def update_service(self, name: str, nodes: Iterable[ServiceNode]) -> RegistryState:
        """Replace the instance list of a service wholesale."""
        return replace(self, services=_with(self.services, name, tuple(nodes)))

    def update_kv_node(self, key: str, node: KVNode | None) -> RegistryState:
        """Replace the value of a key; ``None`` records the key as absent."""
        return replace(self, keys=_with(self.keys, key, ABSENT if node is None else node))

    def mark_key_absent(self, key: str) -> RegistryState:
        return self.update_kv_node(key, None)

    def update_kv_nodes(self, prefix: str, nodes: Iterable[KVNode] | None) -> RegistryState:
        """Replace every node recorded under a prefix.

        An empty or ``None`` node set records the missing-or-empty tombstone.
        """
        ordered = tuple(sorted(nodes or (), key=lambda n: n.key))
        if not ordered:
            return self.mark_prefix_missing_or_empty(prefix)
        return replace(self, prefixes=_with(self.prefixes, prefix, ordered))

    def mark_prefix_missing_or_empty(self, prefix: str) -> RegistryState:
        return replace(self, prefixes=_with(self.prefixes, prefix, MISSING_OR_EMPTY))

    # ----- Queries -----

    def get_service(self, name: str) -> tuple[ServiceNode, ...] | None:
        """Instances of a service, or ``None`` when never observed."""
        return self.services.get(name)

    def get_kv_node(self, key: str) -> KVNode | None:
        """Look up a key among exact keys first, then under watched prefixes."""
        entry = self.keys.get(key)
        if isinstance(entry, KVNode):
            return entry
        if entry is ABSENT:
            return None
        for nodes in self.prefixes.values():
            if nodes is MISSING_OR_EMPTY:
                continue
            for node in nodes:
                if node.key == key:
                    return node
        return None

    def get_value(self, key: str) -> str | None:
        """Text value of a key, or ``None`` when absent or unknown."""
        node = self.get_kv_node(key)
        return node.text if node is not None else None

    def get_children(self, prefix: str) -> tuple[KVNode, ...]:
        """Nodes recorded under a watched prefix (empty when none or unknown)."""
        entry = self.prefixes.get(prefix)
        if entry is None or entry is MISSING_OR_EMPTY:
            return ()
        return entry

    def is_key_absent(self, key: str) -> bool:
        return self.keys.get(key) is ABSENT

    def is_prefix_missing_or_empty(self, prefix: str) -> bool:
        return self.prefixes.get(prefix) is MISSING_OR_EMPTY

    # ----- Dependency checks -----

    def contains_service(self, name: str) -> bool:
        return name in self.services

    def contains_key(self, key: str) -> bool:
        return key in self.keys

    def contains_key_prefix(self, prefix: str) -> bool:
        return prefix in self.prefixes

    def satisfies_all(self, dependencies: Dependencies) -> bool:
        """Whether every dependency has a recorded entry of any kind."""
        return (
            all(self.contains_service(s) for s in dependencies.services)
            and all(self.contains_key(k) for k in dependencies.keys)
            and all(self.contains_key_prefix(p) for p in dependencies.key_prefixes)
        )

    def missing(self, dependencies: Dependencies) -> Dependencies:
        """The subset of ``dependencies`` that has not been observed yet."""
        return Dependencies.of(
            services=(s for s in dependencies.services if not self.contains_service(s)),
            keys=(k for k in dependencies.keys if not self.contains_key(k)),
            key_prefixes=(
                p for p in dependencies.key_prefixes if not self.contains_key_prefix(p)
            ),
        )

    # ----- Serialization -----

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view of the snapshot."""
        return {
            "services": {
                name: [_service_dict(n) for n in nodes]
                for name, nodes in sorted(self.services.items())
            },
            "keys": {
                key: None if entry is ABSENT else entry.text  # type: ignore[union-attr]
                for key, entry in sorted(self.keys.items())
            },
            "prefixes": {
                prefix: None if entry is MISSING_OR_EMPTY
                else {n.key: n.text for n in entry}  # type: ignore[union-attr]
                for prefix, entry in sorted(self.prefixes.items())
            },
        }


def _service_dict(node: ServiceNode) -> dict[str, Any]:
    return {
        "node": node.node,
        "address": node.address,
        "id": node.service_id,
        "service_address": node.service_address,
        "port": node.service_port,
        "tags": list(node.tags),
    }
