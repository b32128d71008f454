"""Registry records and per-fetch observations.

All types are frozen dataclasses, safe to share between tasks and threads
without synchronization.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from consulwatch._types import ResourceKind

# Operation names reported in fetch telemetry, per resource kind.
OPERATIONS: dict[str, str] = {
    "service": "GetService",
    "key": "GetKey",
    "prefix": "GetKeys",
}


@dataclass(frozen=True, slots=True)
class ServiceNode:
    """One instance of a service as listed by the registry catalog.

    Attributes:
        node: Name of the node hosting the instance.
        address: Address of the node.
        service_id: Unique id of this service instance.
        service_name: Logical service name.
        service_address: Address the service listens on (may be empty).
        service_port: Port the service listens on.
        datacenter: Datacenter the node belongs to.
        tags: Service tags, in registry order.
        meta: Free-form service metadata.

    """

    node: str
    address: str
    service_id: str
    service_name: str
    service_address: str = ""
    service_port: int = 0
    datacenter: str = ""
    tags: tuple[str, ...] = ()
    meta: Mapping[str, str] = field(default_factory=dict, hash=False)

    @property
    def endpoint(self) -> str:
        """``host:port`` preferring the service address over the node address."""
        return f"{self.service_address or self.address}:{self.service_port}"


@dataclass(frozen=True, slots=True)
class KVNode:
    """One key/value record.

    Attributes:
        key: Full key path.
        value: Raw value bytes, ``None`` when the key holds no value.
        flags: Opaque client flags stored alongside the value.
        modify_index: Index of the last modification of this key.

    """

    key: str
    value: bytes | None = None
    flags: int = 0
    modify_index: int = 0

    @property
    def text(self) -> str | None:
        """The value decoded as UTF-8 (``None`` when there is no value)."""
        if self.value is None:
            return None
        return self.value.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class QueryResult[T]:
    """Outcome of one blocking fetch.

    Attributes:
        response: Decoded payload (empty or ``None`` on error statuses).
        last_index: Cursor returned by the registry.
        status: HTTP-style status code.

    """

    response: T
    last_index: int
    status: int


def is_found(status: int) -> bool:
    return 200 <= status < 300


def is_not_found(status: int) -> bool:
    return status == 404


def is_server_error(status: int) -> bool:
    return 500 <= status < 600


@dataclass(frozen=True, slots=True)
class Observation:
    """The accepted result of one fetch cycle for one resource.

    Attributes:
        resource: Service name, key, or key prefix.
        kind: Resource kind.
        status: HTTP-style status code of the fetch.
        payload: Service nodes, a single KV node, or a KV node set.
        index: Cursor returned with the payload.

    """

    resource: str
    kind: ResourceKind
    status: int
    payload: Any
    index: int

    @property
    def found(self) -> bool:
        return is_found(self.status)

    @property
    def not_found(self) -> bool:
        return is_not_found(self.status)

    @property
    def accepted(self) -> bool:
        """Whether the aggregate may be updated from this observation."""
        return self.found or self.not_found

    @classmethod
    def from_result(
        cls, resource: str, kind: ResourceKind, result: QueryResult[Any]
    ) -> Observation:
        return cls(
            resource=resource,
            kind=kind,
            status=result.status,
            payload=result.response,
            index=result.last_index,
        )
