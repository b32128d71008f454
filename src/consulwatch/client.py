"""Registry client — the blocking-query fetches the watch engine runs on.

``RegistryClient`` is the protocol the watch engine depends on.
``HttpRegistryClient`` implements it against Consul's HTTP API with httpx:

    GET /v1/catalog/service/<name>
    GET /v1/kv/<key>
    GET /v1/kv/<prefix>?recurse

Every response carries its cursor in the ``X-Consul-Index`` header.
Non-success statuses are returned, not raised; only failures that leave no
usable status (connection errors, undecodable bodies) raise ``TransportError``.
"""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote

import httpx

from consulwatch._errors import TransportError
from consulwatch.config import WatchConfig
from consulwatch.models import KVNode, QueryResult, ServiceNode

if TYPE_CHECKING:
    from types import TracebackType

_INDEX_HEADER = "X-Consul-Index"
_TOKEN_HEADER = "X-Consul-Token"
_CONNECT_TIMEOUT = 10.0
# Slack on top of the registry's wait/16 jitter before a read times out.
_READ_MARGIN = 5.0


class RegistryClient(Protocol):
    """Blocking fetches for the three watchable resource kinds, plus ``aclose``."""

    async def fetch_service(
        self, name: str, index: int
    ) -> QueryResult[tuple[ServiceNode, ...]]: ...

    async def fetch_key(self, key: str, index: int) -> QueryResult[KVNode | None]: ...

    async def fetch_key_prefix(
        self, prefix: str, index: int
    ) -> QueryResult[tuple[KVNode, ...] | None]: ...

    async def aclose(self) -> None: ...


def _read_timeout(config: WatchConfig) -> float | None:
    """Read timeout for a blocking query: the wait bound plus jitter and margin."""
    wait = config.long_poll_max_wait
    if wait is None:
        return None
    return wait + wait / 16 + _READ_MARGIN


class HttpRegistryClient:
    """``RegistryClient`` over Consul's HTTP API.

    Args:
        config: Endpoint, datacenter, token, wait and consistency settings.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).

    """

    def __init__(
        self,
        config: WatchConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config if config is not None else WatchConfig()
        self._client = httpx.AsyncClient(
            base_url=self._config.address,
            headers={_TOKEN_HEADER: self._config.token},
            timeout=httpx.Timeout(
                _CONNECT_TIMEOUT, read=_read_timeout(self._config), pool=None
            ),
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=20),
            transport=transport,
        )

    @property
    def config(self) -> WatchConfig:
        return self._config

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRegistryClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ----- Fetches -----

    async def fetch_service(
        self, name: str, index: int
    ) -> QueryResult[tuple[ServiceNode, ...]]:
        response = await self._get(f"/v1/catalog/service/{quote(name, safe='')}", index)
        last_index = _last_index(response)
        if response.status_code != 200:
            return QueryResult((), last_index, response.status_code)
        entries = _json_list(response)
        try:
            nodes = tuple(_service_node(entry) for entry in entries)
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed catalog entry for service {name!r}: {exc}"
            raise TransportError(msg) from exc
        return QueryResult(nodes, last_index, response.status_code)

    async def fetch_key(self, key: str, index: int) -> QueryResult[KVNode | None]:
        response = await self._get(f"/v1/kv/{quote(key, safe='/')}", index)
        last_index = _last_index(response)
        if response.status_code != 200:
            return QueryResult(None, last_index, response.status_code)
        nodes = _kv_nodes(_json_list(response), key)
        return QueryResult(nodes[0] if nodes else None, last_index, response.status_code)

    async def fetch_key_prefix(
        self, prefix: str, index: int
    ) -> QueryResult[tuple[KVNode, ...] | None]:
        response = await self._get(
            f"/v1/kv/{quote(prefix, safe='/')}", index, recurse=""
        )
        last_index = _last_index(response)
        if response.status_code != 200:
            return QueryResult(None, last_index, response.status_code)
        nodes = _kv_nodes(_json_list(response), prefix)
        return QueryResult(nodes, last_index, response.status_code)

    # ----- Internals -----

    def _params(self, index: int, extra: dict[str, str]) -> dict[str, str]:
        config = self._config
        params: dict[str, str] = {}
        if index > 0:
            params["index"] = str(index)
        if config.long_poll_max_wait is not None:
            params["wait"] = f"{config.long_poll_max_wait:g}s"
        if config.datacenter:
            params["dc"] = config.datacenter
        if config.consistency_mode != "default":
            params[config.consistency_mode] = ""
        params.update(extra)
        return params

    async def _get(self, path: str, index: int, **extra: str) -> httpx.Response:
        try:
            return await self._client.get(path, params=self._params(index, extra))
        except httpx.HTTPError as exc:
            msg = f"GET {path} failed: {exc!r}"
            raise TransportError(msg) from exc


def _last_index(response: httpx.Response) -> int:
    raw = response.headers.get(_INDEX_HEADER)
    if raw is None:
        return 0
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"Invalid {_INDEX_HEADER} header: {raw!r}"
        raise TransportError(msg) from exc


def _json_list(response: httpx.Response) -> list[Any]:
    try:
        data = response.json()
    except ValueError as exc:
        msg = f"Undecodable response body from {response.request.url.path}: {exc}"
        raise TransportError(msg) from exc
    if data is None:
        return []
    if not isinstance(data, list):
        msg = f"Expected a JSON list from {response.request.url.path}, got {type(data).__name__}"
        raise TransportError(msg)
    return data


def _service_node(entry: dict[str, Any]) -> ServiceNode:
    return ServiceNode(
        node=entry["Node"],
        address=entry.get("Address") or "",
        service_id=entry.get("ServiceID") or "",
        service_name=entry.get("ServiceName") or "",
        service_address=entry.get("ServiceAddress") or "",
        service_port=int(entry.get("ServicePort") or 0),
        datacenter=entry.get("Datacenter") or "",
        tags=tuple(entry.get("ServiceTags") or ()),
        meta=dict(entry.get("ServiceMeta") or {}),
    )


def _kv_nodes(entries: list[Any], resource: str) -> tuple[KVNode, ...]:
    try:
        return tuple(_kv_node(entry) for entry in entries)
    except (KeyError, TypeError, ValueError, binascii.Error) as exc:
        msg = f"Malformed KV entry under {resource!r}: {exc}"
        raise TransportError(msg) from exc


def _kv_node(entry: dict[str, Any]) -> KVNode:
    raw = entry.get("Value")
    return KVNode(
        key=entry["Key"],
        value=None if raw is None else base64.b64decode(raw, validate=True),
        flags=int(entry.get("Flags") or 0),
        modify_index=int(entry.get("ModifyIndex") or 0),
    )
