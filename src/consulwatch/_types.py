"""Shared type definitions for consulwatch."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from consulwatch.models import QueryResult

# Kind of watched resource
type ResourceKind = Literal["service", "key", "prefix"]

# Registry read consistency
type ConsistencyMode = Literal["default", "consistent", "stale"]

# Blocking-query cursor (Consul's X-Consul-Index)
type Index = int

# HTTP-style status code returned with every fetch
type StatusCode = int

# One blocking fetch: index in, result out
type FetchFunc = Callable[[int], Awaitable[QueryResult[Any]]]
