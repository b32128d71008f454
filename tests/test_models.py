"""Tests for consulwatch.models — registry records and observations."""

import pytest

from consulwatch.models import (
    KVNode,
    Observation,
    QueryResult,
    ServiceNode,
    is_found,
    is_not_found,
    is_server_error,
)


class TestStatusClasses:
    """HTTP-style status classification."""

    @pytest.mark.parametrize("status", [200, 204, 299])
    def test_found(self, status: int) -> None:
        assert is_found(status)

    def test_not_found(self) -> None:
        assert is_not_found(404)
        assert not is_found(404)

    @pytest.mark.parametrize("status", [500, 502, 599])
    def test_server_error(self, status: int) -> None:
        assert is_server_error(status)

    @pytest.mark.parametrize("status", [403, 429, 301])
    def test_other(self, status: int) -> None:
        assert not (is_found(status) or is_not_found(status) or is_server_error(status))


class TestKVNode:
    """Value records."""

    def test_text(self) -> None:
        assert KVNode("a", b"true").text == "true"

    def test_text_none(self) -> None:
        assert KVNode("a").text is None

    def test_hashable(self) -> None:
        assert len({KVNode("a", b"1"), KVNode("a", b"1")}) == 1


class TestServiceNode:
    """Service instance records."""

    def test_endpoint_prefers_service_address(self) -> None:
        node = ServiceNode("n1", "10.0.0.1", "web-1", "web", "192.168.1.5", 443)
        assert node.endpoint == "192.168.1.5:443"

    def test_endpoint_falls_back_to_node_address(self) -> None:
        node = ServiceNode("n1", "10.0.0.1", "web-1", "web", service_port=80)
        assert node.endpoint == "10.0.0.1:80"

    def test_hashable_despite_meta(self) -> None:
        node = ServiceNode("n1", "10.0.0.1", "web-1", "web", meta={"v": "1"})
        assert isinstance(hash(node), int)


class TestObservation:
    """Observations built from query results."""

    def test_from_result(self) -> None:
        obs = Observation.from_result("web", "service", QueryResult((), 12, 200))
        assert obs == Observation(resource="web", kind="service", status=200, payload=(), index=12)
        assert obs.found
        assert obs.accepted

    def test_not_found_accepted(self) -> None:
        obs = Observation("k", "key", 404, None, 3)
        assert obs.not_found
        assert obs.accepted

    @pytest.mark.parametrize("status", [500, 403])
    def test_other_not_accepted(self, status: int) -> None:
        assert not Observation("k", "key", status, None, 3).accepted

    def test_frozen(self) -> None:
        obs = Observation("k", "key", 200, None, 3)
        with pytest.raises(AttributeError):
            obs.index = 4  # type: ignore[misc]
