"""Tests for the in-memory mock transport."""

from __future__ import annotations

import io

import httpx
import pytest

from remotely.exceptions import TransportError
from remotely.transport import MockTransport


def _connected(*responses) -> MockTransport:
    transport = MockTransport(responses=responses)
    transport.connect("h", 80)
    return transport


class TestMockTransport:
    def test_replays_in_order(self) -> None:
        transport = _connected("first", b"second")
        transport.write("GET", httpx.URL("http://h/1"))
        assert transport.read() == b"first"
        transport.write("GET", httpx.URL("http://h/2"))
        assert transport.read() == b"second"

    def test_records_requests(self) -> None:
        transport = _connected("ok")
        transport.set_options({"timeout": 9, "proxy": "p"})
        transport.write("post", httpx.URL("http://h/x?a=1"), headers={"A": "b"}, body="x=1")
        recorded = transport.requests[0]
        assert recorded.method == "POST"
        assert recorded.url == httpx.URL("http://h/x?a=1")
        assert recorded.headers == {"A": "b"}
        assert recorded.body == "x=1"
        assert recorded.upload is None
        assert recorded.options["timeout"] == 9
        assert recorded.options["proxy"] == "p"

    def test_records_upload(self) -> None:
        transport = _connected("ok")
        transport.set_upload(io.BytesIO(b"abcdef"), 3)
        transport.write("PUT", httpx.URL("http://h/f"))
        assert transport.requests[0].upload == b"abc"

    def test_queued_exception_raised_as_transport_error(self) -> None:
        transport = _connected(ConnectionResetError("reset"))
        transport.write("GET", httpx.URL("http://h/x"))
        with pytest.raises(TransportError, match="reset"):
            transport.read()

    def test_empty_queue(self) -> None:
        transport = _connected()
        transport.write("GET", httpx.URL("http://h/x"))
        with pytest.raises(TransportError, match="No mock response queued"):
            transport.read()

    def test_add_response(self) -> None:
        transport = _connected().add_response("late")
        transport.write("GET", httpx.URL("http://h/x"))
        assert transport.read() == b"late"

    def test_connections_and_close_tracked(self) -> None:
        transport = MockTransport()
        transport.connect("h", 443, True)
        transport.close()
        assert transport.connections == [("h", 443, True)]
        assert transport.close_count == 1

    def test_write_after_close(self) -> None:
        transport = _connected("ok")
        transport.close()
        with pytest.raises(TransportError):
            transport.write("GET", httpx.URL("http://h/x"))
