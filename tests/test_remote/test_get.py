"""Tests for Remote.get: canonicalisation, caching and failure handling."""

from __future__ import annotations

import logging

import httpx
import pytest

from remotely.exceptions import HttpStatusError, InvalidUrlError, TransportError
from remotely.models import AuthConfig


# ------------------------------------------------------------------ #
# Request shape
# ------------------------------------------------------------------ #


class TestRequestShape:
    def test_query_merged_with_appkey(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json({"id": 1})], identifier="abc")
        assert remote.get("http://api.example.com/x?a=1", {"b": 2}) == {"id": 1}

        sent = transport.requests[0]
        assert sent.method == "GET"
        assert sent.url.path == "/x"
        assert sent.url.query == b"a=1&b=2&appkey=abc"
        assert sent.body == ""

    def test_connects_to_url_target(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote([raw_response("ok")])
        remote.get("https://api.example.com:8443/x")
        assert transport.connections == [("api.example.com", 8443, True)]

    def test_lists_comma_joined(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote([raw_response("ok")], identifier=None)
        remote.get("http://h/x", {"ids": [1, 2, 3]})
        assert transport.requests[0].url.params["ids"] == "1,2,3"

    def test_no_identifier_sends_no_appkey(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote([raw_response("ok")], identifier=None)
        remote.get("http://h/x")
        assert "appkey" not in transport.requests[0].url.params

    def test_default_headers(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote(
            [raw_response("ok")],
            user_agent="agent/2",
            authorization=AuthConfig(username="u", password="p"),
        )
        remote.get("http://h/x", headers={"Accept": "text/plain"})
        assert transport.requests[0].headers == {
            "Accept": "text/plain",
            "User-Agent": "agent/2",
            "Authorization": "Basic dTpw",
        }

    def test_set_authorization_applies_to_later_requests(
        self, mock_remote, raw_response
    ) -> None:
        remote, transport = mock_remote([raw_response("ok")])
        assert remote.set_authorization({"httpauth": "digest", "username": "u", "password": "p"}) is remote
        remote.get("http://h/x")
        assert transport.requests[0].headers["Authorization"] == "Digest dTpw"

    def test_transport_options_passed_through(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote([raw_response("ok")])
        remote.get("http://h/x", options={"timeout": 7, "cache": False, "proxy": "p"})
        recorded = transport.requests[0].options
        assert recorded["timeout"] == 7
        assert recorded["proxy"] == "p"
        assert "cache" not in recorded

    def test_params_not_mutated(self, mock_remote, raw_response) -> None:
        remote, _ = mock_remote([raw_response("ok")])
        params = {"b": 2}
        remote.get("http://h/x?a=1", params)
        assert params == {"b": 2}

    def test_invalid_url_raises(self, mock_remote) -> None:
        remote, _ = mock_remote()
        with pytest.raises(InvalidUrlError):
            remote.get("/relative")


# ------------------------------------------------------------------ #
# Response handling
# ------------------------------------------------------------------ #


class TestResponses:
    def test_text_body(self, mock_remote, raw_response) -> None:
        remote, _ = mock_remote([raw_response("plain text")])
        assert remote.get("http://h/x") == "plain text"

    def test_non_200_is_false(self, mock_remote, raw_response) -> None:
        remote, _ = mock_remote([raw_response("missing", status="404 Not Found")])
        assert remote.get("http://h/x") is False

    def test_result_carries_status(self, mock_remote, raw_response) -> None:
        remote, _ = mock_remote([raw_response("missing", status="404 Not Found")])
        result = remote.get_result("http://h/x")
        assert isinstance(result.error, HttpStatusError)
        assert result.error.status_code == 404

    def test_transport_failure_is_false_and_logged(self, mock_remote, caplog) -> None:
        remote, _ = mock_remote([ConnectionResetError("peer reset")])
        with caplog.at_level(logging.WARNING, logger="remotely"):
            assert remote.get("http://h/x") is False
        assert "Remote access error" in caplog.text
        assert "peer reset" in caplog.text

    def test_transport_failure_result(self, mock_remote) -> None:
        remote, _ = mock_remote([ConnectionResetError("peer reset")])
        result = remote.get_result("http://h/x")
        assert isinstance(result.error, TransportError)
        with pytest.raises(TransportError):
            result.unwrap()


# ------------------------------------------------------------------ #
# Caching
# ------------------------------------------------------------------ #


class TestCaching:
    def test_second_identical_get_served_from_cache(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json({"n": 1}), raw_json({"n": 2})])
        options = {"cache": True}
        first = remote.get("http://h/x", {"a": 1}, {"H": "v"}, options)
        second = remote.get("http://h/x", {"a": 1}, {"H": "v"}, options)
        assert first == second == {"n": 1}
        assert len(transport.requests) == 1

    def test_global_cache_setting(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json([1]), raw_json([2])], cache={"ttl": 60})
        remote.get("http://h/x")
        assert remote.get("http://h/x") == [1]
        assert len(transport.requests) == 1

    def test_different_params_miss(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json(1), raw_json(2)], cache=True)
        assert remote.get("http://h/x", {"a": 1}) == 1
        assert remote.get("http://h/x", {"a": 2}) == 2
        assert len(transport.requests) == 2

    def test_per_call_false_bypasses(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json(1), raw_json(2)], cache=True)
        remote.get("http://h/x")
        assert remote.get("http://h/x", options={"cache": False}) == 2
        assert len(transport.requests) == 2

    def test_off_outside_production(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote(
            [raw_json(1), raw_json(2)], cache=True, environment="development"
        )
        remote.get("http://h/x")
        assert remote.get("http://h/x") == 2
        assert len(transport.requests) == 2

    def test_failures_not_cached(self, mock_remote, raw_response, raw_json) -> None:
        remote, transport = mock_remote(
            [raw_response("", status="500 Internal Server Error"), raw_json("fresh")],
            cache=True,
        )
        assert remote.get("http://h/x") is False
        assert remote.get("http://h/x") == "fresh"
        assert len(transport.requests) == 2

    def test_json_false_not_cached(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json(False), raw_json(True)], cache=True)
        assert remote.get("http://h/x") is False
        assert remote.get("http://h/x") is True
        assert len(transport.requests) == 2

    def test_named_storage(self, mock_remote, raw_json, cache_store) -> None:
        remote, _ = mock_remote([raw_json({"a": 1})])
        remote.get("http://h/x", options={"cache": "fast"})
        assert cache_store.stats()["storages"].get("fast") == 1

    def test_cache_hit_skips_connect(self, mock_remote, raw_json) -> None:
        remote, transport = mock_remote([raw_json(1)], cache=True)
        remote.get("http://h/x")
        remote.get("http://h/x")
        assert transport.connections == [("h", 80, False)]


# ------------------------------------------------------------------ #
# Low-level passthroughs
# ------------------------------------------------------------------ #


class TestPassthroughs:
    def test_write_and_read(self, mock_remote, raw_response) -> None:
        remote, transport = mock_remote([raw_response("hi")])
        remote.connect("h", 80)
        text = remote.write("get", "http://h/x", headers={"A": "1"})
        assert text.startswith("GET /x HTTP/1.1")
        assert transport.requests[0].headers["User-Agent"] == "remotely"
        assert remote.parse_response(remote.read()) == "hi"

    def test_connect_accepts_url(self, mock_remote) -> None:
        remote, transport = mock_remote()
        remote.connect(httpx.URL("https://h/x"))
        assert transport.connections == [("h", 443, True)]

    def test_write_failure_is_false(self, mock_remote) -> None:
        remote, _ = mock_remote()
        assert remote.write("GET", "http://h/x") is False

    def test_read_failure_is_false(self, mock_remote) -> None:
        remote, _ = mock_remote()
        assert remote.read() is False

    def test_build_authorization(self, mock_remote) -> None:
        remote, _ = mock_remote()
        assert remote.build_authorization({"username": "u", "password": "p"}) == "Basic dTpw"
        assert remote.build_authorization({"username": "u"}) == ""
