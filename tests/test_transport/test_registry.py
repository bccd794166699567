"""Tests for transport lookup and shared option handling."""

from __future__ import annotations

import pytest

from remotely.exceptions import AdapterResolutionError, ConfigError
from remotely.transport import (
    HttpxTransport,
    MockTransport,
    SocketTransport,
    available_adapters,
    load_adapter,
)


class TestLoadAdapter:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("httpx", HttpxTransport),
            ("curl", HttpxTransport),
            ("socket", SocketTransport),
            ("mock", MockTransport),
            ("HTTPX", HttpxTransport),
        ],
    )
    def test_known_names(self, name: str, cls: type) -> None:
        assert isinstance(load_adapter(name), cls)

    def test_fresh_instance_each_time(self) -> None:
        assert load_adapter("mock") is not load_adapter("mock")

    def test_unknown_name(self) -> None:
        with pytest.raises(AdapterResolutionError, match="Available adapters: curl, httpx"):
            load_adapter("ftp")

    def test_empty_name(self) -> None:
        with pytest.raises(AdapterResolutionError):
            load_adapter("")

    def test_options_applied(self) -> None:
        assert load_adapter("mock", {"timeout": 5}).options.timeout == 5

    def test_available_adapters_sorted(self) -> None:
        assert available_adapters() == ["curl", "httpx", "mock", "socket"]


class TestSetOptions:
    def test_defaults(self) -> None:
        options = MockTransport().options
        assert options.timeout == 30
        assert options.verify_ssl is True
        assert options.follow_redirects is False

    def test_merges_over_current(self) -> None:
        transport = MockTransport({"timeout": 5})
        transport.set_options({"verify_ssl": False})
        assert transport.options.timeout == 5
        assert transport.options.verify_ssl is False

    def test_keys_normalised(self) -> None:
        transport = MockTransport({"Verify-SSL": False, "TIMEOUT": 3})
        assert transport.options.verify_ssl is False
        assert transport.options.timeout == 3

    def test_legacy_aliases(self) -> None:
        transport = MockTransport({"sslverifypeer": False, "maxredirects": 5})
        assert transport.options.verify_ssl is False
        assert transport.options.follow_redirects is True

    def test_zero_redirects_disables_following(self) -> None:
        transport = MockTransport({"follow_redirects": True})
        transport.set_options({"maxredirects": 0})
        assert transport.options.follow_redirects is False

    def test_unknown_keys_kept(self) -> None:
        transport = MockTransport({"proxy": "http://proxy:3128"})
        assert transport.options.model_extra == {"proxy": "http://proxy:3128"}

    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigError, match="mock transport"):
            MockTransport({"timeout": 0})

    def test_returns_self(self) -> None:
        transport = MockTransport()
        assert transport.set_options({}) is transport
