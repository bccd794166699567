"""Shared test fixtures for remotely.

Provides isolated config directories, a :class:`~remotely.remote.Remote`
wired to the in-memory ``mock`` transport and a temporary diskcache
store, plus output and CLI helpers.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from remotely.cache import DiskCacheStore
from remotely.models import RemoteConfig
from remotely.output import OutputFormat, OutputManager, reset_output, set_output
from remotely.remote import Remote
from remotely.transport import MockTransport


def http_response(
    body: str = "",
    status: str = "200 OK",
    content_type: Optional[str] = "text/plain",
    headers: Optional[dict[str, str]] = None,
) -> str:
    """Render a raw HTTP/1.1 response as a transport would return it."""
    lines = [f"HTTP/1.1 {status}"]
    if content_type:
        lines.append(f"Content-Type: {content_type}")
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    lines.append(f"Content-Length: {len(body.encode('utf-8'))}")
    return "\r\n".join(lines) + "\r\n\r\n" + body


def json_response(data: Any, status: str = "200 OK") -> str:
    """Render a raw ``application/json`` response."""
    return http_response(json.dumps(data), status, "application/json")


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the XDG directories at tmp_path and clear REMOTELY_* variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("remotely.config._is_xdg_platform", lambda: True)

    for var in ["REMOTELY_ENV", "REMOTELY_IDENTIFIER", "REMOTELY_ADAPTER", "REMOTELY_CONFIG"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Remote fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_store(tmp_path: Path) -> DiskCacheStore:
    """A diskcache-backed store rooted in tmp_path."""
    store = DiskCacheStore(tmp_path / "remote-cache")
    yield store
    store.close()


@pytest.fixture
def mock_remote(cache_store: DiskCacheStore) -> Callable[..., tuple[Remote, MockTransport]]:
    """Factory building a Remote on a MockTransport with queued responses.

    Example::

        remote, transport = mock_remote([json_response({"ok": 1})], identifier="app")
    """

    def _factory(
        responses: Optional[list[Any]] = None, **config: Any
    ) -> tuple[Remote, MockTransport]:
        config.setdefault("identifier", "test-app")
        transport = MockTransport(responses=responses)
        remote = Remote(RemoteConfig(**config), cache_store=cache_store, adapter=transport)
        return remote, transport

    return _factory


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def raw_response() -> Callable[..., str]:
    """The :func:`http_response` builder."""
    return http_response


@pytest.fixture
def raw_json() -> Callable[..., str]:
    """The :func:`json_response` builder."""
    return json_response
