"""Abstract base class for transport adapters.

A transport performs the low-level half of a request: it opens a
connection, writes the request and hands back the raw response text.
Everything above that (URL canonicalisation, headers, response
interpretation, caching) lives in :class:`~remotely.remote.Remote`.

To implement a new transport, subclass :class:`Transport`, set
:attr:`~Transport.name`, implement the four connection methods, and add
it to :data:`~remotely.transport.registry.TRANSPORTS`.

Transports report every failure as
:class:`~remotely.exceptions.TransportError`; errors from an underlying
library are wrapped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import Any, BinaryIO, Optional, Union

import httpx
from pydantic import ValidationError

from remotely.exceptions import ConfigError, TransportError
from remotely.headers import find_header, merge_headers
from remotely.models import TransportOptions

Body = Union[str, bytes]

_OPTION_ALIASES = {
    "sslverifypeer": "verify_ssl",
    "maxredirects": "follow_redirects",
}

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_UPLOAD_CHUNK_SIZE = 64 * 1024


def _normalize_option_key(key: str) -> str:
    normalized = key.strip().lower().replace("-", "_")
    return _OPTION_ALIASES.get(normalized, normalized)


class Transport(ABC):
    """Abstract connection-level HTTP transport.

    Concrete transports are stateful: :meth:`connect` binds them to one
    ``(host, port, secure)`` target, :meth:`write` sends a request to it,
    :meth:`read` returns the response of the last write.  They are not
    safe to share between threads.

    Args:
        options: Initial option mapping, validated as
            :class:`~remotely.models.TransportOptions`.
    """

    name: str = ""

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._options = TransportOptions()
        self._upload: Optional[tuple[BinaryIO, int]] = None
        self._target: Optional[tuple[str, int, bool]] = None
        if options:
            self.set_options(options)

    # ------------------------------------------------------------------ #
    # Options
    # ------------------------------------------------------------------ #

    @property
    def options(self) -> TransportOptions:
        """The validated options currently in effect."""
        return self._options

    def set_options(self, options: Mapping[str, Any]) -> Transport:
        """Merge *options* over the current ones.

        Keys are matched case-insensitively, with ``-`` treated as ``_``.
        Unknown keys are kept in ``options.model_extra``.

        Raises:
            ConfigError: If a known option has an invalid value.
        """
        merged = self._options.model_dump()
        for key, value in options.items():
            merged[_normalize_option_key(str(key))] = value
        if isinstance(merged.get("follow_redirects"), int) and not isinstance(
            merged["follow_redirects"], bool
        ):
            merged["follow_redirects"] = merged["follow_redirects"] > 0
        try:
            self._options = TransportOptions.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"Invalid options for {self.name} transport: {exc}") from exc
        self._options_changed()
        return self

    def _options_changed(self) -> None:
        """Hook for transports that cache objects built from the options."""

    # ------------------------------------------------------------------ #
    # Uploads
    # ------------------------------------------------------------------ #

    def set_upload(self, stream: BinaryIO, size: int) -> Transport:
        """Send *size* bytes from *stream* as the body of the next write."""
        self._upload = (stream, size)
        return self

    def clear_upload(self) -> None:
        """Drop a pending upload that was never written."""
        self._upload = None

    def _take_upload(self) -> Optional[tuple[BinaryIO, int]]:
        upload, self._upload = self._upload, None
        return upload

    # ------------------------------------------------------------------ #
    # Connection interface
    # ------------------------------------------------------------------ #

    @abstractmethod
    def connect(self, host: str, port: int = 80, secure: bool = False) -> None:
        """Open (or reuse) a connection to ``host:port``."""
        ...

    @abstractmethod
    def write(
        self,
        method: str,
        url: httpx.URL,
        http_version: str = "1.1",
        headers: Optional[Mapping[str, Any]] = None,
        body: Body = "",
    ) -> str:
        """Send a request over the open connection.

        Returns:
            The request as text, for diagnostics.

        Raises:
            TransportError: If not connected or the request cannot be sent.
        """
        ...

    @abstractmethod
    def read(self) -> bytes:
        """Return the raw response to the last :meth:`write`.

        Raises:
            TransportError: If there is nothing to read or reading fails.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the connection.  Safe to call when not connected."""
        ...

    # ------------------------------------------------------------------ #
    # Helpers for subclasses
    # ------------------------------------------------------------------ #

    def _check_target(self, url: httpx.URL) -> None:
        if self._target is None:
            raise TransportError("Trying to write but we are not connected")
        host, port, secure = self._target
        url_port = url.port or (443 if url.scheme == "https" else 80)
        if url.host != host or url_port != port or (url.scheme == "https") != secure:
            raise TransportError(
                f"Trying to write to {url.host}:{url_port} while connected to {host}:{port}"
            )

    @staticmethod
    def prepare_headers(
        method: str, headers: Optional[Mapping[str, Any]], body: Body
    ) -> dict[str, str]:
        """Merge header casings, stringify values and default the form content type.

        A POST with a non-empty body and no ``Content-Type`` is sent as
        ``application/x-www-form-urlencoded``.
        """
        prepared = {
            k: str(v) for k, v in merge_headers(headers).items() if v is not None
        }
        if method == "POST" and body and find_header(prepared, "Content-Type") is None:
            prepared["Content-Type"] = _FORM_CONTENT_TYPE
        return prepared


def iter_upload(stream: BinaryIO, size: int) -> Iterator[bytes]:
    """Yield at most *size* bytes from *stream* in chunks."""
    remaining = size
    while remaining > 0:
        chunk = stream.read(min(_UPLOAD_CHUNK_SIZE, remaining))
        if not chunk:
            break
        remaining -= len(chunk)
        yield chunk


def format_request(
    method: str,
    url: httpx.URL,
    http_version: str,
    headers: Mapping[str, str],
    body: Body = "",
) -> str:
    """Render a request as HTTP/1.x text (request line, headers, body)."""
    target = url.raw_path.decode("ascii") or "/"
    lines = [f"{method} {target} HTTP/{http_version}"]
    lines.extend(f"{name}: {value}" for name, value in headers.items())
    if isinstance(body, bytes):
        body = body.decode("latin-1")
    return "\r\n".join(lines) + "\r\n\r\n" + body
