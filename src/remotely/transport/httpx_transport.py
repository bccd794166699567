"""Transport backed by :class:`httpx.Client`.

This is the default transport (registered as ``httpx`` and, for configs
written against the historical cURL adapter, ``curl``).  httpx already
handles TLS, chunked transfer and content decoding; the response is
re-serialised into plain HTTP text so that every transport hands
:func:`~remotely.response.parse_response` the same shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import httpx

from remotely.exceptions import TransportError
from remotely.headers import find_header
from remotely.transport.base import Body, Transport, format_request, iter_upload

# Headers describing the wire encoding, which no longer applies once
# httpx has decoded the body.
_WIRE_HEADERS = {"content-encoding", "transfer-encoding", "content-length"}


class HttpxTransport(Transport):
    """Send requests through an :class:`httpx.Client`.

    Args:
        options: Transport options (``timeout``, ``verify_ssl``,
            ``follow_redirects``).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
    """

    name = "httpx"

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client: Optional[httpx.Client] = None
        self._transport = transport
        self._response: Optional[bytes] = None
        super().__init__(options)

    def _options_changed(self) -> None:
        # Rebuilt with the new settings on next use.
        if self._client is not None:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.options.timeout,
                verify=self.options.verify_ssl,
                follow_redirects=self.options.follow_redirects,
                transport=self._transport,
            )
        return self._client

    def connect(self, host: str, port: int = 80, secure: bool = False) -> None:
        self._ensure_client()
        self._target = (host, port, secure)

    def write(
        self,
        method: str,
        url: httpx.URL,
        http_version: str = "1.1",
        headers: Optional[Mapping[str, Any]] = None,
        body: Body = "",
    ) -> str:
        url = httpx.URL(str(url))
        self._check_target(url)
        method = method.upper()
        request_headers = self.prepare_headers(method, headers, body)

        content: Any = body or None
        upload = self._take_upload()
        if upload is not None:
            stream, size = upload
            content = iter_upload(stream, size)
            if find_header(request_headers, "Content-Length") is None:
                request_headers["Content-Length"] = str(size)

        self._response = None
        try:
            response = self._ensure_client().request(
                method, url, headers=request_headers, content=content
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        self._response = _serialize(response)
        return format_request(method, url, http_version, request_headers, body)

    def read(self) -> bytes:
        if self._response is None:
            raise TransportError("No response available to read")
        data, self._response = self._response, None
        return data

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self._target = None
        self._response = None


def _serialize(response: httpx.Response) -> bytes:
    """Render *response* back into HTTP/1.x wire text with a decoded body."""
    version = response.http_version or "HTTP/1.1"
    lines = [f"{version} {response.status_code} {response.reason_phrase}".rstrip()]
    for name, value in response.headers.multi_items():
        if name.lower() not in _WIRE_HEADERS:
            lines.append(f"{name}: {value}")
    content = response.content
    lines.append(f"content-length: {len(content)}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1", errors="replace") + content
