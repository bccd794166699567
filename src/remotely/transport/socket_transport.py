"""Plain socket transport speaking HTTP/1.x directly.

Registered as ``socket``.  Requests are sent with ``Connection: close``
and the response is read until the server closes the connection, so no
response framing is needed at this layer; chunked bodies are decoded by
:mod:`remotely.response`.
"""

from __future__ import annotations

import socket
import ssl
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from remotely.exceptions import TransportError
from remotely.headers import find_header
from remotely.transport.base import Body, Transport, format_request, iter_upload

_RECV_SIZE = 8192


class SocketTransport(Transport):
    """Send requests over a raw (optionally TLS-wrapped) socket."""

    name = "socket"

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._sock: Optional[socket.socket] = None
        super().__init__(options)

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.options.verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def connect(self, host: str, port: int = 80, secure: bool = False) -> None:
        if self._sock is not None and self._target == (host, port, secure):
            return
        self.close()
        try:
            sock = socket.create_connection((host, port), timeout=self.options.timeout)
        except OSError as exc:
            raise TransportError(f"Unable to connect to {host}:{port}: {exc}") from exc
        if secure:
            try:
                sock = self._ssl_context().wrap_socket(sock, server_hostname=host)
            except OSError as exc:
                sock.close()
                raise TransportError(f"Unable to connect to {host}:{port}: {exc}") from exc
        self._sock = sock
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
        if self._sock is None:
            raise TransportError("Trying to write but we are not connected")
        self._check_target(url)
        method = method.upper()

        request_headers = self.prepare_headers(method, headers, body)
        if find_header(request_headers, "Host") is None:
            request_headers = {"Host": url.netloc.decode("ascii"), **request_headers}
        request_headers["Connection"] = "close"

        payload = body.encode("utf-8") if isinstance(body, str) else body
        upload = self._take_upload()
        if upload is not None:
            stream, size = upload
            request_headers["Content-Length"] = str(size)
        elif payload or method != "GET":
            request_headers["Content-Length"] = str(len(payload))

        request = format_request(method, url, http_version, request_headers)
        try:
            self._sock.sendall(request.encode("latin-1"))
            if upload is not None:
                for chunk in iter_upload(stream, size):
                    self._sock.sendall(chunk)
            elif payload:
                self._sock.sendall(payload)
        except OSError as exc:
            raise TransportError(f"Error writing request to server: {exc}") from exc
        return format_request(method, url, http_version, request_headers, body)

    def read(self) -> bytes:
        if self._sock is None:
            raise TransportError("Trying to read but we are not connected")
        chunks: list[bytes] = []
        try:
            while True:
                data = self._sock.recv(_RECV_SIZE)
                if not data:
                    break
                chunks.append(data)
        except OSError as exc:
            raise TransportError(f"Error reading response from server: {exc}") from exc
        finally:
            # The server closes after one response (Connection: close).
            self.close()
        if not chunks:
            raise TransportError("Server closed the connection without a response")
        return b"".join(chunks)

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        self._target = None
