"""In-memory transport that replays canned responses.

Registered as ``mock``.  Each :meth:`MockTransport.write` consumes the next
queued response and records the request, so tests (and dry runs against
recorded fixtures) can assert on exactly what would have been sent.

A queued :class:`Exception` instance is raised from :meth:`read` as a
:class:`~remotely.exceptions.TransportError`, which simulates a network
failure.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx

from remotely.exceptions import TransportError
from remotely.response import RawResponse
from remotely.transport.base import Body, Transport, format_request, iter_upload

Queued = Union[RawResponse, Exception]


@dataclass
class RecordedRequest:
    """A request captured by :class:`MockTransport`."""

    method: str
    url: httpx.URL
    http_version: str
    headers: dict[str, Any]
    body: Body
    upload: Optional[bytes] = None
    options: dict[str, Any] = field(default_factory=dict)


class MockTransport(Transport):
    """Transport that answers from a queue instead of the network.

    Args:
        options: Transport options (recorded, otherwise unused).
        responses: Raw responses (or exceptions) to return, in order.

    Example::

        transport = MockTransport(responses=[
            "HTTP/1.1 200 OK\\r\\nContent-Type: application/json\\r\\n\\r\\n{}",
        ])
    """

    name = "mock"

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        responses: Optional[Iterable[Queued]] = None,
    ) -> None:
        self._responses: deque[Queued] = deque(responses or [])
        self._pending: Optional[Queued] = None
        self.requests: list[RecordedRequest] = []
        self.connections: list[tuple[str, int, bool]] = []
        self.close_count = 0
        super().__init__(options)

    def add_response(self, response: Queued) -> MockTransport:
        """Queue *response* (raw text, bytes or an exception)."""
        self._responses.append(response)
        return self

    def connect(self, host: str, port: int = 80, secure: bool = False) -> None:
        self._target = (host, port, secure)
        self.connections.append(self._target)

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
        upload = self._take_upload()
        uploaded = b"".join(iter_upload(*upload)) if upload is not None else None
        self.requests.append(
            RecordedRequest(
                method=method,
                url=url,
                http_version=http_version,
                headers=dict(headers or {}),
                body=body,
                upload=uploaded,
                options=self.options.model_dump(),
            )
        )
        self._pending = self._responses.popleft() if self._responses else None
        return format_request(method, url, http_version, dict(headers or {}), body)

    def read(self) -> bytes:
        pending, self._pending = self._pending, None
        if pending is None:
            raise TransportError("No mock response queued")
        if isinstance(pending, TransportError):
            raise pending
        if isinstance(pending, Exception):
            raise TransportError(str(pending)) from pending
        return pending.encode("utf-8") if isinstance(pending, str) else pending

    def close(self) -> None:
        self.close_count += 1
        self._target = None
