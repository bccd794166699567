"""Pluggable connection-level transports.

Classes:
    :class:`Transport` -- the abstract connect/write/read/close interface.
    :class:`HttpxTransport` -- default, backed by :class:`httpx.Client`.
    :class:`SocketTransport` -- raw socket / TLS HTTP/1.x.
    :class:`MockTransport` -- canned responses, records requests.

Transports are looked up by name through :func:`load_adapter`.
"""

from remotely.transport.base import Transport
from remotely.transport.httpx_transport import HttpxTransport
from remotely.transport.mock import MockTransport, RecordedRequest
from remotely.transport.registry import TRANSPORTS, available_adapters, load_adapter
from remotely.transport.socket_transport import SocketTransport

__all__ = [
    "Transport",
    "HttpxTransport",
    "SocketTransport",
    "MockTransport",
    "RecordedRequest",
    "TRANSPORTS",
    "available_adapters",
    "load_adapter",
]
