"""Closed registry mapping transport names to constructors.

Only the transports listed in :data:`TRANSPORTS` can be loaded by name;
anything else is an :class:`~remotely.exceptions.AdapterResolutionError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional

from remotely.exceptions import AdapterResolutionError
from remotely.transport.base import Transport
from remotely.transport.httpx_transport import HttpxTransport
from remotely.transport.mock import MockTransport
from remotely.transport.socket_transport import SocketTransport

TRANSPORTS: dict[str, Callable[..., Transport]] = {
    "httpx": HttpxTransport,
    "curl": HttpxTransport,
    "socket": SocketTransport,
    "mock": MockTransport,
}
"""Transport name -> factory accepting an option mapping."""


def load_adapter(name: str, options: Optional[Mapping[str, Any]] = None) -> Transport:
    """Build a new transport by registry name.

    Args:
        name: Registry name, matched case-insensitively.
        options: Options passed to the transport constructor.

    Raises:
        AdapterResolutionError: If *name* is not registered.
    """
    factory = TRANSPORTS.get(name.strip().lower()) if name else None
    if factory is None:
        raise AdapterResolutionError(
            f"Unknown transport adapter '{name}'. "
            f"Available adapters: {', '.join(available_adapters())}"
        )
    return factory(options)


def available_adapters() -> list[str]:
    """Return the registered transport names, sorted."""
    return sorted(TRANSPORTS)
