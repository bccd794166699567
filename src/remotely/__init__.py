"""remotely -- fetch, post and upload to remote HTTP(S) resources.

The :class:`~remotely.remote.Remote` facade adds an application ``appkey``
and credentials to every request, sends it through a pluggable transport,
interprets the response and caches successful GET results on disk.

Typical use::

    from remotely import Remote

    with Remote.from_config() as remote:
        data = remote.get("https://api.example.com/items", {"page": 1})

Failures return ``False``; the ``*_result`` methods return a
:class:`~remotely.result.RemoteResult` that carries the cause.

Modules:
    remote: The request orchestrator.
    transport: Pluggable connection-level transports.
    cache: GET result caching on top of diskcache.
    urls, headers, auth: Request canonicalisation.
    response: Raw HTTP response parsing.
    config: XDG-aware configuration loading.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from remotely.exceptions import (  # noqa: E402
    AdapterResolutionError,
    HttpStatusError,
    RemoteError,
    RemotelyError,
    ResponseParseError,
    TransportError,
)
from remotely.models import AuthConfig, RemoteConfig  # noqa: E402
from remotely.remote import Remote  # noqa: E402
from remotely.result import FAILURE, RemoteResult  # noqa: E402

__all__ = [
    "__version__",
    "Remote",
    "RemoteConfig",
    "AuthConfig",
    "RemoteResult",
    "FAILURE",
    "RemotelyError",
    "RemoteError",
    "TransportError",
    "ResponseParseError",
    "HttpStatusError",
    "AdapterResolutionError",
]
