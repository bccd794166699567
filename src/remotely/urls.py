"""URL canonicalisation and query-string encoding.

Outgoing requests always pass through :func:`canonize_url`, which folds
any query string already present on the URL into the parameter map and
injects the ``appkey`` application identifier.  Parameters are then
encoded with :func:`build_query`, which mirrors PHP's
``http_build_query`` so that remote endpoints written against that
convention (``a[0]=x&a[1]=y``) keep working.

GET requests additionally run :func:`flatten_params`, which collapses
list values into comma-joined strings.  That normalisation is lossy
(``["a,b"]`` and ``["a", "b"]`` encode identically) and is kept for
compatibility with existing endpoints.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode

import httpx

from remotely.exceptions import InvalidUrlError

APPKEY = "appkey"
"""Parameter name carrying the application identifier."""

_DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_query(query: str) -> dict[str, Any]:
    """Parse a query string the way PHP's ``parse_str`` does.

    ``name[]=v`` pairs accumulate into a list under ``name``; a repeated
    plain key keeps the last value.  Blank values are preserved.

    Example::

        >>> parse_query("a=1&tag[]=x&tag[]=y&a=2")
        {'a': '2', 'tag': ['x', 'y']}
    """
    result: dict[str, Any] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        if key.endswith("[]"):
            name = key[:-2]
            existing = result.get(name)
            if not isinstance(existing, list):
                existing = []
            existing.append(value)
            result[name] = existing
        else:
            result[key] = value
    return result


def canonize_url(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    identifier: Optional[str] = None,
) -> tuple[str, dict[str, Any]]:
    """Split the query off *url* and merge it with *params*.

    Explicit *params* win over values parsed from the URL on key
    collision; keys parsed from the URL keep their position.  ``appkey``
    is added from *identifier* unless already present.

    Args:
        url: The target URL, possibly carrying a query string.
        params: Explicit parameters.  Never mutated.
        identifier: Application identifier injected as ``appkey``.

    Returns:
        A ``(url_without_query, params)`` tuple.
    """
    merged: dict[str, Any] = dict(params or {})
    base, sep, query = url.partition("?")
    if sep:
        query = query.split("#", 1)[0]
        merged = {**parse_query(query), **merged}
    if APPKEY not in merged:
        merged[APPKEY] = identifier
    return base, merged


def flatten_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Collapse list values into comma-joined strings."""
    flat: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            value = ",".join(_scalar(item) for item in value)
        flat[key] = value
    return flat


def build_query(params: Mapping[str, Any]) -> str:
    """Encode *params* with ``http_build_query`` semantics.

    Nested mappings become ``key[sub]=v`` and sequences ``key[0]=v``.
    ``None`` values are dropped; booleans encode as ``1``/``0``.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        _collect_pairs(str(key), value, pairs)
    return urlencode(pairs)


def _collect_pairs(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _collect_pairs(f"{prefix}[{sub_key}]", sub_value, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _collect_pairs(f"{prefix}[{index}]", item, pairs)
    else:
        pairs.append((prefix, _scalar(value)))


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    if value is None:
        return ""
    return str(value)


# --- Absolute URL handling ---


def resolve_url(url: str | httpx.URL) -> httpx.URL:
    """Parse *url* and make sure it can be dispatched.

    Raises:
        InvalidUrlError: If the URL cannot be parsed, lacks a host, or
            uses a scheme other than ``http``/``https``.
    """
    if isinstance(url, httpx.URL):
        parsed = url
    else:
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise InvalidUrlError(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in _DEFAULT_PORTS or not parsed.host:
        raise InvalidUrlError(f"URL must be absolute http(s), got {str(url)!r}")
    return parsed


def connection_target(url: httpx.URL) -> tuple[str, int, bool]:
    """Return ``(host, port, secure)`` for connecting to *url*."""
    port = url.port or _DEFAULT_PORTS[url.scheme]
    return url.host, port, url.scheme == "https"


def with_query(url: httpx.URL, params: Mapping[str, Any]) -> httpx.URL:
    """Return *url* with its query replaced by the encoding of *params*."""
    base = str(url).split("#", 1)[0].split("?", 1)[0]
    query = build_query(params)
    return httpx.URL(f"{base}?{query}" if query else base)
