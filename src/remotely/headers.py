"""Request header normalisation.

Header names are compared case-insensitively; when the caller supplies
the same name twice with different casing, :func:`merge_headers` keeps
only the last one, under its casing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from remotely.auth import AuthLike, build_authorization
from remotely.models import DEFAULT_USER_AGENT


def find_header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Return the key in *headers* matching *name* regardless of case."""
    wanted = name.lower()
    found = None
    for key in headers:
        if key.lower() == wanted:
            found = key
    return found


def pop_header(headers: dict[str, Any], name: str) -> Any:
    """Remove every casing of *name* from *headers* and return the last value."""
    value = None
    for key in [k for k in headers if k.lower() == name.lower()]:
        value = headers.pop(key)
    return value


def merge_headers(headers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return a copy of *headers* with one entry per case-insensitive name."""
    merged: dict[str, Any] = {}
    for key, value in (headers or {}).items():
        pop_header(merged, str(key))
        merged[str(key)] = value
    return merged


def canonize_headers(
    headers: Optional[Mapping[str, Any]] = None,
    authorization: AuthLike = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> dict[str, Any]:
    """Return a copy of *headers* with ``User-Agent`` and auth filled in.

    ``User-Agent`` is set when absent.  ``Authorization`` is computed from
    *authorization* only when the caller did not pass one and the stored
    credentials produce a non-empty value.
    """
    result = merge_headers(headers)
    if find_header(result, "User-Agent") is None:
        result["User-Agent"] = user_agent
    if authorization is not None and find_header(result, "Authorization") is None:
        value = build_authorization(authorization)
        if value:
            result["Authorization"] = value
    return result
