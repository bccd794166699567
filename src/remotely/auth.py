"""HTTP ``Authorization`` header construction from stored credentials.

Credentials live in :class:`~remotely.models.AuthConfig`.  The header is
``"<Scheme> <base64(username:password)>"`` per :rfc:`7617`, with the
scheme name capitalised and defaulting to ``Basic``.

See Also:
    :func:`remotely.headers.canonize_headers`, which injects the header
    into outgoing requests.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any, Optional, Union

from remotely.models import AuthConfig

AUTH_KEYS = ("httpauth", "username", "password")
"""Keys accepted by :func:`merge_authorization`."""

AuthLike = Union[AuthConfig, Mapping[str, Any], None]


def _as_config(config: AuthLike) -> Optional[AuthConfig]:
    if config is None or isinstance(config, AuthConfig):
        return config
    return AuthConfig.model_validate(
        {key: config[key] for key in AUTH_KEYS if key in config}
    )


def build_authorization(config: AuthLike) -> str:
    """Build an ``Authorization`` header value.

    Args:
        config: An :class:`~remotely.models.AuthConfig`, a mapping with
            ``httpauth``/``username``/``password`` keys, or ``None``.

    Returns:
        ``""`` unless both username and password are non-empty, otherwise
        e.g. ``"Basic YWxpY2U6czNjcmV0"``.

    Example::

        >>> build_authorization({"username": "u", "password": "p"})
        'Basic dTpw'
        >>> build_authorization({"httpauth": "digest", "username": "u", "password": "p"})
        'Digest dTpw'
    """
    auth = _as_config(config)
    if auth is None or not auth.username or not auth.password:
        return ""
    scheme = auth.httpauth or "basic"
    scheme = scheme[:1].upper() + scheme[1:]
    raw = f"{auth.username}:{auth.password}"
    encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return f"{scheme} {encoded}"


def merge_authorization(
    current: Optional[AuthConfig], params: Optional[Mapping[str, Any]]
) -> AuthConfig:
    """Copy the auth keys present in *params* over *current*.

    Keys missing from *params* keep their existing value; unknown keys
    are ignored.
    """
    data = current.model_dump() if current is not None else {}
    for key in AUTH_KEYS:
        if params and key in params:
            data[key] = params[key]
    return AuthConfig.model_validate(data)
