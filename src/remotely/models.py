"""Canonical Pydantic models shared across all remotely modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AuthConfig` and :class:`RemoteConfig`.

**Per-call option models** -- validated from the loose option mappings
callers pass to :meth:`~remotely.remote.Remote.get` and friends:
    :class:`CacheOptions`, :class:`CacheSpec`, :class:`UploadOptions`, and
    :class:`TransportOptions`.

All models use Pydantic v2.  Models that accept transport-specific keys use
``extra="allow"`` so that unknown keys are preserved in ``model_extra``.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_USER_AGENT = "remotely"
"""``User-Agent`` sent when the caller does not supply one."""

DEFAULT_NAMESPACE = "remote"
"""Cache namespace under which GET results are stored."""

PRODUCTION = "production"
"""The only runtime mode in which GET results are cached."""


class HTTPMethod(str, enum.Enum):
    """HTTP methods issued by the request orchestrator."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"


# --- Auth Config ---


class AuthConfig(BaseModel):
    """Stored credentials used to build an ``Authorization`` header.

    ``httpauth`` names the scheme (``basic``, ``digest``...).  It is
    capitalised when the header is built and defaults to ``Basic``.

    Example::

        AuthConfig(username="alice", password="s3cret")
        AuthConfig(httpauth="digest", username="alice", password="s3cret")
    """

    httpauth: Optional[str] = Field(
        default=None, description="Auth scheme name, e.g. basic or digest"
    )
    username: Optional[str] = None
    password: Optional[str] = None


# --- Cache ---


class CacheOptions(BaseModel):
    """Caching knobs for a single GET, after normalisation.

    Both fields are optional: an empty instance still enables caching
    with the store's default storage and no expiry.
    """

    storage: Optional[str] = Field(
        default=None, description="Named storage backend to load"
    )
    ttl: Optional[int] = Field(
        default=None, ge=0, description="Time-to-live in seconds"
    )


class CacheSpec(BaseModel):
    """The resolved, per-call decision to cache a GET result.

    Produced by :meth:`~remotely.cache.coordinator.CacheCoordinator.spec_for`.
    A ``None`` spec means caching is disabled for the call.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    storage: Optional[str] = None
    ttl: Optional[int] = None
    namespace: str = DEFAULT_NAMESPACE


# --- Upload / transport ---


class UploadOptions(BaseModel):
    """Options recognised by resource-mode uploads."""

    model_config = ConfigDict(extra="allow")

    size: Optional[int] = Field(
        default=None, ge=0, description="Byte length override for the stream"
    )


class TransportOptions(BaseModel):
    """Settings shared by every transport.

    Keys a transport does not know about are kept in ``model_extra`` and
    passed through untouched.
    """

    model_config = ConfigDict(extra="allow")

    timeout: float = Field(default=30, gt=0, description="Timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    follow_redirects: bool = Field(
        default=False, description="Follow 3xx responses inside the transport"
    )


# --- Top-level config ---


class RemoteConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/remotely/config.json``.

    Loaded by :func:`~remotely.config.load_config`.  Environment variables
    (``REMOTELY_ENV``, ``REMOTELY_IDENTIFIER``, ``REMOTELY_ADAPTER``)
    override the values read from disk.

    The ``cache`` field keeps the loose historical shape: ``False``
    disables caching, a string names a storage, an integer is a TTL and
    a mapping holds both (optionally wrapped as ``{"cache": {...}}``).
    """

    adapter: str = Field(default="httpx", description="Default transport name")
    adapter_options: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-transport option mappings keyed by adapter name",
    )
    cache: Union[bool, int, str, dict[str, Any], None] = None
    identifier: Optional[str] = Field(
        default=None, description="Application identifier sent as appkey"
    )
    environment: str = Field(default=PRODUCTION, description="Runtime mode")
    user_agent: str = DEFAULT_USER_AGENT
    authorization: Optional[AuthConfig] = None
    cache_dir: Optional[str] = Field(
        default=None, description="Override the diskcache root directory"
    )
