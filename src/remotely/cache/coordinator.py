"""Cache decisions for GET requests.

The coordinator answers three questions per call:

1. **Should this GET be cached?**  :func:`resolve_cache_options` merges
   the per-call ``cache`` option over the configured default.  Caching is
   off when either side is ``False`` or the runtime mode is not
   ``production``.
2. **Under which key?**  :func:`make_cache_key` hashes the URL, params
   and headers exactly as the caller passed them (before ``appkey`` or
   ``User-Agent`` are injected).
3. **Hit or miss?**  :meth:`CacheCoordinator.lookup` and
   :meth:`CacheCoordinator.store` round-trip JSON through the
   :class:`~remotely.cache.store.CacheStore`.

There is no locking: two concurrent misses on the same key both hit the
network and both write.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from remotely.cache.store import CacheStore
from remotely.exceptions import ConfigError
from remotely.models import PRODUCTION, CacheOptions, CacheSpec

logger = logging.getLogger(__name__)

_CACHE_KEYS = ("storage", "ttl")


def make_cache_key(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return a deterministic SHA-256 key for a GET request."""
    parts = [
        url,
        json.dumps(_string_keys(params or {}), sort_keys=True, default=str),
        json.dumps(_string_keys(headers or {}), sort_keys=True, default=str),
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def _string_keys(value: Any) -> Any:
    # json.dumps cannot sort a mapping whose keys mix int and str.
    if isinstance(value, Mapping):
        return {str(k): _string_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_string_keys(v) for v in value]
    return value


def _as_dict(value: Any) -> dict[str, Any]:
    """Normalise one loose cache option into ``storage``/``ttl`` keys."""
    if value is None or isinstance(value, bool):
        return {}
    if isinstance(value, CacheOptions):
        return value.model_dump(exclude_none=True)
    if isinstance(value, str):
        return {"storage": value}
    if isinstance(value, int):
        return {"ttl": value}
    if isinstance(value, Mapping):
        nested = value.get("cache")
        if isinstance(nested, Mapping):
            value = nested
        return {k: value[k] for k in _CACHE_KEYS if value.get(k) is not None}
    raise ConfigError(f"Unsupported cache option: {value!r}")


def resolve_cache_options(
    option: Any = None,
    default: Any = None,
    environment: str = PRODUCTION,
) -> Optional[CacheOptions]:
    """Merge the per-call *option* over the configured *default*.

    Both accept ``bool``, a storage name, a TTL, a mapping or a
    :class:`~remotely.models.CacheOptions`.

    Returns:
        ``None`` when caching is disabled, otherwise the merged options.
        Caching stays off when nothing enables it: the merged options
        are empty and neither side is ``True``.
    """
    if option is False or default is False or environment != PRODUCTION:
        return None
    merged = {**_as_dict(default), **_as_dict(option)}
    if not merged and option is not True and default is not True:
        return None
    try:
        return CacheOptions.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid cache options {merged!r}: {exc}") from exc


class CacheCoordinator:
    """Read-before / write-after cache for GET results.

    Args:
        store: The backing store.  With ``None`` every call is uncached.
    """

    def __init__(self, store: Optional[CacheStore] = None) -> None:
        self._store = store

    @property
    def backend(self) -> Optional[CacheStore]:
        return self._store

    def spec_for(
        self,
        url: str,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, Any]],
        option: Any = None,
        default: Any = None,
        environment: str = PRODUCTION,
    ) -> Optional[CacheSpec]:
        """Resolve the :class:`~remotely.models.CacheSpec` for one GET."""
        if self._store is None:
            return None
        options = resolve_cache_options(option, default, environment)
        if options is None:
            return None
        return CacheSpec(
            key=make_cache_key(url, params, headers),
            storage=options.storage,
            ttl=options.ttl or None,
        )

    @staticmethod
    def _store_options(spec: CacheSpec) -> dict[str, Any]:
        options: dict[str, Any] = {"namespace": spec.namespace}
        if spec.ttl:
            options["ttl"] = spec.ttl
        return options

    def lookup(self, spec: CacheSpec) -> tuple[bool, Any]:
        """Return ``(hit, value)`` for *spec*."""
        assert self._store is not None
        data = self._store.get_item(spec.key, self._store_options(spec), spec.storage)
        if data is None:
            logger.debug("Cache miss: %s", spec.key)
            return False, None
        try:
            value = json.loads(data)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable cache entry %s", spec.key)
            return False, None
        logger.debug("Cache hit: %s", spec.key)
        return True, value

    def store(self, spec: CacheSpec, value: Any) -> bool:
        """JSON-encode *value* and write it under *spec*."""
        assert self._store is not None
        status = self._store.set_item(
            spec.key, json.dumps(value), self._store_options(spec), spec.storage
        )
        logger.debug("Cache store %s: %s", spec.key, status)
        return status
