"""GET result caching for remotely.

This package provides :class:`CacheCoordinator`, which decides per call
whether and under which key a GET result is cached, and the
:class:`CacheStore` interface it reads and writes through, with the
:mod:`diskcache`-backed :class:`DiskCacheStore` as default.

The coordinator is consumed by :class:`~remotely.remote.Remote` and is
controlled by the ``cache`` field of
:class:`~remotely.models.RemoteConfig` plus the per-call ``cache`` option.
"""

from remotely.cache.coordinator import (
    CacheCoordinator,
    make_cache_key,
    resolve_cache_options,
)
from remotely.cache.store import CacheStore, DiskCacheStore

__all__ = [
    "CacheCoordinator",
    "CacheStore",
    "DiskCacheStore",
    "make_cache_key",
    "resolve_cache_options",
]
