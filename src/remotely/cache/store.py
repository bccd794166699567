"""Key/value storage for cached GET results.

:class:`CacheStore` is the interface the cache coordinator consumes.
Values are opaque strings, and TTL expiry is the store's job.
:class:`DiskCacheStore` is the default implementation, built on
:mod:`diskcache`.  Each named storage is a separate :class:`diskcache.Cache`
directory under the cache root, and namespaces are key prefixes inside it.

See Also:
    :class:`~remotely.cache.coordinator.CacheCoordinator` -- decides what
    to read and write.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import diskcache

from remotely.exceptions import ConfigError

_STORAGE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class CacheStore(ABC):
    """Abstract string store with TTL and namespaces.

    ``options`` may carry ``namespace`` (a key prefix) and ``ttl``
    (seconds; ``None`` or ``0`` means no expiry).  ``storage`` is a name
    or a handle returned by :meth:`load_storage`; ``None`` selects the
    default storage.
    """

    @abstractmethod
    def load_storage(self, name: Optional[str] = None) -> Any:
        """Return the handle for storage *name*, opening it on first use."""
        ...

    @abstractmethod
    def get_item(
        self,
        key: str,
        options: Optional[Mapping[str, Any]] = None,
        storage: Any = None,
    ) -> Optional[str]:
        """Return the stored string, or ``None`` on a miss or expiry."""
        ...

    @abstractmethod
    def set_item(
        self,
        key: str,
        value: str,
        options: Optional[Mapping[str, Any]] = None,
        storage: Any = None,
    ) -> bool:
        """Store *value* and report whether the write succeeded."""
        ...

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        return 0

    def stats(self) -> dict[str, Any]:
        """Return store statistics."""
        return {}

    def close(self) -> None:
        """Release resources held by the store."""


class DiskCacheStore(CacheStore):
    """Disk-backed :class:`CacheStore` using :class:`diskcache.Cache`.

    Args:
        cache_dir: Root directory.  Storage ``name`` lives in
            ``<cache_dir>/<name>``.

    Example::

        store = DiskCacheStore("/tmp/remotely-cache")
        store.set_item("k", '{"a": 1}', {"namespace": "remote", "ttl": 60})
        store.get_item("k", {"namespace": "remote"})
    """

    DEFAULT_STORAGE = "default"

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._storages: dict[str, diskcache.Cache] = {}

    @property
    def directory(self) -> Path:
        return self._cache_dir

    def load_storage(self, name: Optional[str] = None) -> diskcache.Cache:
        name = name or self.DEFAULT_STORAGE
        if not _STORAGE_NAME.match(name):
            raise ConfigError(f"Invalid cache storage name: {name!r}")
        if name not in self._storages:
            self._storages[name] = diskcache.Cache(str(self._cache_dir / name))
        return self._storages[name]

    def _resolve(self, storage: Any) -> diskcache.Cache:
        if storage is None or isinstance(storage, str):
            return self.load_storage(storage)
        return storage

    @staticmethod
    def _namespaced(key: str, options: Optional[Mapping[str, Any]]) -> str:
        namespace = (options or {}).get("namespace")
        return f"{namespace}:{key}" if namespace else key

    def get_item(
        self,
        key: str,
        options: Optional[Mapping[str, Any]] = None,
        storage: Any = None,
    ) -> Optional[str]:
        return self._resolve(storage).get(self._namespaced(key, options))

    def set_item(
        self,
        key: str,
        value: str,
        options: Optional[Mapping[str, Any]] = None,
        storage: Any = None,
    ) -> bool:
        ttl = (options or {}).get("ttl") or None
        cache = self._resolve(storage)
        return bool(cache.set(self._namespaced(key, options), value, expire=ttl))

    def _open_all(self) -> None:
        if not self._cache_dir.is_dir():
            return
        for child in sorted(self._cache_dir.iterdir()):
            if child.is_dir() and _STORAGE_NAME.match(child.name):
                self.load_storage(child.name)

    def clear(self) -> int:
        self._open_all()
        return sum(cache.clear() for cache in self._storages.values())

    def stats(self) -> dict[str, Any]:
        self._open_all()
        return {
            "directory": str(self._cache_dir),
            "storages": {name: len(cache) for name, cache in self._storages.items()},
        }

    def close(self) -> None:
        for cache in self._storages.values():
            cache.close()
        self._storages.clear()
