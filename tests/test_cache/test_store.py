"""Tests for the diskcache-backed CacheStore."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from remotely.cache import DiskCacheStore
from remotely.exceptions import ConfigError


class TestGetSet:
    def test_set_and_get(self, cache_store: DiskCacheStore) -> None:
        assert cache_store.set_item("k", "v") is True
        assert cache_store.get_item("k") == "v"

    def test_miss_returns_none(self, cache_store: DiskCacheStore) -> None:
        assert cache_store.get_item("missing") is None

    def test_namespaces_isolated(self, cache_store: DiskCacheStore) -> None:
        cache_store.set_item("k", "one", {"namespace": "a"})
        cache_store.set_item("k", "two", {"namespace": "b"})
        assert cache_store.get_item("k", {"namespace": "a"}) == "one"
        assert cache_store.get_item("k", {"namespace": "b"}) == "two"
        assert cache_store.get_item("k") is None

    def test_ttl_passed_as_expire(self, cache_store: DiskCacheStore) -> None:
        storage = cache_store.load_storage()
        with patch.object(storage, "set", wraps=storage.set) as spy:
            cache_store.set_item("k", "v", {"ttl": 60})
        assert spy.call_args.kwargs["expire"] == 60

    def test_zero_ttl_never_expires(self, cache_store: DiskCacheStore) -> None:
        storage = cache_store.load_storage()
        with patch.object(storage, "set", wraps=storage.set) as spy:
            cache_store.set_item("k", "v", {"ttl": 0})
        assert spy.call_args.kwargs["expire"] is None

    def test_expired_entry_is_miss(self, cache_store: DiskCacheStore) -> None:
        cache_store.set_item("k", "v", {"ttl": 60})
        with patch("time.time", return_value=10**12):
            assert cache_store.get_item("k") is None


class TestStorages:
    def test_storage_directories(self, tmp_path: Path) -> None:
        store = DiskCacheStore(tmp_path)
        store.set_item("k", "v", storage="fast")
        store.close()
        assert (tmp_path / "fast").is_dir()

    def test_load_storage_reuses_handle(self, cache_store: DiskCacheStore) -> None:
        assert cache_store.load_storage("x") is cache_store.load_storage("x")

    def test_handle_accepted_as_storage(self, cache_store: DiskCacheStore) -> None:
        handle = cache_store.load_storage("x")
        cache_store.set_item("k", "v", storage=handle)
        assert cache_store.get_item("k", storage="x") == "v"

    @pytest.mark.parametrize("name", ["../escape", "a/b", "with space"])
    def test_invalid_names_rejected(self, cache_store: DiskCacheStore, name: str) -> None:
        with pytest.raises(ConfigError):
            cache_store.load_storage(name)


class TestMaintenance:
    def test_clear_counts_all_storages(self, tmp_path: Path) -> None:
        store = DiskCacheStore(tmp_path)
        store.set_item("a", "1")
        store.set_item("b", "2", storage="other")
        store.close()

        reopened = DiskCacheStore(tmp_path)
        assert reopened.clear() == 2
        assert reopened.get_item("a") is None
        reopened.close()

    def test_stats(self, tmp_path: Path) -> None:
        store = DiskCacheStore(tmp_path)
        store.set_item("a", "1")
        store.set_item("b", "2")
        stats = store.stats()
        store.close()
        assert stats == {"directory": str(tmp_path), "storages": {"default": 2}}

    def test_stats_on_missing_directory(self, tmp_path: Path) -> None:
        store = DiskCacheStore(tmp_path / "never-created")
        assert store.stats()["storages"] == {}
