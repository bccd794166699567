"""Cache commands -- inspect and clear cached GET results.

Example::

    remotely cache stats
    remotely cache clear
"""

from __future__ import annotations

from pathlib import Path

import typer

from remotely.cache import DiskCacheStore
from remotely.output import format_response, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _open_store() -> DiskCacheStore:
    from remotely.config import get_cache_dir, load_config

    config = load_config()
    return DiskCacheStore(Path(config.cache_dir) if config.cache_dir else get_cache_dir())


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the cache directory and the entry count per storage."""
    store = _open_store()
    try:
        format_response(store.stats())
    finally:
        store.close()


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove every cached GET result."""
    store = _open_store()
    try:
        info(f"Clearing {store.directory}")
        removed = store.clear()
    finally:
        store.close()
    success(f"Removed {removed} cached entries.")
