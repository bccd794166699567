"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for remotely:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.remotely/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Config file** -- A single :class:`~remotely.models.RemoteConfig` JSON
  file holding the default adapter, cache defaults, the application
  identifier and stored credentials.
* **Environment overrides** -- :func:`load_config` lets ``REMOTELY_ENV``,
  ``REMOTELY_IDENTIFIER`` and ``REMOTELY_ADAPTER`` win over the file, and
  ``REMOTELY_CONFIG`` point at a different file altogether.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from remotely.exceptions import ConfigError
from remotely.models import RemoteConfig

_APP_NAME = "remotely"
_CONFIG_FILENAME = "config.json"

_ENV_OVERRIDES = {
    "REMOTELY_ENV": "environment",
    "REMOTELY_IDENTIFIER": "identifier",
    "REMOTELY_ADAPTER": "adapter",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/remotely/`` (default ``~/.config/remotely/``).
    On macOS/Windows: ``~/.remotely/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the :mod:`diskcache` storages used for GET results.  Cached data
    can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/remotely/`` (default ``~/.cache/remotely/``).
    On macOS/Windows: ``~/.remotely/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary."""
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def config_path() -> Path:
    """Path to the active config file (``REMOTELY_CONFIG`` wins)."""
    override = os.environ.get("REMOTELY_CONFIG")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> RemoteConfig:
    """Load the configuration and apply environment overrides.

    Args:
        path: Explicit config file.  Defaults to :func:`config_path`.

    Returns:
        The validated :class:`~remotely.models.RemoteConfig`.  A missing
        file yields the defaults (still subject to env overrides).

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = path or config_path()
    data: dict = {}
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config at {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config at {path}: expected a JSON object")

    for env_var, field in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    try:
        return RemoteConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: RemoteConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written."""
    path = path or config_path()
    data = config.model_dump(mode="json", exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path
