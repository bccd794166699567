"""Request orchestration: GET / POST / upload with auth, appkey and caching.

This module provides :class:`Remote`, the facade callers use to reach a
remote HTTP(S) resource.  Each request runs the same pipeline:

- **Cache short-circuit** (GET only) -- a hit in the
  :class:`~remotely.cache.CacheCoordinator` returns immediately with no
  network traffic.
- **URL canonicalisation** -- the URL's query string is folded into the
  parameters and ``appkey`` is injected (:mod:`remotely.urls`).
- **Header / auth injection** -- ``User-Agent`` and ``Authorization``
  (:mod:`remotely.headers`).
- **Transport dispatch** -- connect, write, read through the active
  :class:`~remotely.transport.Transport`.
- **Response interpretation** -- :mod:`remotely.response`.
- **Cache write-back** (GET only, successful results only).

Request-level failures never raise: the plain methods return ``False``
and the ``*_result`` variants return a
:class:`~remotely.result.RemoteResult` carrying the cause.  Configuration
mistakes (unknown adapter, malformed URL) do raise.

Example::

    from remotely import Remote

    with Remote.from_config() as remote:
        users = remote.get("https://api.example.com/users", {"page": 2})
        if users is False:
            ...
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

import httpx
from pydantic import ValidationError

from remotely.auth import build_authorization, merge_authorization
from remotely.cache import CacheCoordinator, CacheStore, DiskCacheStore
from remotely.exceptions import InvalidUsageError, TransportError
from remotely.headers import canonize_headers, pop_header
from remotely.models import HTTPMethod, RemoteConfig, UploadOptions
from remotely.response import RawResponse, parse_response_result
from remotely.result import RemoteResult
from remotely.transport import Transport, load_adapter
from remotely.transport.base import Body
from remotely.urls import (
    build_query,
    canonize_url,
    connection_target,
    flatten_params,
    resolve_url,
    with_query,
)

logger = logging.getLogger(__name__)

HTTP_VERSION = "1.1"

Params = Union[Mapping[str, Any], str, bytes, None]
UploadSource = Union[str, "os.PathLike[str]", BinaryIO]


class Remote:
    """Remote-resource access facade.

    Owns a lazily built default transport that is reused across calls.
    Pass an explicit adapter name to :meth:`adapter` for an independent
    transport.  Instances are not thread-safe; use one per thread.

    Args:
        config: Adapter, cache, identifier, environment and credential
            settings.  Copied, so :meth:`set_authorization` does not
            mutate the caller's object.
        cache_store: Backing store for GET results.  ``None`` disables
            caching regardless of options.
        adapter: Pre-built default transport, e.g. a
            :class:`~remotely.transport.MockTransport` in tests.
    """

    def __init__(
        self,
        config: Optional[RemoteConfig] = None,
        cache_store: Optional[CacheStore] = None,
        adapter: Optional[Transport] = None,
    ) -> None:
        self._config = (config or RemoteConfig()).model_copy(deep=True)
        self._cache = CacheCoordinator(cache_store)
        self._adapter = adapter

    @classmethod
    def from_config(cls, config: Optional[RemoteConfig] = None) -> Remote:
        """Build a :class:`Remote` with a disk cache from *config* (or the loaded one)."""
        from remotely.config import get_cache_dir, load_config

        config = config or load_config()
        cache_dir = Path(config.cache_dir) if config.cache_dir else get_cache_dir()
        return cls(config, cache_store=DiskCacheStore(cache_dir))

    @property
    def config(self) -> RemoteConfig:
        return self._config

    @property
    def cache(self) -> CacheCoordinator:
        return self._cache

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Remote:
        return self

    def __exit__(self, *args: object) -> None:
        if self._adapter is not None:
            self._adapter.close()
        if self._cache.backend is not None:
            self._cache.backend.close()

    # ------------------------------------------------------------------ #
    # Adapter selection
    # ------------------------------------------------------------------ #

    def adapter(
        self, name: Optional[str] = None, options: Optional[Mapping[str, Any]] = None
    ) -> Transport:
        """Return a transport.

        With *name*, a fresh transport is built on every call.  Without,
        the default transport is built once from ``config.adapter`` and
        ``config.adapter_options[adapter]`` merged with *options*, then
        reused.

        Raises:
            AdapterResolutionError: If the adapter name is not registered.
        """
        if name:
            return self.load_adapter(name, options)
        if self._adapter is None:
            default = self._config.adapter
            merged = {**self._config.adapter_options.get(default, {}), **(options or {})}
            self._adapter = self.load_adapter(default, merged)
        return self._adapter

    def load_adapter(
        self, name: str, options: Optional[Mapping[str, Any]] = None
    ) -> Transport:
        """Build a new transport from the registry."""
        return load_adapter(name, options)

    # ------------------------------------------------------------------ #
    # Low-level passthroughs
    # ------------------------------------------------------------------ #

    def connect(
        self, host: Union[str, httpx.URL], port: int = 80, secure: bool = False
    ) -> None:
        """Connect the default transport.

        *host* may be a URL, in which case host, port and TLS are derived
        from it.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if isinstance(host, httpx.URL):
            host, port, secure = connection_target(host)
        self.adapter().connect(host, port, secure)

    def write(
        self,
        method: str,
        url: Union[str, httpx.URL],
        http_version: str = HTTP_VERSION,
        headers: Optional[Mapping[str, Any]] = None,
        body: Body = "",
        options: Optional[Mapping[str, Any]] = None,
    ) -> Union[str, bool]:
        """Send a request on the open connection; ``False`` on failure."""
        try:
            return self._write(method, url, http_version, headers, body, options)
        except TransportError as exc:
            logger.warning("Remote access error: %s", exc)
            return False

    def read(self) -> Union[bytes, bool]:
        """Read the raw response; ``False`` on failure."""
        try:
            return self.adapter().read()
        except TransportError as exc:
            logger.warning("Remote access error: %s", exc)
            return False

    def close(self) -> None:
        """Close the default transport's connection."""
        self.adapter().close()

    def _write(
        self,
        method: str,
        url: Union[str, httpx.URL],
        http_version: str,
        headers: Optional[Mapping[str, Any]],
        body: Body,
        options: Optional[Mapping[str, Any]],
    ) -> str:
        transport = self.adapter()
        if options:
            transport.set_options(options)
        return transport.write(
            method.upper(),
            resolve_url(url),
            http_version,
            self.canonize_headers(headers),
            body,
        )

    # ------------------------------------------------------------------ #
    # Auth / canonicalisation
    # ------------------------------------------------------------------ #

    def set_authorization(self, params: Optional[Mapping[str, Any]]) -> Remote:
        """Store ``httpauth`` / ``username`` / ``password`` for later requests."""
        self._config.authorization = merge_authorization(
            self._config.authorization, params
        )
        return self

    def build_authorization(self, params: Optional[Mapping[str, Any]]) -> str:
        """Build an ``Authorization`` header value from *params*."""
        return build_authorization(params)

    def canonize_headers(self, headers: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        return canonize_headers(
            headers, self._config.authorization, self._config.user_agent
        )

    def canonize_url(
        self, url: str, params: Optional[Mapping[str, Any]] = None
    ) -> tuple[str, dict[str, Any]]:
        return canonize_url(url, params, self._config.identifier)

    def parse_response(self, raw: RawResponse) -> Any:
        """Interpret *raw* response text; ``False`` on failure."""
        return parse_response_result(raw).value_or_false()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform a GET.

        Args:
            url: Absolute URL, optionally with a query string.
            params: Query parameters, merged over the URL's own.  List
                values are sent comma-joined.
            headers: Extra request headers.
            options: ``cache`` (``bool``, storage name, TTL or mapping)
                plus transport options passed through verbatim.

        Returns:
            The decoded JSON document or body text, or ``False`` on failure.
        """
        return self.get_result(url, params, headers, options).value_or_false()

    def post(
        self,
        url: str,
        params: Params = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform a form POST.  *params* may also be a raw ``str``/``bytes`` body."""
        return self.post_result(url, params, headers, options).value_or_false()

    def upload(
        self,
        url: str,
        file: UploadSource,
        params: Params = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Upload a file by path (POST) or from an open binary stream (PUT)."""
        return self.upload_result(url, file, params, headers, options).value_or_false()

    def get_result(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> RemoteResult:
        """Like :meth:`get` but return a :class:`~remotely.result.RemoteResult`."""
        options = dict(options or {})
        spec = self._cache.spec_for(
            url,
            params,
            headers,
            option=options.pop("cache", None),
            default=self._config.cache,
            environment=self._config.environment,
        )
        if spec is not None:
            hit, value = self._cache.lookup(spec)
            if hit:
                return RemoteResult.success(value)

        base, query = self.canonize_url(url, params)
        target = with_query(resolve_url(base), flatten_params(query))
        result = self._exchange(HTTPMethod.GET, target, headers, "", options)

        # A JSON ``false`` body would read back as the failure sentinel.
        if spec is not None and result.ok and result.value is not False:
            self._cache.store(spec, result.value)
        return result

    def post_result(
        self,
        url: str,
        params: Params = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> RemoteResult:
        """Like :meth:`post` but return a :class:`~remotely.result.RemoteResult`."""
        target, body = self._prepare_body(url, params)
        return self._exchange(HTTPMethod.POST, target, headers, body, dict(options or {}))

    def upload_result(
        self,
        url: str,
        file: UploadSource,
        params: Params = None,
        headers: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> RemoteResult:
        """Like :meth:`upload` but return a :class:`~remotely.result.RemoteResult`.

        **Path mode** (*file* is a ``str`` or path-like): sets
        ``params["file"] = "@" + path`` and delegates to :meth:`post_result`.

        **Resource mode** (*file* is an open binary stream): the byte
        length comes from a ``Content-Length`` header, else a ``size``
        option (both removed), else the stream itself.  The stream is sent
        as the body of a PUT and the connection is always closed
        afterwards.
        """
        if isinstance(file, (str, os.PathLike)):
            if isinstance(params, (str, bytes)):
                raise InvalidUsageError("Uploading by path requires params as a mapping")
            merged = dict(params or {})
            merged["file"] = "@" + os.fspath(file)
            return self.post_result(url, merged, headers, options)

        headers = dict(headers or {})
        options = dict(options or {})
        size = _coerce_size(pop_header(headers, "Content-Length"))
        option_size = _upload_options(options).size
        if size is None:
            size = option_size
        if size is None:
            size = _stream_size(file)

        target, body = self._prepare_body(url, params)
        self.adapter().set_upload(file, size)
        return self._exchange(HTTPMethod.PUT, target, headers, body, options, close=True)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _prepare_body(self, url: str, params: Params) -> tuple[httpx.URL, Body]:
        """Canonicalise *url* and encode *params* as a request body.

        A raw ``str``/``bytes`` payload is sent untouched; the canonical
        query (including ``appkey``) then stays on the URL.
        """
        if isinstance(params, (str, bytes)):
            base, query = self.canonize_url(url)
            return with_query(resolve_url(base), query), params
        base, merged = self.canonize_url(url, params)
        return resolve_url(base), build_query(merged)

    def _exchange(
        self,
        method: HTTPMethod,
        url: httpx.URL,
        headers: Optional[Mapping[str, Any]],
        body: Body,
        options: Mapping[str, Any],
        close: bool = False,
    ) -> RemoteResult:
        """Connect, write, read and parse, capturing transport failures."""
        try:
            try:
                self.connect(url)
                self._write(method.value, url, HTTP_VERSION, headers, body, options)
                raw = self.adapter().read()
            finally:
                if close:
                    self.adapter().clear_upload()
                    self.close()
        except TransportError as exc:
            logger.warning("Remote access error: %s", exc)
            return RemoteResult.failure(exc)
        return parse_response_result(raw)


def _coerce_size(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        size = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidUsageError(f"Invalid Content-Length: {value!r}") from exc
    if size < 0:
        raise InvalidUsageError(f"Invalid Content-Length: {value!r}")
    return size


def _upload_options(options: dict[str, Any]) -> UploadOptions:
    try:
        return UploadOptions.model_validate({"size": options.pop("size", None)})
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid upload size: {exc}") from exc


def _stream_size(stream: BinaryIO) -> int:
    """Size of *stream* from ``fstat``, or by seeking when it has no file descriptor."""
    try:
        return os.fstat(stream.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        pass
    position = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return end - position
