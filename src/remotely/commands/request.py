"""Request commands -- ``remotely get``, ``post`` and ``upload``.

Each command loads the configuration, builds a disk-cached
:class:`~remotely.remote.Remote` and prints the decoded response body to
stdout.  A failed request prints the cause to stderr and exits with
:data:`~remotely.exit_codes.EXIT_REQUEST_FAILED`.

Example::

    remotely get https://api.example.com/users -p page=2 -H "Accept: application/json"
    remotely post https://api.example.com/users -p name=alice
    remotely upload https://api.example.com/files ./report.pdf --stream
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import typer

from remotely.exceptions import InvalidUsageError, RemotelyError
from remotely.exit_codes import EXIT_REQUEST_FAILED
from remotely.output import debug, error, format_response
from remotely.result import RemoteResult

if TYPE_CHECKING:
    from remotely.remote import Remote


def parse_pairs(values: Optional[list[str]]) -> dict[str, Any]:
    """Turn ``key=value`` strings into a mapping.

    ``key[]=value`` accumulates a list, so ``-p tag[]=a -p tag[]=b``
    sends ``tag`` twice.

    Raises:
        InvalidUsageError: If an entry has no ``=``.
    """
    params: dict[str, Any] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected key=value, got: {item!r}")
        if key.endswith("[]"):
            params.setdefault(key[:-2], []).append(value)
        else:
            params[key] = value
    return params


def parse_headers(values: Optional[list[str]]) -> dict[str, str]:
    """Turn ``"Name: value"`` strings into a header mapping.

    Raises:
        InvalidUsageError: If an entry has no colon.
    """
    headers: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Expected 'Name: value', got: {item!r}")
        headers[name.strip()] = value.strip()
    return headers


def _open_remote(adapter: Optional[str]) -> Remote:
    from remotely.config import load_config
    from remotely.remote import Remote

    config = load_config()
    if adapter:
        config = config.model_copy(update={"adapter": adapter})
    debug(f"Using {config.adapter} transport")
    return Remote.from_config(config)


def _emit(result: RemoteResult) -> None:
    if not result.ok:
        error(str(result.error))
        raise typer.Exit(code=EXIT_REQUEST_FAILED)
    format_response(result.value)


def _fail(exc: RemotelyError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


_PARAM_HELP = "Parameter as key=value (repeatable)."
_HEADER_HELP = "Header as 'Name: value' (repeatable)."
_ADAPTER_HELP = "Transport to use instead of the configured one."


def get_command(
    url: str = typer.Argument(help="Absolute http(s) URL."),
    param: Optional[list[str]] = typer.Option(None, "--param", "-p", help=_PARAM_HELP),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    cache: Optional[bool] = typer.Option(
        None, "--cache/--no-cache", help="Force caching on or off for this request."
    ),
    adapter: Optional[str] = typer.Option(None, "--adapter", "-a", help=_ADAPTER_HELP),
) -> None:
    """Fetch a URL with GET and print the response body.

    Raises:
        typer.Exit: With the request-failed code when the request fails,
            or the error's own code for invalid input or configuration.
    """
    options = {} if cache is None else {"cache": cache}
    try:
        params = parse_pairs(param)
        headers = parse_headers(header)
        with _open_remote(adapter) as remote:
            result = remote.get_result(url, params, headers, options)
    except RemotelyError as exc:
        raise _fail(exc) from None
    _emit(result)


def post_command(
    url: str = typer.Argument(help="Absolute http(s) URL."),
    param: Optional[list[str]] = typer.Option(None, "--param", "-p", help=_PARAM_HELP),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Raw request body (replaces --param)."
    ),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    adapter: Optional[str] = typer.Option(None, "--adapter", "-a", help=_ADAPTER_HELP),
) -> None:
    """Send a form POST and print the response body.

    With ``--data`` the body is sent verbatim and ``appkey`` stays on the
    query string.
    """
    try:
        params: Any = data if data is not None else parse_pairs(param)
        headers = parse_headers(header)
        with _open_remote(adapter) as remote:
            result = remote.post_result(url, params, headers)
    except RemotelyError as exc:
        raise _fail(exc) from None
    _emit(result)


def upload_command(
    url: str = typer.Argument(help="Absolute http(s) URL."),
    file: Path = typer.Argument(
        help="File to upload.", exists=True, dir_okay=False, readable=True
    ),
    param: Optional[list[str]] = typer.Option(None, "--param", "-p", help=_PARAM_HELP),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    stream: bool = typer.Option(
        False, "--stream", help="PUT the file contents instead of posting its path."
    ),
    adapter: Optional[str] = typer.Option(None, "--adapter", "-a", help=_ADAPTER_HELP),
) -> None:
    """Upload a file.

    By default the path is posted as ``file=@<path>``.  With ``--stream``
    the file is opened and its bytes are sent as the body of a PUT.
    """
    try:
        params = parse_pairs(param)
        headers = parse_headers(header)
        with _open_remote(adapter) as remote:
            if stream:
                with file.open("rb") as handle:
                    result = remote.upload_result(url, handle, params, headers)
            else:
                result = remote.upload_result(url, str(file), params, headers)
    except RemotelyError as exc:
        raise _fail(exc) from None
    _emit(result)
