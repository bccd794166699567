"""Typer application and CLI entry point for remotely.

Registers the request commands (``get``, ``post``, ``upload``) and the
``cache`` and ``config`` sub-command groups.  :func:`main` is the console
script declared in ``pyproject.toml``: :class:`~remotely.exceptions.RemotelyError`
exits with its ``exit_code``, anything else is written to a crash log
under the data directory.

See Also:
    :mod:`remotely.commands.request`: The request commands.
    :mod:`remotely.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from remotely import __version__
from remotely.exit_codes import EXIT_GENERIC_FAILURE

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = typer.Typer(
    name="remotely",
    help="Fetch, post and upload to remote HTTP(S) resources.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"remotely {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and request logging."
    ),
) -> None:
    """Install the global output manager and configure logging.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Show debug messages and set the ``remotely`` logger to DEBUG.
    """
    from remotely.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _configure_logging(verbose: bool) -> None:
    """Send ``remotely.*`` log records to stderr; DEBUG when verbose."""
    logging.basicConfig(stream=sys.stderr, format=_LOG_FORMAT)
    logging.getLogger("remotely").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to ``<data_dir>/logs`` and return its path."""
    from remotely.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def register_commands() -> None:
    """Attach the built-in commands to :data:`app` (idempotent)."""
    if getattr(app, "_remotely_registered", False):
        return
    from remotely.commands.cache import cache_app
    from remotely.commands.config import config_app
    from remotely.commands.request import get_command, post_command, upload_command

    app.command("get")(get_command)
    app.command("post")(post_command)
    app.command("upload")(upload_command)
    app.add_typer(cache_app, name="cache", help="Manage cached GET results.")
    app.add_typer(config_app, name="config", help="Inspect configuration.")
    app._remotely_registered = True  # type: ignore[attr-defined]


def main() -> None:
    """CLI entry point invoked by the ``remotely`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from remotely.exceptions import RemotelyError
        from remotely.output import error

        if isinstance(exc, RemotelyError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
