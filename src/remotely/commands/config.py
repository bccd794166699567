"""Config commands -- view the effective configuration.

The effective configuration is the config file with the ``REMOTELY_*``
environment overrides applied.  Stored passwords are masked.

Example::

    remotely config show
    remotely config show --json
    remotely config path
"""

from __future__ import annotations

import typer

from remotely.exceptions import ConfigError
from remotely.output import error, format_response, info


config_app = typer.Typer(no_args_is_help=True)

_MASK = "********"


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Raises:
        typer.Exit: With the config error's exit code if the file is invalid.
    """
    from remotely.config import config_path, load_config

    try:
        config = load_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    data = config.model_dump(mode="json")
    auth = data.get("authorization")
    if auth and auth.get("password"):
        auth["password"] = _MASK
    info(f"Config file: {config_path()}")
    format_response(data)


@config_app.command("path")
def config_path_command() -> None:
    """Print the path of the config file in use."""
    from remotely.config import config_path

    format_response(str(config_path()))
