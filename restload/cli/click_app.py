"""CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import click

from restload.cli.commands.convert import convert_command
from restload.cli.commands.load import load_command
from restload.cli.commands.serve import serve_command
from restload.cli.types import AppEnv
from restload.lib.log import configure_logging
from restload.version import RESTLOAD_VERSION


@click.group()
@click.version_option(RESTLOAD_VERSION, prog_name="restload")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Auto-load settings JSON (default: $XDG_CONFIG_HOME/restload/settings.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, settings_path: Path | None, verbose: bool, json_logs: bool) -> None:
    """Pre-populate API-client workspaces from collection exports."""
    configure_logging(verbose=verbose, json_logs=json_logs)
    ctx.obj = AppEnv(settings_path=settings_path, verbose=verbose)


cli.add_command(serve_command)
cli.add_command(load_command)
cli.add_command(convert_command)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
