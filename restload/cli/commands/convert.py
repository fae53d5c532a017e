"""Convert command: normalize one export file and print the canonical bundle."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from restload.autoload import process_import_file
from restload.cli.helpers import fail
from restload.errors import RestloadError
from restload.lib.json import dumps
from restload.readers import FilesystemReader


@click.command("convert")
@click.argument("source", type=click.Path(path_type=Path, dir_okay=False, exists=True))
@click.option("--import-type", "-t", default="auto", show_default=True, help="native, Postman, Insomnia, OpenAPI or auto")
@click.option("--workspace-id", default="workspace", show_default=True)
def convert_command(source: Path, import_type: str, workspace_id: str) -> None:
    """Print SOURCE converted to the native collection tree as JSON."""
    try:
        raw = asyncio.run(FilesystemReader().fetch(str(source)))
        bundle = process_import_file(raw, import_type, workspace_id)
    except RestloadError as exc:
        fail("convert", str(exc))
    if bundle.is_empty:
        fail("convert", f"nothing imported from {source} as {import_type}")
    payload = {
        "collection": bundle.tree,
        "plugins": bundle.plugins,
        "environments": bundle.environments,
    }
    click.echo(dumps(payload, indent=True))
