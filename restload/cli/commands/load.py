"""Load command: run the auto-load orchestrator against a workspace file."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from restload.autoload import auto_load
from restload.cli.helpers import fail, load_effective_settings
from restload.cli.types import AppEnv
from restload.errors import ConfigError
from restload.lib.json import dumps
from restload.settings import validate_settings
from restload.workspace import MemoryWorkspaceStore, load_workspace, save_workspace


@click.command("load")
@click.argument("workspace_file", type=click.Path(path_type=Path, dir_okay=False))
@click.option("--workspace-id", default=None, help="Id for a new workspace (default: file stem)")
@click.option("--config", "config_file", default=None, help="Override the auto-load config location")
@click.option("--import-type", default=None, help="Override default_import_type (native, Postman, Insomnia, OpenAPI, auto)")
@click.option("--force", is_flag=True, help="Load even if the workspace already has collections")
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON")
@click.pass_obj
def load_command(
    env: AppEnv,
    workspace_file: Path,
    workspace_id: str | None,
    config_file: str | None,
    import_type: str | None,
    force: bool,
    json_output: bool,
) -> None:
    """Populate WORKSPACE_FILE from the configured collection and environment sources."""
    settings = load_effective_settings(env, "load")
    if config_file:
        settings.config_file = config_file
    if import_type:
        settings.default_import_type = import_type
    if force:
        settings.skip_on_existing_data = False
    try:
        validate_settings(settings)
    except ConfigError as exc:
        fail("load", str(exc))

    try:
        workspace = load_workspace(workspace_file, workspace_id=workspace_id)
    except ConfigError as exc:
        fail("load", str(exc))
    store = MemoryWorkspaceStore(workspace)

    result = asyncio.run(auto_load(workspace, store, settings=settings))
    if result.success:
        save_workspace(workspace_file, workspace)

    if json_output:
        click.echo(dumps(result.as_dict(), indent=True))
    elif result.success:
        click.echo(
            f"Loaded {result.collections_loaded} collection file(s) and "
            f"{result.environments_loaded} environment(s) into {workspace_file}"
        )
    if not result.success:
        fail("load", result.error or "auto-load failed")
