"""Serve command."""

from __future__ import annotations

import os
from pathlib import Path

import click

from restload.cli.helpers import fail


@click.command("serve")
@click.option("--host", default="127.0.0.1", help="Host to bind")
@click.option("--port", default=4004, help="Port to bind")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Auto-load config YAML (default: $RESTLOAD_SERVICE_CONFIG)",
)
@click.option(
    "--cache-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Cache directory (default: $RESTLOAD_CACHE_DIR)",
)
def serve_command(host: str, port: int, config_path: Path | None, cache_dir: Path | None) -> None:
    """Start the auto-load readiness and cache service."""
    try:
        import uvicorn
    except ImportError:
        fail("serve", "uvicorn not installed. Install with the [server] extra.")

    # The app factory reads these when building its service
    if config_path is not None:
        os.environ["RESTLOAD_SERVICE_CONFIG"] = str(config_path)
    if cache_dir is not None:
        os.environ["RESTLOAD_CACHE_DIR"] = str(cache_dir)

    click.echo(f"Restload auto-load service on http://{host}:{port}/api/auto-load/status", err=True)
    uvicorn.run("restload.server.app:create_app", factory=True, host=host, port=port)
