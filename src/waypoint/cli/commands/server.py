"""Server command to start the API."""

import os
from pathlib import Path

import typer
import uvicorn

from waypoint.config.loader import ConfigLoader
from waypoint.core.errors import ConfigError
from waypoint.observability.logging import setup_logging
from waypoint.server.api import CONFIG_PATH_ENV

app = typer.Typer(help="Start API server")


@app.callback(invoke_without_command=True)
def start_server(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to waypoint.yaml", exists=True
    ),
    host: str = typer.Option("0.0.0.0", "--host", "-h"),
    port: int = typer.Option(8000, "--port", "-p", min=1, max=65535),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Start the Waypoint API server."""

    # 1. Validate Config
    try:
        waypoint_config = ConfigLoader.load_or_default(config)
    except ConfigError as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    setup_logging(
        waypoint_config.settings.logging.level, log_file=waypoint_config.settings.logging.file
    )

    # 2. Set Env Vars for the server process (it loads config from env)
    if config is not None:
        os.environ[CONFIG_PATH_ENV] = str(config.absolute())

    typer.echo(f"Starting Waypoint server on http://{host}:{port}")
    typer.echo(f"   Config: {config or 'built-in defaults'}")

    uvicorn.run(
        "waypoint.server.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=waypoint_config.settings.logging.level.lower(),
    )
