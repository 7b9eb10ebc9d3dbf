"""Command line entry point for running the console server."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import uvicorn

from console_server.api.main import create_app
from console_server.config import load_settings, with_overrides

app = typer.Typer(help="Control panel for a single long-running process.")

_LOG_FORMAT = "%(asctime)s [console-server] %(levelname)s %(name)s: %(message)s"


@app.callback()
def main() -> None:
    """Console server commands."""


@app.command()
def serve(
    config: Path | None = typer.Option(
        None, "--config", "-c", envvar="CONSOLE_SERVER_CONFIG", help="Path to a TOML config file"
    ),
    host: str | None = typer.Option(None, help="Override the bind address"),
    port: int | None = typer.Option(None, help="Override the bind port"),
    log_level: str = typer.Option("info", help="Logging level for the server"),
) -> None:
    """Serve the HTTP API, log websocket and frontend."""

    logging.basicConfig(level=log_level.upper(), format=_LOG_FORMAT)
    try:
        settings = with_overrides(load_settings(config), host=host, port=port)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    typer.echo(f"Supervising: {' '.join(settings.argv)} (cwd: {settings.working_dir})")
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    app()
