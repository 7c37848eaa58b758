#!/usr/bin/env python3
"""Main CLI entry point for the capture service using Typer."""

import asyncio
import json
import sys
from typing import Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..api.main import configure_logging, run_server
from ..api.schemas import StatusResponse
from ..config import ServiceConfig
from ..errors import CaptureServiceError
from ..session.runtime import CaptureRuntime


app = typer.Typer(
    name="capture-service",
    help="Headless browser session capture service",
    add_completion=False,
)


def load_config(port: Optional[int] = None, home_url: Optional[str] = None) -> ServiceConfig:
    """Read environment configuration and apply command line overrides."""
    try:
        config = ServiceConfig.from_environment()
        if port is not None:
            config.port = port
        if home_url is not None:
            config.home_url = home_url
        config.validate()
    except CaptureServiceError as e:
        typer.echo(f"Configuration error: {e.message}", err=True)
        raise typer.Exit(code=2)
    return config


@app.callback()
def main():
    """
    Capture Service - replays a tab click on the target site and extracts
    session cookies and the anti-forgery token.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"capture-service v{__version__}")


@app.command()
def serve(
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to listen on (overrides PORT)")
    ] = None,
    home_url: Annotated[
        Optional[str],
        typer.Option("--home-url", help="Target page URL (overrides HOME_URL)")
    ] = None,
):
    """Run the HTTP service with /ping and /status."""
    run_server(load_config(port=port, home_url=home_url))


@app.command()
def capture(
    home_url: Annotated[
        Optional[str],
        typer.Option("--home-url", help="Target page URL (overrides HOME_URL)")
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logging")
    ] = False,
):
    """Start a browser session, run one capture and print the JSON result."""
    config = load_config(home_url=home_url)
    configure_logging("DEBUG" if verbose else config.log_level)

    try:
        payload = asyncio.run(_capture_once(config))
    except CaptureServiceError as e:
        typer.echo(json.dumps({"error": e.error_code, "message": e.message}), err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(payload, indent=2))


async def _capture_once(config: ServiceConfig) -> dict:
    runtime = CaptureRuntime(config)
    pipeline = await runtime.start()
    try:
        report = await pipeline.run()
    finally:
        await runtime.stop()
    return StatusResponse.from_report(report).model_dump(mode="json", by_alias=True)


@app.command(name="show-config")
def show_config():
    """Print the effective configuration."""
    config = load_config()
    typer.echo(json.dumps(config.to_dict(), indent=2))


def cli_main():
    """Console script entry point."""
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("\nInterrupted", err=True)
        sys.exit(130)


if __name__ == "__main__":
    cli_main()
