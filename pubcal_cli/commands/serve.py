"""Serve the calendar HTTP API."""

import logging

import typer
from typing_extensions import Annotated

from pubcal import create_app
from pubcal_cli.context import get_context

logger = logging.getLogger(__name__)


def serve(
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind"),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to listen on"),
    ] = 5000,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Run Flask in debug mode"),
    ] = False,
) -> None:
    """Serve the calendar HTTP API (development server)."""
    ctx = get_context()
    app = create_app(ctx.config, ctx.manager)
    logger.info(f"Serving calendars from {ctx.config.calendar_dir} on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
