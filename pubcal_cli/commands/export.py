"""Export a calendar's published ICS file."""

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context
from pubcal_cli.display import console

logger = logging.getLogger(__name__)


def export(
    calendar_id: Annotated[
        str,
        typer.Argument(help="Calendar ID to export"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
) -> None:
    """Export the published calendar file (the same bytes clients download)."""
    ctx = get_context()

    try:
        ical_content = ctx.manager.get_artifact_bytes(calendar_id)
    except PubcalError as e:
        logger.error(f"Failed to export calendar '{calendar_id}': {e}")
        raise typer.Exit(1)

    if output is None:
        typer.echo(ical_content.decode("utf-8"), nl=False)
        return

    output.write_bytes(ical_content)
    console.print(f"[bold green]✓[/bold green] Calendar written to {output}")
