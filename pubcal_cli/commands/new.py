"""Create a new calendar."""

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context
from pubcal_cli.display import console
from pubcal_cli.utils import load_payload

logger = logging.getLogger(__name__)


def new(
    payload_file: Annotated[
        Path,
        typer.Argument(help="JSON file with the calendar (title, events, ...)"),
    ],
    created_by: Annotated[
        str | None,
        typer.Option("--created-by", "-u", help="Owner (overrides the file)"),
    ] = None,
) -> None:
    """Create a new calendar and publish its calendar file.

    Example:
        pubcal new team.json --created-by alice
    """
    ctx = get_context()
    payload = load_payload(payload_file)
    if created_by:
        payload["created_by"] = created_by

    try:
        record = ctx.manager.create_calendar(payload)
    except PubcalError as e:
        logger.error(f"Failed to create calendar: {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓[/bold green] Calendar '{record.title}' created")
    console.print(f"  ID: {record.id}")
    console.print(f"  Events: {len(record.events)}")
    console.print(f"  File: {record.artifact_filename}")
