"""Update an existing calendar."""

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context
from pubcal_cli.display import console
from pubcal_cli.utils import load_payload

logger = logging.getLogger(__name__)


def update(
    calendar_id: Annotated[
        str,
        typer.Argument(help="Calendar ID"),
    ],
    payload_file: Annotated[
        Path,
        typer.Argument(help="JSON file with the fields to change"),
    ],
) -> None:
    """Update a calendar and rewrite its calendar file in place.

    Owner, subscribers and file location are kept from the stored calendar.
    """
    ctx = get_context()
    payload = load_payload(payload_file)

    try:
        record = ctx.manager.update_calendar(calendar_id, payload)
    except PubcalError as e:
        outcome = f" ({e.outcome.value})" if e.outcome else ""
        logger.error(f"Failed to update calendar '{calendar_id}'{outcome}: {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓[/bold green] Calendar '{record.title}' updated")
    console.print(f"  Events: {len(record.events)}")
