"""Delete a calendar."""

import logging

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context

logger = logging.getLogger(__name__)


def delete(
    calendar_id: Annotated[
        str,
        typer.Argument(help="Calendar ID to delete"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Delete a calendar and its calendar file."""
    ctx = get_context()
    manager = ctx.manager

    try:
        record = manager.get_calendar(calendar_id)
    except PubcalError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    if not force:
        print(f"\nDelete calendar '{record.title}' ({calendar_id})")
        print(f"  Events: {len(record.events)}")
        print(f"  Subscribers: {len(record.subscribed_users)}")
        print()
        if not typer.confirm("Continue?"):
            typer.echo("Delete cancelled.")
            return

    try:
        manager.delete_calendar(calendar_id)
    except PubcalError as e:
        outcome = f" ({e.outcome.value})" if e.outcome else ""
        logger.error(f"Failed to delete calendar '{calendar_id}'{outcome}: {e}")
        raise typer.Exit(1)

    print(
        f"\n{typer.style('✓', fg=typer.colors.GREEN, bold=True)} "
        f"Calendar '{calendar_id}' deleted"
    )
