"""Display a calendar and its events."""

import logging

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context
from pubcal_cli.display import CalendarRenderer

logger = logging.getLogger(__name__)


def show(
    calendar_id: Annotated[
        str,
        typer.Argument(help="Calendar ID"),
    ],
) -> None:
    """Display a calendar and its events."""
    ctx = get_context()

    try:
        record = ctx.manager.get_calendar(calendar_id)
    except PubcalError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    CalendarRenderer().render_calendar(record)
