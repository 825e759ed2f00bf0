"""Search calendars by title, description or tag."""

import logging

import typer
from typing_extensions import Annotated

from pubcal.exceptions import PubcalError
from pubcal_cli.context import get_context
from pubcal_cli.display import CalendarRenderer

logger = logging.getLogger(__name__)


def search(
    query: Annotated[
        str | None,
        typer.Argument(help="Text to look for (omit to list all calendars)"),
    ] = None,
    skip: Annotated[
        int,
        typer.Option("--skip", help="Number of results to skip", min=0),
    ] = 0,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Maximum number of results", min=1),
    ] = None,
) -> None:
    """Search calendars by title, description or tag.

    Examples:
        pubcal search                 # All calendars (first page)
        pubcal search football        # Matching calendars
        pubcal search team --skip 10  # Next page
    """
    ctx = get_context()
    limit = limit or ctx.config.search_page_size

    try:
        records = ctx.manager.search_calendars(query, skip=skip, limit=limit)
    except PubcalError as e:
        logger.error(f"Failed to search calendars: {e}")
        raise typer.Exit(1)

    logger.info(f"Found {len(records)} calendar(s)")
    CalendarRenderer().render_search_results(records)
