"""Typer application and command routing."""

import typer
from typing_extensions import Annotated

from pubcal_cli import setup_logging
from pubcal_cli.commands import delete, export, new, search, serve, show, update
from pubcal_cli.context import CLIContext, set_context

app = typer.Typer(
    help="Publish calendars as downloadable ICS files.",
    no_args_is_help=True,
)


@app.callback()
def callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show info messages"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only show errors"),
    ] = False,
) -> None:
    """Publish calendars as downloadable ICS files."""
    ctx = CLIContext(verbose=verbose, quiet=quiet)
    setup_logging(verbose=verbose, quiet=quiet, config=ctx.config)
    set_context(ctx)


app.command()(new)
app.command()(update)
app.command()(delete)
app.command()(show)
app.command()(export)
app.command()(search)
app.command()(serve)
