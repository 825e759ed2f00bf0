"""CLI commands package."""

from pubcal_cli.commands.delete import delete
from pubcal_cli.commands.export import export
from pubcal_cli.commands.new import new
from pubcal_cli.commands.search import search
from pubcal_cli.commands.serve import serve
from pubcal_cli.commands.show import show
from pubcal_cli.commands.update import update

__all__ = [
    "delete",
    "export",
    "new",
    "search",
    "serve",
    "show",
    "update",
]
