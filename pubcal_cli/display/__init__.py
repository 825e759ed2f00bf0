"""Display module for rendering calendar output."""

from pubcal_cli.display.calendar_renderer import CalendarRenderer
from pubcal_cli.display.console import console
from pubcal_cli.display.formatters import format_instant, format_relative_time

__all__ = [
    "CalendarRenderer",
    "console",
    "format_instant",
    "format_relative_time",
]
