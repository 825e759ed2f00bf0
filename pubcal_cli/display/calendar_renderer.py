"""Rich rendering of calendar records."""

from rich.table import Table

from pubcal.models.calendar import CalendarRecord
from pubcal_cli.display.console import console
from pubcal_cli.display.formatters import format_instant, format_relative_time


class CalendarRenderer:
    """Render calendar records and search results."""

    def render_calendar(self, record: CalendarRecord) -> None:
        """Render one calendar with its events."""
        console.print(f"\n[bold]{record.title or '(untitled)'}[/bold]  [dim]{record.id}[/dim]")
        if record.description:
            console.print(f"  {record.description}")
        console.print(f"  Owner: {record.created_by}")
        console.print(f"  Subscribers: {len(record.subscribed_users)}")
        if record.tags:
            console.print(f"  Tags: {', '.join(record.tags)}")
        console.print(f"  File: {record.artifact_filename or '-'}")
        console.print()

        if not record.events:
            console.print("No events")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("START", style="cyan")
        table.add_column("END", style="dim")
        table.add_column("SUMMARY")
        table.add_column("REPEATS", style="dim")

        for event in sorted(record.events, key=lambda e: e.start):
            repeats = "-"
            if event.repeating:
                rule = event.repeating[0]
                repeats = rule.freq.value.lower()
                if rule.until:
                    repeats += f" until {format_instant(rule.until)}"
            table.add_row(
                format_instant(event.start),
                format_instant(event.end),
                event.summary,
                repeats,
            )

        console.print(table)

    def render_search_results(self, records: list[CalendarRecord]) -> None:
        """Render search results as a table."""
        if not records:
            console.print("No calendars found")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("ID", style="dim")
        table.add_column("TITLE", style="cyan")
        table.add_column("EVENTS", justify="right")
        table.add_column("TAGS", style="dim")
        table.add_column("UPDATED", style="dim")

        for record in records:
            updated = (
                format_relative_time(record.last_updated) if record.last_updated else "-"
            )
            table.add_row(
                record.id or "-",
                record.title,
                str(len(record.events)),
                ", ".join(record.tags) or "-",
                updated,
            )

        console.print(table)
