"""Base classes for calendar writers."""

from typing import Protocol

from pubcal.models.calendar import CalendarRecord


class CalendarWriter(Protocol):
    """Protocol for calendar writers."""

    def to_ical(self, record: CalendarRecord) -> bytes:
        """Serialize record to calendar file content."""
        ...

    def get_extension(self) -> str:
        """Returns file extension (e.g., 'ics')."""
        ...
