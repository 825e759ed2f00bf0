"""Processing layer: normalization, leases and the calendar manager."""

from pubcal.processing.calendar_manager import CalendarManager
from pubcal.processing.locks import CalendarLocks
from pubcal.processing.temporal import normalize_calendar, to_instant

__all__ = [
    "CalendarLocks",
    "CalendarManager",
    "normalize_calendar",
    "to_instant",
]
