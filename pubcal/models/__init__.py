"""Pydantic models for published calendars."""

from pubcal.models.calendar import PROTECTED_FIELDS, CalendarRecord
from pubcal.models.event import EventRecord, Frequency, RecurrenceRule
from pubcal.models.outcome import Outcome

__all__ = [
    "CalendarRecord",
    "EventRecord",
    "Frequency",
    "Outcome",
    "PROTECTED_FIELDS",
    "RecurrenceRule",
]
