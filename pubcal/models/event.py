"""Event and recurrence models with Pydantic v2 validation."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from pubcal.constants import RRULE_PARTS


class Frequency(str, Enum):
    """Recurrence frequency."""

    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def _require_instant(v: Optional[datetime]) -> Optional[datetime]:
    """Accept only timezone-aware datetimes, stored as UTC."""
    if v is None:
        return None
    if v.tzinfo is None or v.utcoffset() is None:
        raise ValueError("datetime must be timezone-aware")
    return v.astimezone(timezone.utc)


class RecurrenceRule(BaseModel):
    """Recurrence data for an event.

    Only ``until`` is interpreted here; the other fields are passed through
    to the calendar file. Besides the declared fields, only the remaining
    RFC 5545 rule parts (``bymonth``, ``wkst``, ...) are accepted.
    """

    model_config = ConfigDict(extra="allow")

    freq: Frequency = Frequency.WEEKLY
    interval: Optional[int] = None
    count: Optional[int] = None
    byday: Optional[list[str]] = None
    until: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def known_parts(cls, data):
        """Lower-case part names and reject parts RFC 5545 does not define."""
        if not isinstance(data, dict):
            return data
        parts = {}
        for key, value in data.items():
            name = str(key).lower()
            if name not in RRULE_PARTS:
                raise ValueError(f"unknown recurrence part: {key}")
            if name in parts:
                raise ValueError(f"recurrence part given twice: {key}")
            parts[name] = value
        return parts

    @field_validator("freq", mode="before")
    @classmethod
    def upper_freq(cls, v):
        """Accept lower-case frequency names."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("until")
    @classmethod
    def until_is_instant(cls, v):
        return _require_instant(v)


class EventRecord(BaseModel):
    """A single calendar event with canonical start and end instants."""

    model_config = ConfigDict(extra="allow")

    summary: str = ""
    start: datetime
    end: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    repeating: Optional[list[RecurrenceRule]] = None

    @field_validator("start", "end")
    @classmethod
    def times_are_instants(cls, v):
        return _require_instant(v)

    @model_validator(mode="after")
    def validate_times(self):
        """Validate that the event does not end before it starts."""
        if self.end is not None and self.end < self.start:
            raise ValueError("end must be >= start")
        return self
