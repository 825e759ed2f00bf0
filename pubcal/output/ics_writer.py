"""iCalendar serialization for calendar records."""

import logging
import uuid
from datetime import datetime, timezone

from icalendar import Calendar, Event

from pubcal.constants import DEFAULT_PRODID, EVENT_UID_DOMAIN, ICS_EXTENSION
from pubcal.exceptions import ExportError
from pubcal.models.calendar import CalendarRecord
from pubcal.models.event import EventRecord, RecurrenceRule

logger = logging.getLogger(__name__)


class ICSWriter:
    """Serializes a calendar record into an iCalendar (RFC 5545) file.

    Output depends only on the record: event UIDs are derived from the
    artifact path and event position, and DTSTAMP is the record's
    ``last_updated`` time.
    """

    def __init__(self, prodid: str = DEFAULT_PRODID):
        self.prodid = prodid

    def to_ical(self, record: CalendarRecord) -> bytes:
        """Build the calendar file content for ``record``.

        Raises:
            ExportError: If the record cannot be serialized
        """
        try:
            cal = self.build_calendar(record)
            ical_content = cal.to_ical()
        except (TypeError, ValueError, AttributeError) as e:
            raise ExportError(f"Failed to serialize calendar: {e}") from e

        if not ical_content:
            raise ExportError("Calendar.to_ical() returned empty content")
        return ical_content

    def build_calendar(self, record: CalendarRecord) -> Calendar:
        """Build the icalendar component tree for ``record``."""
        cal = Calendar()
        cal.add("prodid", self.prodid)
        cal.add("version", "2.0")
        cal.add("calscale", "GREGORIAN")
        if record.title:
            cal.add("X-WR-CALNAME", record.title)
        if record.description:
            cal.add("X-WR-CALDESC", record.description)

        stamp = record.last_updated or record.created or datetime.now(timezone.utc)
        uid_seed = record.artifact_path or record.id or ""

        for index, event_model in enumerate(record.events):
            cal.add_component(self._build_event(event_model, index, uid_seed, stamp))

        return cal

    def _build_event(
        self, event_model: EventRecord, index: int, uid_seed: str, stamp: datetime
    ) -> Event:
        event = Event()

        # Required fields
        uid = uuid.uuid5(uuid.NAMESPACE_URL, f"{uid_seed}#{index}")
        event.add("uid", f"{uid}@{EVENT_UID_DOMAIN}")
        event.add("dtstamp", stamp)
        event.add("dtstart", event_model.start)
        if event_model.end is not None:
            event.add("dtend", event_model.end)

        if event_model.summary:
            event.add("summary", event_model.summary)
        if event_model.description:
            event.add("description", event_model.description)
        if event_model.location:
            event.add("location", event_model.location)
        if event_model.url:
            event.add("url", event_model.url)

        for rule in event_model.repeating or []:
            event.add("rrule", self._build_rrule(rule))

        return event

    def _build_rrule(self, rule: RecurrenceRule) -> dict:
        """Convert a recurrence rule to the mapping icalendar expects."""
        rrule = {"freq": rule.freq.value}
        if rule.interval is not None:
            rrule["interval"] = rule.interval
        if rule.count is not None:
            rrule["count"] = rule.count
        if rule.byday:
            rrule["byday"] = rule.byday
        if rule.until is not None:
            rrule["until"] = rule.until

        # Unknown recurrence parts go through as given
        for key, value in (rule.model_extra or {}).items():
            if value is not None:
                rrule[key.lower()] = value
        return rrule

    def get_extension(self) -> str:
        """Returns file extension."""
        return ICS_EXTENSION
