"""Shared constants for pubcal."""

# Extension of published calendar files
ICS_EXTENSION = "ics"

# PRODID written into every calendar file
DEFAULT_PRODID = "-//Pubcal//Published Calendars//EN"

# Timezone for date/time text without an offset
DEFAULT_TIMEZONE = "UTC"

# Namespace for deterministic event UIDs
EVENT_UID_DOMAIN = "pubcal"

# Date/time fields rewritten by the temporal normalizer
EVENT_DATE_KEYS = ("start", "end")
REPEATING_DATE_KEYS = ("until",)

# Recurrence parts accepted besides freq, interval, count, byday and until
RRULE_EXTRA_PARTS = frozenset(
    {
        "bysecond",
        "byminute",
        "byhour",
        "bymonthday",
        "byyearday",
        "byweekno",
        "bymonth",
        "bysetpos",
        "wkst",
    }
)
RRULE_PARTS = RRULE_EXTRA_PARTS | {"freq", "interval", "count", "byday", "until"}
