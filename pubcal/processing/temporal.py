"""Normalize date/time text in calendar payloads to UTC instants."""

import copy
import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone, tzinfo

from dateutil import parser as date_parser

from pubcal.constants import EVENT_DATE_KEYS, REPEATING_DATE_KEYS, RRULE_PARTS
from pubcal.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Fills date parts missing from the text, so results never depend on today
_PARSE_DEFAULT = datetime(1970, 1, 1)


def to_instant(value, field: str, default_tz: tzinfo = timezone.utc) -> datetime:
    """Convert one date/time value to a timezone-aware UTC datetime.

    Accepts datetime and date objects, date/time text, and epoch
    milliseconds. Datetimes are already canonical and are never re-parsed,
    only localised (if naive) and converted to UTC.

    Args:
        value: Value to convert
        field: Field path used in error messages (e.g. ``events[0].start``)
        default_tz: Timezone for values without an offset

    Raises:
        ValidationError: If the value cannot be read as a date/time
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    elif isinstance(value, bool):
        raise ValidationError(f"{field}: expected a date/time, got {value!r}", field)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValidationError(f"{field}: timestamp out of range: {value!r}", field) from e
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(f"{field}: empty date/time", field)
        try:
            parsed = date_parser.parse(text, default=_PARSE_DEFAULT)
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"{field}: not a date/time: {value!r}", field) from e
    else:
        raise ValidationError(
            f"{field}: expected a date/time, got {type(value).__name__}", field
        )

    try:
        if parsed.tzinfo is None or parsed.utcoffset() is None:
            parsed = parsed.replace(tzinfo=default_tz)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError) as e:
        raise ValidationError(
            f"{field}: date/time out of range: {value!r}", field
        ) from e


def _normalize_fields(item: dict, keys, path: str, default_tz: tzinfo) -> None:
    for key in keys:
        if item.get(key) is not None:
            item[key] = to_instant(item[key], f"{path}.{key}", default_tz)


def _recurrence_parts(rule: Mapping, path: str) -> dict:
    """Copy a recurrence rule with lower-case part names, rejecting unknown parts."""
    parts = {}
    for key, value in rule.items():
        name = str(key).lower()
        if name not in RRULE_PARTS:
            raise ValidationError(
                f"{path}.{key}: unknown recurrence part", f"{path}.{key}"
            )
        if name in parts:
            raise ValidationError(
                f"{path}.{key}: recurrence part given twice", f"{path}.{key}"
            )
        parts[name] = value
    return parts


def normalize_event(event: Mapping, path: str, default_tz: tzinfo) -> dict:
    """Return a copy of one event with start, end and recurrence ends normalized."""
    if not isinstance(event, Mapping):
        raise ValidationError(f"{path}: expected an object", path)

    item = dict(event)
    _normalize_fields(item, EVENT_DATE_KEYS, path, default_tz)

    repeating = item.get("repeating")
    if repeating is None:
        return item

    # A single rule may be given without a list around it
    if isinstance(repeating, Mapping):
        repeating = [repeating]
    if not isinstance(repeating, list):
        raise ValidationError(f"{path}.repeating: expected a list", f"{path}.repeating")

    rules = []
    for i, rule in enumerate(repeating):
        rule_path = f"{path}.repeating[{i}]"
        if not isinstance(rule, Mapping):
            raise ValidationError(f"{rule_path}: expected an object", rule_path)
        rule = _recurrence_parts(rule, rule_path)
        _normalize_fields(rule, REPEATING_DATE_KEYS, rule_path, default_tz)
        rules.append(rule)
    item["repeating"] = rules
    return item


def normalize_calendar(raw: Mapping, default_tz: tzinfo = timezone.utc) -> dict:
    """Return a copy of a calendar payload with every date/time field normalized.

    Touches ``events[i].start``, ``events[i].end`` and
    ``events[i].repeating[j].until``. Missing fields stay missing. The input
    is not modified.

    Raises:
        ValidationError: Naming the first field that is not a date/time
    """
    if not isinstance(raw, Mapping):
        raise ValidationError("calendar: expected an object", "calendar")

    calendar = copy.deepcopy(dict(raw))
    events = calendar.get("events")
    if events is None:
        return calendar
    if not isinstance(events, list):
        raise ValidationError("events: expected a list", "events")

    calendar["events"] = [
        normalize_event(event, f"events[{i}]", default_tz)
        for i, event in enumerate(events)
    ]
    logger.debug(f"Normalized {len(events)} event(s)")
    return calendar
