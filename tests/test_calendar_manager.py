"""Tests for the calendar manager protocols."""

import copy
import logging
import threading
from datetime import datetime, timezone

import pytest
from icalendar import Calendar as ICalendar

from pubcal.config import PubcalConfig
from pubcal.exceptions import (
    ArtifactIOError,
    ArtifactNotFoundError,
    CalendarNotFoundError,
    ConflictError,
    DatastoreError,
    InternalInconsistencyError,
    ValidationError,
)
from pubcal.models.outcome import Outcome
from pubcal.output.artifact_writer import ArtifactWriter
from pubcal.output.ics_writer import ICSWriter
from pubcal.processing.calendar_manager import CalendarManager
from pubcal.storage.artifact_store import ArtifactStore
from pubcal.storage.datastore import DeleteResult, InMemoryDatastore, ReplaceResult

UTC = timezone.utc


def stored_files(config: PubcalConfig) -> list[str]:
    """Names of the calendar files on disk."""
    if not config.calendar_dir.exists():
        return []
    return sorted(p.name for p in config.calendar_dir.iterdir())


def vevents(ical_content: bytes) -> list:
    return list(ICalendar.from_ical(ical_content).walk("VEVENT"))


def with_end(payload: dict, end: str) -> dict:
    """Copy of a payload with the first event's end changed."""
    changed = copy.deepcopy(payload)
    changed["events"][0]["end"] = end
    return changed


def failing(error):
    """Replacement method raising ``error``."""

    def raise_error(*args, **kwargs):
        raise error

    return raise_error


# -- create ------------------------------------------------------------------


def test_create_writes_record_and_file(manager, config, sample_payload):
    """Test create stores a record and publishes its calendar file."""
    record = manager.create_calendar(sample_payload)

    assert record.id
    assert record.subscribed_users == ["alice"]
    assert record.created is not None
    assert record.last_updated == record.created

    stored = manager.get_calendar(record.id)
    assert stored == record
    assert stored_files(config) == [record.artifact_path]

    ical_content = manager.get_artifact_bytes(record.id)
    assert b"BEGIN:VEVENT" in ical_content
    assert b"DTSTART:20240101T100000Z" in ical_content
    assert b"DTEND:20240101T110000Z" in ical_content


def test_create_file_matches_normalized_input(manager, sample_payload):
    """Test the file's event times equal the normalized input instants."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["start"] = "2024-06-01T12:30:00+02:00"
    payload["events"][0]["end"] = "2024-06-01 14:00"

    record = manager.create_calendar(payload)

    event = vevents(manager.get_artifact_bytes(record.id))[0]
    assert event.decoded("dtstart") == datetime(2024, 6, 1, 10, 30, tzinfo=UTC)
    assert event.decoded("dtend") == datetime(2024, 6, 1, 14, 0, tzinfo=UTC)
    assert record.events[0].start == datetime(2024, 6, 1, 10, 30, tzinfo=UTC)


def test_create_uses_default_timezone(tmp_path, sample_payload):
    """Test naive times are read in the configured timezone."""
    config = PubcalConfig(
        calendar_dir=tmp_path / "calendars",
        record_dir=tmp_path / "records",
        default_timezone="America/New_York",
    )
    manager = CalendarManager.from_config(config)
    payload = copy.deepcopy(sample_payload)
    payload["events"][0].update(start="2024-01-01T10:00:00", end="2024-01-01T11:00:00")

    record = manager.create_calendar(payload)

    assert b"DTSTART:20240101T150000Z" in manager.get_artifact_bytes(record.id)


def test_create_recurring_event(manager, sample_payload):
    """Test repeat-until is normalized into the RRULE."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["repeating"] = {"freq": "weekly", "until": "2024-02-01T10:00:00Z"}

    record = manager.create_calendar(payload)

    assert record.events[0].repeating[0].until == datetime(2024, 2, 1, 10, 0, tzinfo=UTC)
    ical_content = manager.get_artifact_bytes(record.id)
    assert b"FREQ=WEEKLY" in ical_content
    assert b"UNTIL=20240201T100000Z" in ical_content


def test_create_recurrence_parts_any_case(manager, sample_payload):
    """Test upper-case recurrence parts reach the RRULE normalized."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["repeating"] = {
        "FREQ": "yearly",
        "UNTIL": "2030-01-01T10:00:00Z",
        "BYMONTH": [1],
    }

    record = manager.create_calendar(payload)

    ical_content = manager.get_artifact_bytes(record.id)
    assert b"FREQ=YEARLY" in ical_content
    assert b"UNTIL=20300101T100000Z" in ical_content
    assert b"BYMONTH=1" in ical_content


@pytest.mark.parametrize(
    "rule,field",
    [
        ({"freq": "daily", "note": "hi"}, "events[0].repeating[0].note"),
        ({"freq": "daily", "UNTIL": "garbage"}, "events[0].repeating[0].until"),
    ],
)
def test_create_bad_recurrence_writes_nothing(
    manager, config, sample_payload, rule, field
):
    """Test bad recurrence parts are rejected before any write."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["repeating"] = rule

    with pytest.raises(ValidationError) as exc_info:
        manager.create_calendar(payload)

    assert exc_info.value.field == field
    assert exc_info.value.outcome is Outcome.CREATE_REJECTED
    assert manager.search_calendars() == []
    assert stored_files(config) == []


def test_create_out_of_range_date_rejected(manager, config, sample_payload):
    """Test a date that leaves the representable range after conversion."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["start"] = "9999-12-31T23:00:00-05:00"

    with pytest.raises(ValidationError) as exc_info:
        manager.create_calendar(payload)

    assert exc_info.value.field == "events[0].start"
    assert stored_files(config) == []


def test_create_invalid_date_writes_nothing(manager, config, sample_payload):
    """Test an unparseable date fails before any write."""
    payload = copy.deepcopy(sample_payload)
    payload["events"][0]["start"] = "not-a-date"

    with pytest.raises(ValidationError) as exc_info:
        manager.create_calendar(payload)

    assert exc_info.value.field == "events[0].start"
    assert exc_info.value.outcome is Outcome.CREATE_REJECTED
    assert manager.search_calendars() == []
    assert stored_files(config) == []


def test_create_requires_owner(manager, config, sample_payload):
    """Test a payload without created_by is rejected."""
    payload = copy.deepcopy(sample_payload)
    del payload["created_by"]

    with pytest.raises(ValidationError) as exc_info:
        manager.create_calendar(payload)

    assert exc_info.value.field == "created_by"
    assert stored_files(config) == []


def test_create_end_before_start_rejected(manager, sample_payload):
    """Test model-level validation errors name the event."""
    with pytest.raises(ValidationError) as exc_info:
        manager.create_calendar(with_end(sample_payload, "2024-01-01T09:00:00Z"))
    assert exc_info.value.field == "events[0]"


def test_create_ignores_caller_supplied_internals(manager, sample_payload):
    """Test a new calendar gets its own path, id and subscribers."""
    payload = dict(
        sample_payload,
        id="f" * 32,
        artifact_path="0" * 32 + ".ics",
        subscribed_users=["mallory"],
    )

    record = manager.create_calendar(payload)

    assert record.id != "f" * 32
    assert record.artifact_path != "0" * 32 + ".ics"
    assert record.subscribed_users == ["alice"]


def test_create_artifact_write_failure(manager, config, sample_payload, monkeypatch):
    """Test a failed file write aborts before the insert."""
    monkeypatch.setattr(
        manager.artifacts.store, "write", failing(ArtifactIOError("disk full"))
    )

    with pytest.raises(ArtifactIOError) as exc_info:
        manager.create_calendar(sample_payload)

    assert exc_info.value.outcome is Outcome.CREATE_ARTIFACT_FAILED
    assert manager.search_calendars() == []
    assert stored_files(config) == []


def test_create_insert_failure_removes_file(manager, config, sample_payload, monkeypatch):
    """Test a failed insert removes the file it had written."""
    monkeypatch.setattr(manager.datastore, "insert", failing(DatastoreError("db down")))

    with pytest.raises(DatastoreError) as exc_info:
        manager.create_calendar(sample_payload)

    assert exc_info.value.outcome is Outcome.CREATE_COMPENSATED
    assert manager.search_calendars() == []
    assert stored_files(config) == []


def test_create_insert_failure_logs_orphan(
    manager, config, sample_payload, monkeypatch, caplog
):
    """Test an orphan is reported when the cleanup delete also fails."""
    monkeypatch.setattr(manager.datastore, "insert", failing(DatastoreError("db down")))
    monkeypatch.setattr(
        manager.artifacts.store, "delete", failing(ArtifactIOError("permission denied"))
    )

    with caplog.at_level(logging.ERROR):
        with pytest.raises(DatastoreError) as exc_info:
            manager.create_calendar(sample_payload)

    assert exc_info.value.outcome is Outcome.CREATE_ORPHANED
    orphans = stored_files(config)
    assert len(orphans) == 1
    assert f"Orphaned calendar file {orphans[0]}" in caplog.text


# -- update ------------------------------------------------------------------


def test_update_rewrites_file_in_place(manager, config, sample_payload):
    """Test update changes the record and the file at the same path."""
    record = manager.create_calendar(sample_payload)

    updated = manager.update_calendar(
        record.id, with_end(sample_payload, "2024-01-01T12:00:00Z")
    )

    assert updated.artifact_path == record.artifact_path
    assert updated.events[0].end == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    assert manager.get_calendar(record.id) == updated
    assert stored_files(config) == [record.artifact_path]

    ical_content = manager.get_artifact_bytes(record.id)
    assert b"DTEND:20240101T120000Z" in ical_content
    assert b"DTEND:20240101T110000Z" not in ical_content


def test_update_path_stable_across_updates(manager, config, sample_payload):
    """Test the artifact path never changes."""
    record = manager.create_calendar(sample_payload)

    for hour in range(12, 18):
        updated = manager.update_calendar(
            record.id, with_end(sample_payload, f"2024-01-01T{hour}:00:00Z")
        )
        assert updated.artifact_path == record.artifact_path

    assert stored_files(config) == [record.artifact_path]
    assert b"DTEND:20240101T170000Z" in manager.get_artifact_bytes(record.id)


def test_update_keeps_protected_fields(manager, sample_payload):
    """Test owner, subscribers and path cannot be changed by a payload."""
    record = manager.create_calendar(sample_payload)
    payload = dict(
        sample_payload,
        title="Renamed",
        created_by="mallory",
        subscribed_users=["mallory"],
        artifact_path="0" * 32 + ".ics",
        id="f" * 32,
    )

    updated = manager.update_calendar(record.id, payload)

    stored = manager.get_calendar(record.id)
    assert stored.title == "Renamed"
    assert stored.created_by == "alice"
    assert stored.subscribed_users == ["alice"]
    assert stored.artifact_path == record.artifact_path
    assert stored.id == record.id
    assert stored.created == record.created
    assert updated == stored


def test_update_partial_payload_keeps_other_fields(manager, sample_payload):
    """Test fields missing from the payload keep their stored values."""
    record = manager.create_calendar(sample_payload)

    updated = manager.update_calendar(record.id, {"title": "Only the title"})

    assert updated.title == "Only the title"
    assert updated.events == record.events
    assert updated.tags == record.tags
    assert b"X-WR-CALNAME:Only the title" in manager.get_artifact_bytes(record.id)


def test_update_not_found(manager, config, sample_payload):
    """Test updating an unknown id."""
    with pytest.raises(CalendarNotFoundError) as exc_info:
        manager.update_calendar("0" * 32, sample_payload)
    assert exc_info.value.outcome is Outcome.UPDATE_NOT_FOUND
    assert stored_files(config) == []


def test_update_invalid_date_changes_nothing(manager, sample_payload):
    """Test an invalid update leaves record and file alone."""
    record = manager.create_calendar(sample_payload)
    before = manager.get_artifact_bytes(record.id)

    with pytest.raises(ValidationError) as exc_info:
        manager.update_calendar(record.id, with_end(sample_payload, "tomorrow-ish"))

    assert exc_info.value.outcome is Outcome.UPDATE_REJECTED
    assert manager.get_calendar(record.id) == record
    assert manager.get_artifact_bytes(record.id) == before


def test_update_conflict_leaves_file(manager, sample_payload, monkeypatch):
    """Test a record that vanished before replace is a conflict."""
    record = manager.create_calendar(sample_payload)
    before = manager.get_artifact_bytes(record.id)
    monkeypatch.setattr(
        manager.datastore, "replace", lambda *args: ReplaceResult(modified_count=0)
    )

    with pytest.raises(ConflictError) as exc_info:
        manager.update_calendar(record.id, with_end(sample_payload, "2024-01-01T12:00:00Z"))

    assert exc_info.value.outcome is Outcome.UPDATE_CONFLICT
    assert manager.get_artifact_bytes(record.id) == before


def test_update_stale_file_then_retry(manager, sample_payload, monkeypatch):
    """Test a failed rewrite is reported, not rolled back, and fixed by a retry."""
    record = manager.create_calendar(sample_payload)
    payload = with_end(sample_payload, "2024-01-01T12:00:00Z")
    original_write = manager.artifacts.store.write
    monkeypatch.setattr(
        manager.artifacts.store, "write", failing(ArtifactIOError("disk full"))
    )

    with pytest.raises(ArtifactIOError) as exc_info:
        manager.update_calendar(record.id, payload)

    assert exc_info.value.outcome is Outcome.UPDATE_ARTIFACT_STALE
    assert manager.get_calendar(record.id).events[0].end == datetime(
        2024, 1, 1, 12, 0, tzinfo=UTC
    )
    assert b"DTEND:20240101T110000Z" in manager.get_artifact_bytes(record.id)

    monkeypatch.setattr(manager.artifacts.store, "write", original_write)
    manager.update_calendar(record.id, payload)

    assert b"DTEND:20240101T120000Z" in manager.get_artifact_bytes(record.id)


def test_update_path_mismatch(manager, sample_payload, monkeypatch):
    """Test a writer reporting another path is an inconsistency."""
    record = manager.create_calendar(sample_payload)
    monkeypatch.setattr(manager.artifacts, "write", lambda path, rec: "elsewhere.ics")

    with pytest.raises(InternalInconsistencyError) as exc_info:
        manager.update_calendar(record.id, sample_payload)

    assert exc_info.value.outcome is Outcome.UPDATE_PATH_MISMATCH


def test_update_invalid_stored_path(manager, sample_payload):
    """Test a record with a corrupted path is refused before any write."""
    record = manager.create_calendar(sample_payload)
    broken = record.model_copy(update={"artifact_path": "../../elsewhere.ics"})
    manager.datastore.replace(record.id, broken)

    with pytest.raises(InternalInconsistencyError) as exc_info:
        manager.update_calendar(record.id, {"title": "New"})

    assert exc_info.value.outcome is Outcome.UPDATE_PATH_MISMATCH
    assert manager.get_calendar(record.id).title == record.title


# -- delete ------------------------------------------------------------------


def test_delete_removes_record_and_file(manager, config, sample_payload):
    """Test delete removes both halves."""
    record = manager.create_calendar(sample_payload)

    deleted = manager.delete_calendar(record.id)

    assert deleted == record
    with pytest.raises(CalendarNotFoundError):
        manager.get_calendar(record.id)
    assert stored_files(config) == []


def test_delete_not_found_changes_nothing(manager, config, sample_payload):
    """Test deleting an unknown id mutates neither store."""
    record = manager.create_calendar(sample_payload)

    with pytest.raises(CalendarNotFoundError) as exc_info:
        manager.delete_calendar("0" * 32)

    assert exc_info.value.outcome is Outcome.DELETE_NOT_FOUND
    assert manager.get_calendar(record.id) == record
    assert stored_files(config) == [record.artifact_path]


def test_delete_nothing_removed(manager, config, sample_payload, monkeypatch):
    """Test a record that vanished before removal is a conflict."""
    record = manager.create_calendar(sample_payload)
    monkeypatch.setattr(
        manager.datastore, "delete", lambda calendar_id: DeleteResult(removed_count=0)
    )

    with pytest.raises(ConflictError) as exc_info:
        manager.delete_calendar(record.id)

    assert exc_info.value.outcome is Outcome.DELETE_UNCHANGED
    assert stored_files(config) == [record.artifact_path]


def test_delete_missing_file_is_reported(manager, config, sample_payload, caplog):
    """Test a missing file after record removal is a reported failure."""
    record = manager.create_calendar(sample_payload)
    (config.calendar_dir / record.artifact_path).unlink()

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            manager.delete_calendar(record.id)

    assert exc_info.value.outcome is Outcome.DELETE_ARTIFACT_FAILED
    # Record removal is not undone; the removed record is logged instead
    with pytest.raises(CalendarNotFoundError):
        manager.get_calendar(record.id)
    assert record.id in caplog.text


def test_delete_file_error_is_reported(manager, config, sample_payload, monkeypatch):
    """Test a failing file removal after record removal."""
    record = manager.create_calendar(sample_payload)
    monkeypatch.setattr(
        manager.artifacts.store, "delete", failing(ArtifactIOError("busy"))
    )

    with pytest.raises(ArtifactIOError) as exc_info:
        manager.delete_calendar(record.id)

    assert exc_info.value.outcome is Outcome.DELETE_ARTIFACT_FAILED
    assert stored_files(config) == [record.artifact_path]


# -- reads and concurrency -------------------------------------------------


def test_get_artifact_bytes_missing_file(manager, config, sample_payload):
    """Test download of a calendar whose file is gone."""
    record = manager.create_calendar(sample_payload)
    (config.calendar_dir / record.artifact_path).unlink()

    with pytest.raises(ArtifactNotFoundError):
        manager.get_artifact_bytes(record.id)


def test_search_calendars(manager, sample_payload):
    """Test search is delegated to the datastore."""
    manager.create_calendar(sample_payload)
    manager.create_calendar(dict(sample_payload, title="Chess Club", tags=["games"]))

    assert [r.title for r in manager.search_calendars("chess")] == ["Chess Club"]
    assert [r.title for r in manager.search_calendars("work")] == ["Team Calendar"]
    assert len(manager.search_calendars(limit=1)) == 1


def test_concurrent_updates_leave_file_matching_record(tmp_path, sample_payload):
    """Test overlapping updates end with the file matching the stored record."""
    manager = CalendarManager(
        InMemoryDatastore(),
        ArtifactWriter(ArtifactStore(tmp_path), ICSWriter()),
    )
    record = manager.create_calendar(sample_payload)
    errors = []

    def worker(hour: int):
        try:
            manager.update_calendar(
                record.id, with_end(sample_payload, f"2024-01-01T{hour}:00:00Z")
            )
        except Exception as e:  # collected for the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(hour,)) for hour in range(12, 20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    final = manager.get_calendar(record.id)
    event = vevents(manager.get_artifact_bytes(record.id))[0]
    assert event.decoded("dtend") == final.events[0].end
    assert len(manager.locks) == 0
