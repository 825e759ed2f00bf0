"""Calendar manager keeping records and calendar files in agreement.

Each operation is a short protocol over two independently failing stores,
the record datastore and the artifact (calendar file) store:

create:  validate -> allocate path -> write file -> insert record
update:  fetch -> validate -> replace record -> rewrite file at same path
delete:  fetch -> remove record -> remove file

Every way an operation can end is named in :class:`Outcome`; errors carry
the outcome they ended in. Protocols run under a per-calendar lease and are
never abandoned halfway.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone, tzinfo

from pydantic import ValidationError as PydanticValidationError

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
from pubcal.models.calendar import PROTECTED_FIELDS, CalendarRecord
from pubcal.models.outcome import Outcome
from pubcal.output.artifact_writer import ArtifactWriter
from pubcal.output.ics_writer import ICSWriter
from pubcal.processing.locks import CalendarLocks
from pubcal.processing.temporal import normalize_calendar
from pubcal.storage.artifact_paths import ArtifactPathAllocator
from pubcal.storage.artifact_store import ArtifactStore
from pubcal.storage.datastore import Datastore, JSONFileDatastore

logger = logging.getLogger(__name__)

# Fields a create payload may not set; created_by is required there
CREATE_PROTECTED_FIELDS = PROTECTED_FIELDS - {"created_by"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _field_path(loc: tuple) -> str:
    """Render a pydantic error location as ``events[0].start``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


class CalendarManager:
    """Create, update and delete calendars as record + calendar file pairs."""

    def __init__(
        self,
        datastore: Datastore,
        artifacts: ArtifactWriter,
        allocator: ArtifactPathAllocator | None = None,
        locks: CalendarLocks | None = None,
        default_tz: tzinfo = timezone.utc,
    ):
        """Initialize with collaborators (dependency injection).

        Args:
            datastore: Record datastore
            artifacts: Writer for calendar files
            allocator: Artifact path allocator
            locks: Per-calendar leases, shared by every manager on the same stores
            default_tz: Timezone for date/time text without an offset
        """
        self.datastore = datastore
        self.artifacts = artifacts
        self.allocator = allocator or ArtifactPathAllocator()
        self.locks = locks or CalendarLocks()
        self.default_tz = default_tz

    @classmethod
    def from_config(cls, config: PubcalConfig) -> "CalendarManager":
        """Build a manager on the file-backed stores named in ``config``."""
        artifacts = ArtifactWriter(
            ArtifactStore(config.calendar_dir), ICSWriter(prodid=config.prodid)
        )
        return cls(
            JSONFileDatastore(config.record_dir),
            artifacts,
            default_tz=config.tzinfo,
        )

    # -- reads -------------------------------------------------------------

    def get_calendar(self, calendar_id: str) -> CalendarRecord:
        """Fetch a calendar record.

        Raises:
            CalendarNotFoundError: If no record has this id
        """
        record = self.datastore.get(calendar_id)
        if record is None:
            raise CalendarNotFoundError(f"Calendar '{calendar_id}' not found")
        return record

    def get_artifact_bytes(self, calendar_id: str) -> bytes:
        """Read the published calendar file of a calendar.

        Raises:
            CalendarNotFoundError: If no record has this id
            ArtifactNotFoundError: If the record has no file on disk
        """
        record = self.get_calendar(calendar_id)
        path = self.allocator.reuse(record.artifact_path)
        return self.artifacts.read(path)

    def search_calendars(
        self, query: str | None = None, skip: int = 0, limit: int | None = None
    ) -> list[CalendarRecord]:
        """Text/tag lookup, delegated to the datastore."""
        return self.datastore.search(query, skip=skip, limit=limit)

    # -- create ------------------------------------------------------------

    def create_calendar(self, raw: Mapping) -> CalendarRecord:
        """Create a calendar record and its calendar file.

        The file is written first; if the record insert then fails, the
        file is removed again. If that removal fails too, the orphaned file
        is logged for out-of-band cleanup.

        Returns:
            The stored record, with its new id

        Raises:
            ValidationError: Invalid payload; nothing was written
            ArtifactIOError: File could not be written; no record was inserted
            DatastoreError: Insert failed; outcome tells if the file was removed
        """
        payload = self._drop_fields(
            raw, CREATE_PROTECTED_FIELDS, "new calendar", Outcome.CREATE_REJECTED
        )
        record = self._build_record(payload, Outcome.CREATE_REJECTED)

        path = self.allocator.allocate()
        with self.locks.hold(path):
            now = _now()
            record = record.model_copy(
                update={
                    "artifact_path": path,
                    "subscribed_users": [record.created_by],
                    "created": now,
                    "last_updated": now,
                }
            )

            try:
                self.artifacts.write(path, record)
            except ArtifactIOError as e:
                e.outcome = Outcome.CREATE_ARTIFACT_FAILED
                logger.error(f"Failed to write calendar file {path}: {e}")
                raise

            try:
                calendar_id = self.datastore.insert(record)
            except DatastoreError as e:
                e.outcome = self._discard_orphan(path)
                logger.error(f"Failed inserting new calendar into datastore: {e}")
                raise

        logger.info(f"Created calendar {calendar_id} ({path})")
        return record.model_copy(update={"id": calendar_id})

    def _discard_orphan(self, path: str) -> Outcome:
        """Remove a calendar file whose record was never stored."""
        try:
            self.artifacts.delete(path, missing_ok=True)
        except ArtifactIOError as e:
            logger.error(
                f"Orphaned calendar file {path} needs manual cleanup: {e}"
            )
            return Outcome.CREATE_ORPHANED
        return Outcome.CREATE_COMPENSATED

    # -- update ------------------------------------------------------------

    def update_calendar(self, calendar_id: str, raw: Mapping) -> CalendarRecord:
        """Update a calendar record and rewrite its calendar file in place.

        ``id``, ``artifact_path``, ``created_by``, ``subscribed_users`` and
        ``created`` always come from the stored record. If the file write
        fails after the record was replaced, the record is not rolled back:
        retrying the update rewrites the file from the current record.

        Returns:
            The updated record

        Raises:
            CalendarNotFoundError: No record has this id
            ValidationError: Invalid payload; nothing was written
            ConflictError: Record vanished before it could be replaced
            DatastoreError: Replace failed; file untouched
            ArtifactIOError: Record replaced but file is stale
            InternalInconsistencyError: Stored or written path is not the
                calendar's path
        """
        with self.locks.hold(calendar_id):
            existing = self.datastore.get(calendar_id)
            if existing is None:
                raise CalendarNotFoundError(
                    f"Calendar '{calendar_id}' not found",
                    outcome=Outcome.UPDATE_NOT_FOUND,
                )

            payload = self._drop_fields(
                raw, PROTECTED_FIELDS, calendar_id, Outcome.UPDATE_REJECTED
            )
            merged = existing.model_dump(exclude=PROTECTED_FIELDS | {"last_updated"})
            merged.update(payload)
            merged.update(
                {
                    "id": calendar_id,
                    "artifact_path": existing.artifact_path,
                    "created_by": existing.created_by,
                    "subscribed_users": list(existing.subscribed_users),
                    "created": existing.created,
                    "last_updated": _now(),
                }
            )
            record = self._build_record(merged, Outcome.UPDATE_REJECTED)

            try:
                path = self.allocator.reuse(existing.artifact_path)
            except InternalInconsistencyError as e:
                e.outcome = Outcome.UPDATE_PATH_MISMATCH
                raise

            result = self.datastore.replace(calendar_id, record)
            if result.modified_count == 0:
                logger.error(f"Failed to update calendar {calendar_id} in datastore")
                raise ConflictError(
                    f"Calendar '{calendar_id}' was removed during update",
                    outcome=Outcome.UPDATE_CONFLICT,
                )

            try:
                written = self.artifacts.write(path, record)
            except ArtifactIOError as e:
                e.outcome = Outcome.UPDATE_ARTIFACT_STALE
                logger.error(
                    f"Calendar {calendar_id} updated but file {path} is stale: {e}"
                )
                raise

            if written != existing.artifact_path:
                logger.error(
                    f"Calendar {calendar_id} written to {written}, "
                    f"expected {existing.artifact_path}"
                )
                raise InternalInconsistencyError(
                    f"Calendar '{calendar_id}' file path changed during update",
                    outcome=Outcome.UPDATE_PATH_MISMATCH,
                )

        logger.info(f"Updated calendar {calendar_id}")
        return record

    # -- delete ------------------------------------------------------------

    def delete_calendar(self, calendar_id: str) -> CalendarRecord:
        """Delete a calendar record and its calendar file.

        If the file cannot be removed after the record is gone, the failure
        is reported and the removed record is logged so it can be restored
        by hand; the record deletion is not undone.

        Returns:
            The deleted record

        Raises:
            CalendarNotFoundError: No record has this id; nothing changed
            ConflictError: Record vanished before it could be removed
            DatastoreError: Record removal failed; nothing changed
            ArtifactIOError, ArtifactNotFoundError, InternalInconsistencyError:
                Record removed but the file was not
        """
        with self.locks.hold(calendar_id):
            existing = self.datastore.get(calendar_id)
            if existing is None:
                raise CalendarNotFoundError(
                    f"Calendar '{calendar_id}' not found",
                    outcome=Outcome.DELETE_NOT_FOUND,
                )

            result = self.datastore.delete(calendar_id)
            if result.removed_count == 0:
                logger.error(f"Failed to delete calendar {calendar_id} from datastore")
                raise ConflictError(
                    f"Calendar '{calendar_id}' was removed concurrently",
                    outcome=Outcome.DELETE_UNCHANGED,
                )

            try:
                path = self.allocator.reuse(existing.artifact_path)
                self.artifacts.delete(path)
            except (
                ArtifactIOError,
                ArtifactNotFoundError,
                InternalInconsistencyError,
            ) as e:
                e.outcome = Outcome.DELETE_ARTIFACT_FAILED
                logger.error(
                    f"Calendar {calendar_id} removed but its file was not: {e}. "
                    f"Removed record: {existing.model_dump_json()}"
                )
                raise

        logger.info(f"Deleted calendar {calendar_id}")
        return existing

    # -- helpers -----------------------------------------------------------

    def _drop_fields(
        self, raw: Mapping, fields: frozenset, label: str, outcome: Outcome
    ) -> dict:
        """Copy a payload without the fields callers may not set."""
        if not isinstance(raw, Mapping):
            raise ValidationError(
                "calendar: expected an object", "calendar", outcome=outcome
            )
        dropped = sorted(key for key in raw if key in fields)
        if dropped:
            logger.warning(f"Ignoring protected fields for {label}: {', '.join(dropped)}")
        return {key: value for key, value in raw.items() if key not in fields}

    def _build_record(self, data: Mapping, outcome: Outcome) -> CalendarRecord:
        """Normalize date/time fields and validate into a record."""
        try:
            normalized = normalize_calendar(data, self.default_tz)
        except ValidationError as e:
            e.outcome = outcome
            raise

        try:
            return CalendarRecord.model_validate(normalized)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = _field_path(first["loc"]) or "calendar"
            raise ValidationError(
                f"{field}: {first['msg']}", field, outcome=outcome
            ) from e
