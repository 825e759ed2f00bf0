"""Record datastores for calendar records."""

import json
import logging
import os
import re
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from pubcal.exceptions import DatastoreError
from pubcal.models.calendar import CalendarRecord

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class ReplaceResult:
    """Result of a replace: 1 if a stored record was replaced, else 0."""

    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    """Result of a delete: 1 if a stored record was removed, else 0."""

    removed_count: int


class Datastore(Protocol):
    """Protocol for calendar record datastores."""

    def get(self, calendar_id: str) -> CalendarRecord | None:
        """Fetch a record by id, or None if absent."""
        ...

    def insert(self, record: CalendarRecord) -> str:
        """Store a new record and return its assigned id."""
        ...

    def replace(self, calendar_id: str, record: CalendarRecord) -> ReplaceResult:
        """Replace an existing record. Never inserts."""
        ...

    def delete(self, calendar_id: str) -> DeleteResult:
        """Remove a record."""
        ...

    def search(
        self, query: str | None = None, skip: int = 0, limit: int | None = None
    ) -> list[CalendarRecord]:
        """Text/tag lookup over stored records."""
        ...


def new_record_id() -> str:
    """Generate a datastore id."""
    return uuid.uuid4().hex


def matches(record: CalendarRecord, query: str | None) -> bool:
    """Case-insensitive match of ``query`` against title, description and tags."""
    if not query:
        return True
    query_lower = query.lower()
    if query_lower in record.title.lower():
        return True
    if record.description and query_lower in record.description.lower():
        return True
    return any(query_lower in tag.lower() for tag in record.tags)


def _page(
    records: list[CalendarRecord], query: str | None, skip: int, limit: int | None
) -> list[CalendarRecord]:
    """Filter, sort by creation time and slice records."""
    matching = [r for r in records if matches(r, query)]
    matching.sort(key=lambda r: (r.created or _EPOCH, r.id or ""))
    skip = max(skip, 0)
    if limit is None:
        return matching[skip:]
    return matching[skip : skip + limit]


class InMemoryDatastore:
    """Datastore keeping records in a dict."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, CalendarRecord] = {}

    def get(self, calendar_id: str) -> CalendarRecord | None:
        with self._lock:
            record = self._records.get(calendar_id)
            return record.model_copy(deep=True) if record else None

    def insert(self, record: CalendarRecord) -> str:
        calendar_id = new_record_id()
        with self._lock:
            self._records[calendar_id] = record.model_copy(
                update={"id": calendar_id}, deep=True
            )
        return calendar_id

    def replace(self, calendar_id: str, record: CalendarRecord) -> ReplaceResult:
        with self._lock:
            if calendar_id not in self._records:
                return ReplaceResult(modified_count=0)
            self._records[calendar_id] = record.model_copy(
                update={"id": calendar_id}, deep=True
            )
        return ReplaceResult(modified_count=1)

    def delete(self, calendar_id: str) -> DeleteResult:
        with self._lock:
            removed = self._records.pop(calendar_id, None)
        return DeleteResult(removed_count=1 if removed is not None else 0)

    def search(
        self, query: str | None = None, skip: int = 0, limit: int | None = None
    ) -> list[CalendarRecord]:
        with self._lock:
            records = [r.model_copy(deep=True) for r in self._records.values()]
        return _page(records, query, skip, limit)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class JSONFileDatastore:
    """Datastore keeping one JSON document per record in a directory.

    Documents are written to a temporary file and moved into place, so a
    failed write never corrupts a stored record.
    """

    def __init__(self, record_dir: Path):
        """
        Initialize datastore.

        Args:
            record_dir: Directory holding ``<id>.json`` documents
        """
        self.record_dir = Path(record_dir)
        self._lock = threading.Lock()

    def _get_record_path(self, calendar_id: str) -> Path | None:
        """Get path to a record document, or None for malformed ids."""
        if not _ID_PATTERN.match(calendar_id or ""):
            return None
        return self.record_dir / f"{calendar_id}.json"

    def _load(self, path: Path) -> CalendarRecord:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return CalendarRecord.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise DatastoreError(f"Failed to load record {path.stem}: {e}") from e

    def _save(self, path: Path, record: CalendarRecord) -> None:
        tmp_name = None
        try:
            self.record_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.record_dir,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(record.model_dump(mode="json"), tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise DatastoreError(f"Failed to save record {path.stem}: {e}") from e

    def get(self, calendar_id: str) -> CalendarRecord | None:
        path = self._get_record_path(calendar_id)
        with self._lock:
            if path is None or not path.exists():
                return None
            return self._load(path)

    def insert(self, record: CalendarRecord) -> str:
        calendar_id = new_record_id()
        path = self._get_record_path(calendar_id)
        with self._lock:
            self._save(path, record.model_copy(update={"id": calendar_id}))
        logger.debug(f"Inserted record {calendar_id}")
        return calendar_id

    def replace(self, calendar_id: str, record: CalendarRecord) -> ReplaceResult:
        path = self._get_record_path(calendar_id)
        with self._lock:
            if path is None or not path.exists():
                return ReplaceResult(modified_count=0)
            self._save(path, record.model_copy(update={"id": calendar_id}))
        return ReplaceResult(modified_count=1)

    def delete(self, calendar_id: str) -> DeleteResult:
        path = self._get_record_path(calendar_id)
        if path is None:
            return DeleteResult(removed_count=0)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return DeleteResult(removed_count=0)
            except OSError as e:
                raise DatastoreError(f"Failed to delete record {calendar_id}: {e}") from e
        return DeleteResult(removed_count=1)

    def search(
        self, query: str | None = None, skip: int = 0, limit: int | None = None
    ) -> list[CalendarRecord]:
        with self._lock:
            if not self.record_dir.exists():
                return []
            records = [self._load(p) for p in sorted(self.record_dir.glob("*.json"))]
        return _page(records, query, skip, limit)
