"""Calendar record model with Pydantic v2 validation."""

from datetime import datetime
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from pubcal.models.event import EventRecord

# Fields owned by the system; an update payload never changes them.
PROTECTED_FIELDS = frozenset(
    {"id", "artifact_path", "created_by", "subscribed_users", "created"}
)


class CalendarRecord(BaseModel):
    """Calendar record as persisted in the datastore.

    The record is the source of truth; the calendar file at
    ``artifact_path`` is derived from it.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    title: str = ""
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_by: str = Field(min_length=1)
    subscribed_users: list[str] = Field(default_factory=list)
    events: list[EventRecord] = Field(default_factory=list)
    artifact_path: str | None = None

    created: datetime | None = None
    last_updated: datetime | None = None

    @property
    def artifact_filename(self) -> str | None:
        """Download filename (last component of the artifact path)."""
        if not self.artifact_path:
            return None
        return PurePosixPath(self.artifact_path).name

    def public_dict(self) -> dict:
        """JSON-ready dict without storage internals."""
        return self.model_dump(mode="json", exclude={"artifact_path"})
