"""Materializes calendar records as files in the artifact store."""

import logging

from pubcal.models.calendar import CalendarRecord
from pubcal.output.base import CalendarWriter
from pubcal.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Writes and removes the calendar file belonging to a record."""

    def __init__(self, store: ArtifactStore, writer: CalendarWriter):
        """
        Initialize artifact writer.

        Args:
            store: ArtifactStore to commit files to
            writer: CalendarWriter implementation producing the file content
        """
        self.store = store
        self.writer = writer

    def write(self, path: str, record: CalendarRecord) -> str:
        """Serialize ``record`` and atomically commit it at ``path``.

        Serialization happens before anything touches the store, so a
        failure leaves any previous file at ``path`` intact.

        Returns:
            The path written to

        Raises:
            ArtifactIOError: If serialization or the write fails
        """
        content = self.writer.to_ical(record)
        self.store.write(path, content)
        logger.info(f"Wrote calendar file {path} ({len(record.events)} events)")
        return path

    def delete(self, path: str, missing_ok: bool = False) -> None:
        """Remove the calendar file at ``path``.

        Raises:
            ArtifactNotFoundError: If absent and ``missing_ok`` is False
            ArtifactIOError: If the file could not be removed
        """
        self.store.delete(path, missing_ok=missing_ok)
        logger.info(f"Removed calendar file {path}")

    def read(self, path: str) -> bytes:
        """Read the calendar file at ``path``."""
        return self.store.read(path)
