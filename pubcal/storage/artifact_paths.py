"""Artifact path allocation for calendar files."""

import logging
import re
import uuid

from pubcal.constants import ICS_EXTENSION
from pubcal.exceptions import InternalInconsistencyError

logger = logging.getLogger(__name__)


class ArtifactPathAllocator:
    """Hands out calendar file paths.

    A path is an opaque handle relative to the artifact store
    (``<32 hex chars>.ics``). It is allocated once when a calendar is
    created and reused unchanged for the calendar's lifetime, so the
    public download location never moves.
    """

    def __init__(self, extension: str = ICS_EXTENSION):
        self.extension = extension
        self._pattern = re.compile(rf"^[0-9a-f]{{32}}\.{re.escape(extension)}$")

    def allocate(self, calendar_id: str | None = None) -> str:
        """Allocate a fresh, unique path.

        The calendar file is written before the record is inserted, so the
        datastore id is usually not known yet; uniqueness comes from a
        random uuid4.
        """
        path = f"{uuid.uuid4().hex}.{self.extension}"
        logger.debug(f"Allocated artifact path {path} (calendar: {calendar_id})")
        return path

    def reuse(self, existing_path: str | None) -> str:
        """Return an existing path unchanged.

        Raises:
            InternalInconsistencyError: If the stored path is missing or was not
                produced by this allocator
        """
        if not existing_path or not self.is_valid(existing_path):
            raise InternalInconsistencyError(
                f"Stored artifact path is not valid: {existing_path!r}"
            )
        return existing_path

    def is_valid(self, path: str) -> bool:
        """True if ``path`` has the shape of an allocated path."""
        return bool(self._pattern.match(path))
