"""Filesystem store for published calendar files."""

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from pubcal.exceptions import (
    ArtifactIOError,
    ArtifactNotFoundError,
    InternalInconsistencyError,
)

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Durable byte storage for calendar files under one directory.

    Writes go to a temporary file next to the target and are moved into
    place with ``os.replace``, so readers see either the old file or the
    new one, never a partial write.
    """

    def __init__(self, root: Path):
        """
        Initialize store.

        Args:
            root: Directory holding the calendar files
        """
        self.root = Path(root)

    def resolve(self, path: str) -> Path:
        """Map an artifact path to a location on disk.

        Raises:
            InternalInconsistencyError: If the path would leave the store
        """
        relative = PurePosixPath(path)
        if (
            not relative.parts
            or relative.is_absolute()
            or ".." in relative.parts
            or path.endswith("/")
        ):
            raise InternalInconsistencyError(f"Invalid artifact path: {path!r}")
        return self.root.joinpath(*relative.parts)

    def exists(self, path: str) -> bool:
        """Check if a calendar file exists."""
        return self.resolve(path).is_file()

    def write(self, path: str, content: bytes) -> None:
        """Atomically create or replace the file at ``path``.

        Raises:
            ArtifactIOError: If the file could not be written; any previous
                content at ``path`` is left untouched
        """
        target = self.resolve(path)
        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ArtifactIOError(f"Failed to write calendar file {path}: {e}") from e

        logger.debug(f"Wrote {len(content)} bytes to {target}")

    def read(self, path: str) -> bytes:
        """Read the file at ``path``.

        Raises:
            ArtifactNotFoundError: If there is no file at ``path``
            ArtifactIOError: If the file could not be read
        """
        target = self.resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"Calendar file not found: {path}") from e
        except OSError as e:
            raise ArtifactIOError(f"Failed to read calendar file {path}: {e}") from e

    def delete(self, path: str, missing_ok: bool = False) -> None:
        """Remove the file at ``path``.

        Args:
            path: Artifact path
            missing_ok: Treat an already absent file as success

        Raises:
            ArtifactNotFoundError: If the file is absent and ``missing_ok`` is False
            ArtifactIOError: If the file could not be removed
        """
        target = self.resolve(path)
        try:
            target.unlink()
        except FileNotFoundError as e:
            if missing_ok:
                logger.debug(f"Calendar file already absent: {target}")
                return
            raise ArtifactNotFoundError(f"Calendar file not found: {path}") from e
        except OSError as e:
            raise ArtifactIOError(f"Failed to remove calendar file {path}: {e}") from e

        logger.debug(f"Removed {target}")
