"""Storage layer for calendar records and files."""

from pubcal.storage.artifact_paths import ArtifactPathAllocator
from pubcal.storage.artifact_store import ArtifactStore
from pubcal.storage.datastore import (
    Datastore,
    DeleteResult,
    InMemoryDatastore,
    JSONFileDatastore,
    ReplaceResult,
)

__all__ = [
    "ArtifactPathAllocator",
    "ArtifactStore",
    "Datastore",
    "DeleteResult",
    "InMemoryDatastore",
    "JSONFileDatastore",
    "ReplaceResult",
]
