"""Terminal states of the calendar protocols."""

from enum import Enum


class Outcome(str, Enum):
    """Where a create, update or delete ended up.

    Every value names a state of the (record, artifact) pair, so callers and
    logs can tell a clean failure from one that left work behind.
    """

    # create
    CREATED = "created"
    CREATE_REJECTED = "create_rejected"  # invalid payload, nothing written
    CREATE_ARTIFACT_FAILED = "create_artifact_failed"  # file failed, no record
    CREATE_COMPENSATED = "create_compensated"  # insert failed, file removed
    CREATE_ORPHANED = "create_orphaned"  # insert failed, file left behind

    # update
    UPDATED = "updated"
    UPDATE_REJECTED = "update_rejected"
    UPDATE_NOT_FOUND = "update_not_found"
    UPDATE_CONFLICT = "update_conflict"
    UPDATE_ARTIFACT_STALE = "update_artifact_stale"  # record new, file old
    UPDATE_PATH_MISMATCH = "update_path_mismatch"

    # delete
    DELETED = "deleted"
    DELETE_NOT_FOUND = "delete_not_found"
    DELETE_UNCHANGED = "delete_unchanged"
    DELETE_ARTIFACT_FAILED = "delete_artifact_failed"  # record gone, file kept

    @property
    def is_partial(self) -> bool:
        """True if the record and the artifact may disagree."""
        return self in (
            Outcome.CREATE_ORPHANED,
            Outcome.UPDATE_ARTIFACT_STALE,
            Outcome.DELETE_ARTIFACT_FAILED,
        )
