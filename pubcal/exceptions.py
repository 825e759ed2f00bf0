"""Exception hierarchy for calendar operations."""

from pubcal.models.outcome import Outcome


class PubcalError(Exception):
    """Base exception for calendar operations.

    Errors raised by the calendar manager carry the terminal state the
    operation ended in as ``outcome``.
    """

    def __init__(self, message: str = "", outcome: Outcome | None = None):
        super().__init__(message)
        self.outcome = outcome


class ValidationError(PubcalError):
    """Invalid calendar payload (nothing was changed)."""

    def __init__(
        self,
        message: str = "",
        field: str | None = None,
        outcome: Outcome | None = None,
    ):
        super().__init__(message, outcome=outcome)
        self.field = field


class CalendarNotFoundError(PubcalError):
    """Calendar not found."""

    pass


class ArtifactNotFoundError(PubcalError):
    """Calendar file not found in the artifact store."""

    pass


class ConflictError(PubcalError):
    """Calendar changed underneath a running operation."""

    pass


class ArtifactIOError(PubcalError):
    """Error writing, reading or removing a calendar file."""

    pass


class ExportError(ArtifactIOError):
    """Error during iCalendar serialization."""

    pass


class DatastoreError(PubcalError):
    """Error in the record datastore."""

    pass


class InternalInconsistencyError(PubcalError):
    """Record and artifact bookkeeping disagree."""

    pass
