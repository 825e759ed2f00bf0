"""Output layer for calendar files."""

from pubcal.output.artifact_writer import ArtifactWriter
from pubcal.output.base import CalendarWriter
from pubcal.output.ics_writer import ICSWriter

__all__ = [
    "ArtifactWriter",
    "CalendarWriter",
    "ICSWriter",
]
