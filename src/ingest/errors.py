"""
Ingestion error taxonomy and non-fatal decode warnings.

Structural failures raise one of the ``IngestError`` subclasses and abort the
whole ingestion. Record-level defects never raise; they are reported as
``DecodeWarning`` entries returned next to the resulting collection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


class IngestError(Exception):
    """Base class for errors that abort an ingestion call."""

    def __init__(self, message: str, *, filename: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


class UnsupportedFormat(IngestError):
    """Filename extension is not handled by any registered parser."""


class MalformedInput(IngestError):
    """Top-level structure could not be parsed (bad JSON, bad XML, bad CSV)."""

    def __init__(
        self,
        message: str,
        *,
        location: Optional[str] = None,
        filename: Optional[str] = None,
    ):
        if location:
            message = f"{message} (at {location})"
        super().__init__(message, filename=filename)
        self.location = location


class MissingRequiredColumn(IngestError):
    """Tabular input has no resolvable longitude and/or latitude column."""

    def __init__(
        self,
        message: str,
        *,
        columns: Sequence[str] = (),
        filename: Optional[str] = None,
    ):
        super().__init__(message, filename=filename)
        self.columns = list(columns)


class DecodeError(IngestError):
    """Columnar payload is corrupt or uses an unsupported encoding."""


@dataclass(frozen=True)
class DecodeWarning:
    """A single record that was dropped during normalization."""

    location: str
    """Where the record came from (e.g. ``features[3]``, ``row 5``)."""

    reason: str
    """Why it was dropped."""

    def __str__(self) -> str:
        return f"{self.location}: {self.reason}"


__all__ = [
    "IngestError",
    "UnsupportedFormat",
    "MalformedInput",
    "MissingRequiredColumn",
    "DecodeError",
    "DecodeWarning",
]
