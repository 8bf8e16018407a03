from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(slots=True)
class Result:
    success: bool
    data: Dict[str, Any] | None
    error: str | None
    bytes_fetched: int         # filled by the source or reader


class ArchiveReaderError(RuntimeError):
    """Base class for every error raised or recorded by the archive readers."""
    pass


class UnknownFormatError(ArchiveReaderError):
    """Raised when no reader can be found for a given source."""
    pass


# --- recoverable: recorded in the error state, reported as a failed call ---

class SourceNotFoundError(ArchiveReaderError):
    """The path does not resolve to an existing regular file."""


class EmptyInputError(ArchiveReaderError):
    """No data was passed for analysis."""


class InvalidRangeError(ArchiveReaderError):
    """The requested byte range is malformed or outside the source."""


# --- strict: raised, the caller broke the cursor contract or data is short ---

class InsufficientDataError(ArchiveReaderError):
    """Fewer bytes were available than requested."""


class InvalidReadError(ArchiveReaderError, ValueError):
    """Read size is not positive or would cross the window boundary."""


class SeekOutOfBoundsError(ArchiveReaderError, ValueError):
    """Seek target lies outside the current window."""


class FileTooLargeError(ArchiveReaderError, OverflowError):
    """Absolute file offset exceeds what the platform can seek to."""


class ArchiveFormatError(ArchiveReaderError):
    """Raised by a reader when the data does not match its format."""
