"""
Bounded access to a byte window of a file or an in-memory buffer.

`ByteAccessor` owns at most one source at a time and keeps three sets of
coordinates in step: the absolute position in the source, the cursor offset
relative to the window start, and the window itself (`start`, `end`,
`length`, zero-indexed and inclusive of `end`). Every window change goes
through `check_range`, every read is checked against the window, and the
range helpers put the window and cursor back exactly as they found them.

Failures caused by bad input (missing file, empty data, bad range) are
recorded in `error`/`failure` and reported by returning False or None.
Breaking the cursor contract (reading or seeking outside the window) or
running short of data raises.
"""

from __future__ import annotations
import logging
import operator
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from ..io import open_source
from ..io.base import DEFAULT_MAX_READ_BYTES, SAVE_CHUNK_SIZE, MAX_FILE_OFFSET
from ..io.local import FileSource, BufferSource
from .codec import get_file_size, format_size
from .model import (
    ArchiveReaderError, SourceNotFoundError, EmptyInputError, InvalidRangeError,
    InsufficientDataError, InvalidReadError, SeekOutOfBoundsError, FileTooLargeError,
)

logger = logging.getLogger(__name__)

ByteRange = Optional[Sequence[Optional[int]]]   # (start, end), absolute and inclusive
PathLike = Union[str, Path]


def _as_offset(value) -> Optional[int]:
    """Return `value` as a non-negative int, or None if it is not one."""
    if isinstance(value, bool):
        return None
    try:
        value = operator.index(value)
    except TypeError:
        return None
    return value if value >= 0 else None


def _resolve_file(path: PathLike | None) -> Optional[str]:
    if not path:
        return None
    try:
        resolved = Path(path).resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    return str(resolved) if resolved.is_file() else None


class ByteAccessor:
    """Window, cursor and range extraction over a single file or buffer source."""

    def __init__(self, max_read_bytes: int = DEFAULT_MAX_READ_BYTES):
        self._max_read_bytes = DEFAULT_MAX_READ_BYTES
        self.set_max_read_bytes(max_read_bytes)
        self._source: FileSource | BufferSource | None = None
        self.reset()

    # ------------------------------------------------------------------ #
    # read-only state
    # ------------------------------------------------------------------ #
    @property
    def file(self) -> str:
        """Canonical path of the open file, '' for buffers."""
        return self._file

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def data_size(self) -> int:
        return self._data_size

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def length(self) -> int:
        return self._length

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def source(self) -> FileSource | BufferSource | None:
        return self._source

    @property
    def max_read_bytes(self) -> int:
        return self._max_read_bytes

    @property
    def error(self) -> str:
        """The last error message, or '' if the last range check passed."""
        return self._error

    @property
    def failure(self) -> ArchiveReaderError | None:
        """The exception describing the last recorded error, if any."""
        return self._failure

    def _fail(self, exc: ArchiveReaderError) -> bool:
        self.record_error(exc)
        return False

    def record_error(self, exc: ArchiveReaderError) -> ArchiveReaderError:
        self._error = str(exc)
        self._failure = exc
        return exc

    def _clear_error(self) -> None:
        self._error = ''
        self._failure = None

    def _is_file(self) -> bool:
        return isinstance(self._source, FileSource) and not self._source.closed

    # ------------------------------------------------------------------ #
    # source lifecycle
    # ------------------------------------------------------------------ #
    def set_max_read_bytes(self, num_bytes: int) -> None:
        """Set the maximum number of bytes `load_data` keeps; non-positive values are ignored."""
        if isinstance(num_bytes, int) and not isinstance(num_bytes, bool) and num_bytes > 0:
            self._max_read_bytes = num_bytes

    def load_file(self, path: PathLike, byte_range: ByteRange = None) -> bool:
        """Open `path` read-only and window it, optionally to `byte_range` only."""
        self.reset()
        if not self.set_range(byte_range):
            return False

        archive = _resolve_file(path)
        if archive is None:
            return self._fail(SourceNotFoundError(f"File does not exist ({path})"))

        self._file = archive
        self._file_size = get_file_size(archive)
        if self._file_size == 0:
            return self._fail(EmptyInputError(f"File is empty, nothing to analyze ({path})"))
        if not self._end_given:
            self._end = self._file_size - 1
        if not self.check_range():
            return False

        try:
            self._source = open_source(archive)
        except OSError as e:
            return self._fail(SourceNotFoundError(f"Could not open file ({path}): {e}"))
        self.rewind()

        logger.debug("Opened %s (%s), window %d-%d", archive, format_size(self._file_size),
                     self._start, self._end)
        return True

    def load_data(self, data: bytes, byte_range: ByteRange = None) -> bool:
        """Keep up to `max_read_bytes` of `data` and window it, optionally to `byte_range` only."""
        self.reset()
        if not self.set_range(byte_range):
            return False

        if not data:
            return self._fail(EmptyInputError("No data was passed, nothing to analyze"))

        if len(data) > self._max_read_bytes:
            logger.debug("Truncating %d bytes of data to %d", len(data), self._max_read_bytes)
            data = data[:self._max_read_bytes]
        self._data_size = len(data)
        if not self._end_given:
            self._end = self._data_size - 1
        if not self.check_range():
            return False

        self._source = open_source(data)
        self.rewind()
        return True

    def close(self) -> None:
        """Release the file handle or buffered data, if any."""
        if self._source is not None:
            self._source.close()
            self._source = None

    def reset(self) -> None:
        """Close the source and zero all state."""
        self.close()
        self._file = ''
        self._file_size = 0
        self._data_size = 0
        self._start = 0
        self._end = 0
        self._end_given = False
        self._length = 0
        self._offset = 0
        self._clear_error()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------ #
    # window
    # ------------------------------------------------------------------ #
    def set_range(self, byte_range: ByteRange = None) -> bool:
        """Set the absolute start and end positions (zero-indexed, end inclusive).

        Missing values default to 0.
        """
        byte_range = tuple(byte_range) if byte_range is not None else ()
        raw_start = byte_range[0] if len(byte_range) > 0 else None
        raw_end = byte_range[1] if len(byte_range) > 1 else None

        start = 0 if raw_start is None else _as_offset(raw_start)
        end = 0 if raw_end is None else _as_offset(raw_end)
        if start is None or end is None:
            return self._fail(InvalidRangeError(
                f"Start ({raw_start}) and end ({raw_end}) points must be positive integers"))
        if end < start:
            return self._fail(InvalidRangeError(
                f"End point ({end}) must be higher than start point ({start})"))

        self._start = start
        self._end = end
        self._end_given = raw_end is not None
        return self.check_range()

    def check_range(self) -> bool:
        """Check the current window against the size of the source."""
        self._length = self._end - self._start + 1
        bound = self._file_size if self._file else self._data_size
        if bound and (self._end >= bound or self._start >= bound or self._length < 1):
            return self._fail(InvalidRangeError(f"Byte range ({self._start}-{self._end}) is invalid"))
        self._clear_error()
        return True

    # ------------------------------------------------------------------ #
    # cursor
    # ------------------------------------------------------------------ #
    def seek(self, pos: int) -> None:
        """Move the cursor to `pos`, relative to the window start."""
        if pos > self._length or pos < 0:
            raise self.record_error(SeekOutOfBoundsError(f"Could not seek to {pos} (max: {self._length})"))

        if self._is_file():
            file_pos = self._start + pos
            if file_pos >= MAX_FILE_OFFSET:
                raise self.record_error(FileTooLargeError(
                    f"The file is too large for this platform (> {format_size(MAX_FILE_OFFSET)})"))
            self._source.seek(file_pos)

        self._offset = pos

    def tell(self) -> int:
        """Return the absolute position in the source."""
        if self._is_file():
            return self._source.tell()
        return self._start + self._offset

    def rewind(self) -> None:
        """Move the cursor back to the window start."""
        if self._is_file():
            self._source.seek(0)
        self.seek(0)

    def read(self, num: int) -> bytes:
        """Read `num` bytes at the cursor and move it forward."""
        if num == 0:
            return b''

        new_pos = self._offset + num
        if num < 1 or new_pos > self._length:
            raise self.record_error(InvalidReadError(f"Could not read {num} bytes from offset {self._offset}"))

        data = None
        if self._is_file():
            data = self._source.read(num)
        elif isinstance(self._source, BufferSource):
            data = self._source.fetch(self.tell(), num)

        if data is None or len(data) < num:
            available = 'none' if data is None else len(data)
            if self._is_file():
                self._source.seek(self._start + self._offset)
            raise self.record_error(InsufficientDataError(
                f"Not enough data to read ({num} bytes requested, {available} available)"))

        self._offset = new_pos
        return data

    # ------------------------------------------------------------------ #
    # range extraction
    # ------------------------------------------------------------------ #
    def _snapshot(self) -> Tuple[int, int, int, int]:
        return self._start, self._end, self._length, self._offset

    def _restore(self, snapshot: Tuple[int, int, int, int]) -> None:
        self._start, self._end, self._length, offset = snapshot
        self.seek(offset)

    def get_range(self, byte_range: ByteRange) -> Optional[bytes]:
        """Return the data in the absolute `byte_range`, or None if the range is invalid.

        The current window and cursor are left untouched.
        """
        snapshot = self._snapshot()
        if not self.set_range(byte_range):
            self._restore(snapshot)
            return None

        try:
            self.seek(0)
            return self.read(self._length)
        finally:
            self._restore(snapshot)

    def save_range(self, byte_range: ByteRange, destination: PathLike,
                   chunk_size: int = SAVE_CHUNK_SIZE) -> Optional[int]:
        """Write the data in the absolute `byte_range` to the file `destination`.

        The data is streamed in chunks of `chunk_size` bytes. Returns the number
        of bytes written, or None if the range is invalid or `destination`
        cannot be created. If the source runs short mid-copy, `destination` is
        removed before the error propagates. The current window and cursor are
        left untouched.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be strictly positive! (is: {chunk_size})")

        snapshot = self._snapshot()
        if not self.set_range(byte_range):
            self._restore(snapshot)
            return None

        try:
            self.seek(0)
            try:
                fh = open(destination, 'wb')
            except OSError as e:
                self._fail(ArchiveReaderError(
                    f"Could not open destination file for writing ({destination}): {e}"))
                return None

            written = 0
            try:
                with fh:
                    remaining = self._length
                    while self._offset < self._length:
                        data = self.read(min(chunk_size, remaining))
                        remaining -= len(data)
                        written += fh.write(data)
            except ArchiveReaderError:
                # no partial copies
                Path(destination).unlink(missing_ok=True)
                raise

            logger.debug("Saved %d bytes (%d-%d) to %s", written, self._start, self._end, destination)
            return written
        finally:
            self._restore(snapshot)
