"""archivereader - bounded, windowed access to archive files and fragments."""

import logging
import os

from .core.model import (                                              # re-export
    Result, ArchiveReaderError, UnknownFormatError, ArchiveFormatError,
    SourceNotFoundError, EmptyInputError, InvalidRangeError,
    InsufficientDataError, InvalidReadError, SeekOutOfBoundsError, FileTooLargeError,
)
from .core.accessor import ByteAccessor
from .core.reader_base import ArchiveReader
from .core.registry import _REGISTRY                                  # singleton
from .core.codec import unpack, int64, dos_to_unix_time, format_size, get_file_size
from .io import is_url, fetch_fragment
from .io.base import DEFAULT_MAX_READ_BYTES

# Import readers to trigger registration
from . import parsers  # noqa: F401

logger = logging.getLogger(__name__)


def _to_end(byte_range, size: int | None):
    """Turn a start-only range into one that runs to the last of `size` bytes."""
    if byte_range is None or not size:
        return byte_range
    rng = tuple(byte_range)
    if rng and rng[0] is not None and (len(rng) == 1 or rng[1] is None):
        return (rng[0], size - 1)
    return byte_range


def _choose_reader(name: str, source, data: bytes | None, byte_range, limit: int):
    """Pick a reader from the bytes at the start of the requested window.

    Falls back to the start of the whole source if the window cannot be
    loaded, and to the name's extension alone if nothing can.
    """
    attempts = [None] if byte_range is None else [byte_range, None]
    with ByteAccessor(limit) as acc:
        for rng in attempts:
            loaded = acc.load_data(data, rng) if data is not None else acc.load_file(source, rng)
            if loaded:
                return _REGISTRY.choose_for(name, acc)
    return _REGISTRY.choose(name, b'')


def open_archive(source, *, is_fragment: bool = False, byte_range=None,
                 max_read_bytes: int | None = None) -> ArchiveReader:
    """Pick a reader for a path, URL or bytes and open the source with it.

    `byte_range` is absolute and inclusive; a missing end means the last byte
    of the source. Detection looks at the start of that range, so an archive
    embedded in a larger file is found when the range points at it.

    The returned reader has already been analyzed; check its `error`
    attribute for failures. Raises `UnknownFormatError` if no reader fits.
    """
    limit = max_read_bytes or DEFAULT_MAX_READ_BYTES
    data = None
    if is_url(source):
        data, total_size = fetch_fragment(source, limit)
        logger.debug("Fetched %d bytes of %s (total: %s)", len(data), source, total_size)
        is_fragment = is_fragment or total_size is None or total_size > len(data)
        name = source.split("?", 1)[0]
    elif isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        name = "<data>"
    else:
        name = str(source)

    if data is not None:
        byte_range = _to_end(byte_range, min(len(data), limit))
    elif os.path.isfile(source):
        byte_range = _to_end(byte_range, get_file_size(source))

    reader = _choose_reader(name, source, data, byte_range, limit)()
    if max_read_bytes:
        reader.set_max_read_bytes(max_read_bytes)

    if data is not None:
        reader.set_data(data, is_fragment, byte_range)
    else:
        reader.open(source, is_fragment, byte_range)
    return reader


__all__ = [
    "open_archive", "ArchiveReader", "ByteAccessor",
    "unpack", "int64", "dos_to_unix_time", "format_size", "get_file_size",
    "Result", "ArchiveReaderError", "UnknownFormatError", "ArchiveFormatError",
    "SourceNotFoundError", "EmptyInputError", "InvalidRangeError",
    "InsufficientDataError", "InvalidReadError", "SeekOutOfBoundsError", "FileTooLargeError",
]
