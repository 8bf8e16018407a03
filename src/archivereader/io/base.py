"""Base protocols and shared constants for the source layer."""

import sys
from typing import Protocol, runtime_checkable


DEFAULT_MAX_READ_BYTES = 1024 * 1024  # 1 MiB kept in memory by set_data()
SAVE_CHUNK_SIZE = 1024                # bytes per write when saving a range
MAX_FILE_OFFSET = sys.maxsize         # largest absolute offset we will seek to


@runtime_checkable
class ByteSource(Protocol):
    """Protocol shared by the file and buffer sources."""

    bytes_fetched: int  # running total

    @property
    def size(self) -> int:
        """Total size of the source in bytes."""
        ...

    def close(self) -> None:
        ...
