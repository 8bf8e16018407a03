"""Local sources: an open file or an in-memory buffer."""

from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..core.codec import get_file_size


class FileSource:
    """Read-only handle on a file, positioned explicitly by its owner."""

    def __init__(self, path: Union[Path, str]):
        self.path = str(path)
        self.bytes_fetched = 0
        self._size = get_file_size(self.path)
        self._file: Optional[BinaryIO] = open(self.path, 'rb')

    @property
    def size(self) -> int:
        """Return the total size of the file in bytes."""
        return self._size

    @property
    def closed(self) -> bool:
        return self._file is None

    def _handle(self) -> BinaryIO:
        if self._file is None:
            raise ValueError(f"File source is closed ({self.path})")
        return self._file

    def seek(self, pos: int) -> None:
        self._handle().seek(pos)

    def tell(self) -> int:
        return self._handle().tell()

    def read(self, n: int) -> bytes:
        """Read up to `n` bytes from the current position.

        Short reads are retried until the file is exhausted, so fewer than
        `n` bytes come back only at the end of the file.
        """
        fh = self._handle()
        data = fh.read(n)
        while len(data) < n:
            more = fh.read(n - len(data))
            if not more:
                break
            data += more
        self.bytes_fetched += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file handle; safe to call repeatedly."""
        if self._file is not None:
            self._file.close()
            self._file = None


class BufferSource:
    """Bytes held in memory."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]):
        self._data = bytes(data)
        self.bytes_fetched = 0

    @property
    def size(self) -> int:
        """Return the total size of the buffer in bytes."""
        return len(self._data)

    def fetch(self, start: int, length: int) -> bytes:
        """Return at most `length` bytes starting at absolute offset `start`."""
        if start < 0:
            raise ValueError("Start offset cannot be negative")
        data = self._data[start:start + length]
        self.bytes_fetched += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Discard the buffered data."""
        self._data = b''


def open_file_source(path: Union[Path, str]) -> FileSource:
    """Create a file source."""
    return FileSource(path)


def open_buffer_source(data: Union[bytes, bytearray, memoryview]) -> BufferSource:
    """Create an in-memory source."""
    return BufferSource(data)
