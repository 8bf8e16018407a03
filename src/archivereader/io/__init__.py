"""Source layer for archivereader - owns the bytes the accessor windows over."""

# Re-export these for import convenience
from .base import ByteSource, DEFAULT_MAX_READ_BYTES, SAVE_CHUNK_SIZE, MAX_FILE_OFFSET
from .local import FileSource, BufferSource, open_file_source, open_buffer_source
from .http import fetch_fragment


def is_url(source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def open_source(source):
    """Factory function to create the appropriate source for a path or buffer."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return open_buffer_source(source)
    return open_file_source(source)
