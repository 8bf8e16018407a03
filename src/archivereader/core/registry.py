from __future__ import annotations
import bisect
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Type

from .accessor import ByteAccessor
from .reader_base import ArchiveReader
from .model import ArchiveReaderError, UnknownFormatError

SNIFF_SIZE = 4096


def window_head(accessor: ByteAccessor, size: int = SNIFF_SIZE) -> bytes:
    """Return up to `size` bytes from the start of the accessor's window.

    The window and cursor are left as they were; b"" if nothing is loaded
    or the bytes cannot be read.
    """
    if accessor.source is None or accessor.length < 1:
        return b''
    start = accessor.start
    try:
        return accessor.get_range((start, start + min(size, accessor.length) - 1)) or b''
    except ArchiveReaderError:
        return b''


class ReaderRegistry:
    def __init__(self) -> None:
        self._by_ext: Dict[str, List[tuple[int, str, Type[ArchiveReader]]]] = defaultdict(list)
        self._readers: List[tuple[int, str, Type[ArchiveReader]]] = []   # sorted by priority

    # called from ArchiveReader.__init_subclass__
    def register(self, reader_cls: Type[ArchiveReader]) -> None:
        # (priority, class_name, reader_cls) keeps sorting stable
        entry = (reader_cls.priority, reader_cls.__name__, reader_cls)
        bisect.insort(self._readers, entry)
        for ext in reader_cls.formats:
            bisect.insort(self._by_ext[ext], entry)

    # --- detection helpers ---
    def _sniff(self, head: bytes) -> List[Type[ArchiveReader]]:
        """Readers whose signatures match `head` (offsets relative to the window start)."""
        return [r for _, _, r in self._readers
                if any(head[offset:offset + len(pat)] == pat for offset, pat in r.signatures)]

    def _by_suffix(self, source: str | Path) -> List[Type[ArchiveReader]]:
        ext = Path(str(source)).suffix.lower().lstrip(".")
        return [r for _, _, r in self._by_ext.get(ext, ())] if ext else []

    def choose(self, source: str | Path, head: bytes) -> Type[ArchiveReader]:
        """Pick a reader for the window whose first bytes are `head`.

        Magic bytes decide; the extension of `source` only breaks ties between
        matching readers, or stands in when nothing matches (missing files,
        fragments that start mid-archive).
        """
        matches = self._sniff(head)
        hinted = self._by_suffix(source)
        for reader in matches:
            if reader in hinted:
                return reader
        if matches:
            return matches[0]
        if hinted:
            return hinted[0]
        raise UnknownFormatError(f"No reader for {source!s}")

    def choose_for(self, source: str | Path, accessor: ByteAccessor) -> Type[ArchiveReader]:
        """Pick a reader for the current window of a loaded accessor."""
        return self.choose(source, window_head(accessor))


# singleton used project-wide
_REGISTRY = ReaderRegistry()
