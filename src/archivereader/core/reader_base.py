from __future__ import annotations
import logging
import pprint
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Sequence, Tuple

from .accessor import ByteAccessor, ByteRange
from .model import ArchiveReaderError

Signature = Tuple[int, bytes]          # (offset, byte-pattern)

logger = logging.getLogger(__name__)


class ArchiveReader(ABC):
    """Base class for archive inspectors.

    A reader owns a `ByteAccessor`; `open()`/`set_data()` load the source into
    it, rewind it and then call `analyze()`, which drives `self.accessor` to
    decode whatever the format needs.
    """

    # --- required by subclasses ---
    formats: ClassVar[tuple[str, ...]] = ()        # file-extensions (lower, no dot)
    signatures: ClassVar[Sequence[Signature]] = () # magic bytes patterns
    priority: ClassVar[int] = 100                  # lower = examined earlier

    max_filename_length: ClassVar[int] = 256       # sanity limit for decoded names

    def __init__(self, file: str | Path | None = None, is_fragment: bool = False,
                 byte_range: ByteRange = None):
        self._accessor = ByteAccessor()
        self.reset()
        if file:
            self.open(file, is_fragment, byte_range)

    # --- registry hook ---
    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        if cls.__dict__.get("abstract", False):
            return
        from .registry import _REGISTRY
        _REGISTRY.register(cls)           # noqa: E402

    # ------------------------------------------------------------------ #
    @property
    def accessor(self) -> ByteAccessor:
        return self._accessor

    @property
    def file(self) -> str:
        return self._accessor.file

    @property
    def error(self) -> str:
        return self._accessor.error

    @property
    def failure(self) -> ArchiveReaderError | None:
        return self._accessor.failure

    @property
    def is_fragment(self) -> bool:
        return self._is_fragment

    def set_max_read_bytes(self, num_bytes: int) -> None:
        self._accessor.set_max_read_bytes(num_bytes)

    # ------------------------------------------------------------------ #
    def open(self, file: str | Path, is_fragment: bool = False, byte_range: ByteRange = None) -> bool:
        """Open the archive file and analyze it, optionally within `byte_range` only."""
        self.reset()
        self._is_fragment = is_fragment
        if not self._accessor.load_file(file, byte_range):
            return False
        return self._run_analyze()

    def set_data(self, data: bytes, is_fragment: bool = False, byte_range: ByteRange = None) -> bool:
        """Analyze archive data held in memory (up to the max read bytes).

        Preferred when dealing with archive fragments.
        """
        self.reset()
        self._is_fragment = is_fragment
        if not self._accessor.load_data(data, byte_range):
            return False
        return self._run_analyze()

    def _run_analyze(self) -> bool:
        try:
            return bool(self.analyze())
        except ArchiveReaderError as e:
            if self._accessor.error != str(e):
                self._accessor.record_error(e)
            logger.warning("Analysis of %s failed: %s", self.file or "data", e)
            return False

    def close(self) -> None:
        self._accessor.close()

    def reset(self) -> None:
        """Forget everything about the previous source."""
        self._accessor.reset()
        self._is_fragment = False
        self.file_count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __str__(self) -> str:
        return pprint.pformat(self.get_summary(full=True), sort_dicts=False)

    # --- required by subclasses ---
    @abstractmethod
    def analyze(self) -> bool:
        """Parse the archive data from the rewound accessor; False if parsing fails."""
        ...

    @abstractmethod
    def get_summary(self, full: bool = False) -> Dict[str, Any]:
        """Summary of the archive information, for pretty-printing."""
        ...

    @abstractmethod
    def get_file_list(self) -> List[Dict[str, Any]] | None:
        """Records for each file in the archive, or None if none are available."""
        ...
