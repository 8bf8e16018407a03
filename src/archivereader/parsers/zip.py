from __future__ import annotations

import warnings
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Sequence

from ..core.codec import unpack, int64, dos_to_unix_time
from ..core.model import ArchiveFormatError, InsufficientDataError
from ..core.reader_base import ArchiveReader, Signature

LOCAL_FILE_SIG = b"PK\x03\x04"
CENTRAL_DIR_SIG = b"PK\x01\x02"
END_SIGS = (
    CENTRAL_DIR_SIG,
    b"PK\x05\x06",   # end of central directory
    b"PK\x06\x06",   # zip64 end of central directory
    b"PK\x06\x07",   # zip64 end of central directory locator
    b"PK\x05\x05",   # digital signature
)

_LOCAL_HEADER = "HHHIIIIHH"
_LOCAL_HEADER_FIELDS = (
    "version", "flags", "method", "dostime", "crc32",
    "packed_size", "size", "name_length", "extra_length",
)
_LOCAL_HEADER_SIZE = 26

_FLAG_ENCRYPTED = 0x0001
_FLAG_DATA_DESCRIPTOR = 0x0008
_FLAG_UTF8 = 0x0800

_ZIP64_EXTRA_ID = 0x0001
_ZIP64_MARKER = 0xFFFFFFFF


class ZipReader(ArchiveReader):
    """ZIP reader that walks the local file headers (no central directory)."""

    formats: ClassVar[tuple[str, ...]] = ("zip", "jar")
    signatures: ClassVar[Sequence[Signature]] = ((0, LOCAL_FILE_SIG), (0, b"PK\x05\x06"))
    priority: ClassVar[int] = 20

    def reset(self) -> None:
        super().reset()
        self._entries: List[Dict[str, Any]] = []
        self._truncated = False

    # ------------------------------------------------------------------ #
    def _take(self, num: int, meaning: str) -> bytes:
        acc = self.accessor
        if acc.offset + num > acc.length:
            raise InsufficientDataError(
                f"Truncated {meaning} at offset {acc.tell()} "
                f"({num} bytes needed, {acc.length - acc.offset} left)")
        return acc.read(num)

    @staticmethod
    def _apply_zip64(header: Dict[str, Any], extra: bytes) -> None:
        pos = 0
        while len(extra) - pos >= 4:
            field_id, field_size = unpack("HH", extra, offset=pos)
            body = extra[pos + 4:pos + 4 + field_size]
            pos += 4 + field_size
            if field_id != _ZIP64_EXTRA_ID:
                continue

            # values appear only for the fields flagged in the fixed header, in this order
            fpos = 0
            for key in ("size", "packed_size"):
                if header[key] == _ZIP64_MARKER and len(body) - fpos >= 8:
                    low, high = unpack("II", body, offset=fpos)
                    header[key] = int64(low, high)
                    fpos += 8
            return

    def _read_entry(self) -> Dict[str, Any] | None:
        """Parse one local header (signature already consumed); None ends the walk."""
        acc = self.accessor
        header = unpack(_LOCAL_HEADER, self._take(_LOCAL_HEADER_SIZE, "local file header"),
                        _LOCAL_HEADER_FIELDS)

        if header["name_length"] > self.max_filename_length:
            raise ArchiveFormatError(
                f"Filename length ({header['name_length']}) exceeds the maximum "
                f"({self.max_filename_length}) at offset {acc.tell()}")

        raw_name = self._take(header["name_length"], "filename")
        extra = self._take(header["extra_length"], "extra field")
        self._apply_zip64(header, extra)

        encoding = "utf-8" if header["flags"] & _FLAG_UTF8 else "cp437"
        name = raw_name.decode(encoding, errors="replace")

        if header["flags"] & _FLAG_DATA_DESCRIPTOR and header["packed_size"] == 0:
            warnings.warn(f"Entry {name!r} stores its sizes in a data descriptor, stopping")
            return None

        data_start = acc.tell()
        packed_size = header["packed_size"]
        entry = {
            "name": name,
            "size": header["size"],
            "packed_size": packed_size,
            "date": dos_to_unix_time(header["dostime"]),
            "compressed": header["method"] != 0,
            "method": header["method"],
            "encrypted": bool(header["flags"] & _FLAG_ENCRYPTED),
            "is_dir": name.endswith("/"),
            "crc32": header["crc32"],
            "range": f"{data_start}-{data_start + packed_size - 1}" if packed_size else None,
            "next_offset": data_start + packed_size,
        }

        skip_to = acc.offset + packed_size
        if skip_to > acc.length:
            self._entries.append(entry)
            raise InsufficientDataError(
                f"Data of {name!r} ends at offset {data_start + packed_size}, "
                f"past the end of the available data")
        acc.seek(skip_to)
        return entry

    def analyze(self) -> bool:
        acc = self.accessor
        while acc.length - acc.offset >= 4:
            sig_pos = acc.tell()
            sig = acc.read(4)

            if sig in END_SIGS:
                break
            if sig != LOCAL_FILE_SIG:
                if not self._entries:
                    raise ArchiveFormatError(f"Not a ZIP local file header at offset {sig_pos}")
                warnings.warn(f"Unexpected ZIP signature {sig.hex()} at offset {sig_pos}, stopping")
                break

            try:
                entry = self._read_entry()
            except InsufficientDataError:
                if not self.is_fragment:
                    raise
                self._truncated = True
                break
            if entry is None:
                break
            self._entries.append(entry)

        self.file_count = len(self._entries)
        return True

    # ------------------------------------------------------------------ #
    def get_file_list(self) -> List[Dict[str, Any]] | None:
        if not self._entries:
            return None
        return [dict(entry) for entry in self._entries]

    def get_summary(self, full: bool = False) -> Dict[str, Any]:
        acc = self.accessor
        summary: Dict[str, Any] = {
            "format": "ZIP",
            "file_name": Path(acc.file).name if acc.file else None,
            "file_size": acc.file_size,
            "data_size": acc.data_size,
            "use_range": f"{acc.start}-{acc.end}",
            "file_count": self.file_count,
            "is_fragment": self.is_fragment,
            "truncated": self._truncated,
        }
        if self.error:
            summary["error"] = self.error
        if full:
            summary["file_list"] = self.get_file_list()
        return summary
