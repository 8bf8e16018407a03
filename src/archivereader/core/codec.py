"""Stateless helpers for decoding binary archive fields."""

from __future__ import annotations
import os
import struct
import time
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple

from .model import InsufficientDataError

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def unpack(fmt: str, data: bytes, names: Sequence[str] | None = None, *,
           offset: int = 0) -> Tuple[Any, ...] | Dict[str, Any]:
    """Decode fixed-width fields from `data` as per the `struct` format `fmt`.

    Without a byte-order prefix the fields are read little-endian. When
    `names` is given the values are returned as a dict keyed by those names,
    in order; otherwise as a tuple.

    Unsigned 32-bit codes (``I``/``L``) can never come back negative here,
    as Python ints are unbounded.
    """
    if fmt[:1] not in ("@", "=", "<", ">", "!"):
        fmt = "<" + fmt

    size = struct.calcsize(fmt)
    if len(data) - offset < size:
        raise InsufficientDataError(
            f"Not enough data to unpack {fmt!r} ({size} bytes requested, "
            f"{max(len(data) - offset, 0)} available)")

    values = struct.unpack_from(fmt, data, offset)
    if names is None:
        return values
    if len(names) != len(values):
        raise ValueError(f"Got {len(names)} names for {len(values)} fields in {fmt!r}")
    return dict(zip(names, values))


def int64(low: int, high: int) -> int:
    """Combine the low and high 32-bit halves of a 64-bit integer."""
    return low + (high * 0x100000000)


def dos_to_unix_time(dostime: int) -> int:
    """Convert a packed MS-DOS date/time value to a UNIX timestamp (local time)."""
    sec = 2 * (dostime & 0x1f)
    mins = (dostime >> 5) & 0x3f
    hrs = (dostime >> 11) & 0x1f
    day = (dostime >> 16) & 0x1f
    mon = (dostime >> 21) & 0x0f
    year = ((dostime >> 25) & 0x7f) + 1980

    # mktime normalises out-of-range fields (e.g. month 0) like its C namesake
    return int(time.mktime((year, mon, day, hrs, mins, sec, 0, 0, -1)))


def format_size(num_bytes: int | float, decimals: int = 1) -> str:
    """Return a human-readable byte size, e.g. ``format_size(1536) == '1.5 KB'``."""
    value = num_bytes
    i = 0
    while value > 1024 and i + 1 < len(SIZE_UNITS):
        value /= 1024
        i += 1

    rounded = Decimal(str(value)).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    text = f"{rounded:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def get_file_size(path: str | Path) -> int:
    """Return the exact size of the file in bytes (fine beyond 2 GiB)."""
    return os.stat(path).st_size
