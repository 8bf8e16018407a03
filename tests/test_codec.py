"""Tests for the binary decoding helpers."""

import os
import struct
import tempfile
import time

import pytest

from archivereader.core.codec import unpack, int64, dos_to_unix_time, format_size, get_file_size
from archivereader.core.model import InsufficientDataError


def pack_dos(year, month, day, hour, minute, second):
    """Pack a calendar time into the MS-DOS date/time layout."""
    return ((year - 1980) << 25) | (month << 21) | (day << 16) | (hour << 11) | (minute << 5) | (second // 2)


class TestUnpack:
    """Test fixed-width field decoding."""

    def test_little_endian_by_default(self):
        assert unpack("HI", b"\x01\x00\x02\x00\x00\x00") == (1, 2)

    def test_explicit_byte_order_wins(self):
        assert unpack(">H", b"\x01\x00") == (256,)

    def test_unsigned_long_stays_positive(self):
        """A 32-bit field with the top bit set decodes as unsigned."""
        (value,) = unpack("I", b"\xff\xff\xff\xff")
        assert value == 0xFFFFFFFF

    def test_named_fields(self):
        data = struct.pack("<HIB", 7, 0x80000000, 3)
        assert unpack("HIB", data, ("flags", "size", "kind")) == {
            "flags": 7, "size": 0x80000000, "kind": 3,
        }

    def test_offset(self):
        assert unpack("H", b"\x00\x00\x05\x00", offset=2) == (5,)

    def test_short_data(self):
        with pytest.raises(InsufficientDataError, match="4 bytes requested, 3 available"):
            unpack("I", b"\x00\x00\x00")

    def test_name_count_mismatch(self):
        with pytest.raises(ValueError, match="names"):
            unpack("HH", b"\x00" * 4, ("only_one",))


class TestInt64:
    """Test 64-bit reconstruction from 32-bit halves."""

    @pytest.mark.parametrize("low, high", [
        (0, 0), (1, 0), (0, 1), (0xFFFFFFFF, 0), (0xFFFFFFFF, 0xFFFFFFFF), (12345, 678),
    ])
    def test_combines_halves(self, low, high):
        assert int64(low, high) == low + high * 2 ** 32

    def test_matches_struct(self):
        value = 0x0123456789ABCDEF
        low, high = struct.unpack("<II", struct.pack("<Q", value))
        assert int64(low, high) == value


class TestDosTime:
    """Test MS-DOS timestamp conversion."""

    def test_new_year_2021(self):
        raw = pack_dos(2021, 1, 1, 0, 0, 0)
        assert raw == (41 << 25) | (1 << 21) | (1 << 16)
        assert time.localtime(dos_to_unix_time(raw))[:6] == (2021, 1, 1, 0, 0, 0)

    def test_all_fields(self):
        raw = pack_dos(2013, 7, 14, 15, 42, 58)
        assert time.localtime(dos_to_unix_time(raw))[:6] == (2013, 7, 14, 15, 42, 58)

    def test_matches_mktime(self):
        raw = pack_dos(1999, 12, 31, 23, 59, 30)
        assert dos_to_unix_time(raw) == int(time.mktime((1999, 12, 31, 23, 59, 30, 0, 0, -1)))


class TestFormatSize:
    """Test human-readable size formatting."""

    def test_common_sizes(self):
        assert format_size(1536, 1) == "1.5 KB"
        assert format_size(0, 1) == "0 B"

    def test_defaults_to_one_decimal(self):
        assert format_size(1536) == "1.5 KB"

    def test_exact_units_drop_zeros(self):
        assert format_size(2048) == "2 KB"
        assert format_size(3 * 1024 ** 3) == "3 GB"

    def test_1024_stays_in_bytes(self):
        assert format_size(1024) == "1024 B"
        assert format_size(500) == "500 B"

    def test_rounds_half_up(self):
        assert format_size(1280, 1) == "1.3 KB"   # 1.25 KB
        assert format_size(1500, 2) == "1.46 KB"
        assert format_size(1500, 0) == "1 KB"

    def test_largest_unit(self):
        assert format_size(1024 ** 9 * 5) == "5120 YB"


class TestGetFileSize:
    """Test file size probing."""

    def test_size(self):
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"0123456789")
            f.flush()
            assert get_file_size(f.name) == 10

    def test_sparse_file_beyond_2gib(self, tmp_path):
        path = tmp_path / "sparse.bin"
        size = 3 * 1024 ** 3 + 7
        with open(path, "wb") as f:
            f.truncate(size)
        assert get_file_size(path) == size
        assert get_file_size(str(path)) == os.path.getsize(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_file_size(tmp_path / "missing")
