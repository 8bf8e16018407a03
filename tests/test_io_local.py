"""Tests for local file and buffer sources."""

import pytest
import tempfile
from pathlib import Path

from archivereader.io import open_source, is_url, ByteSource
from archivereader.io.local import FileSource, BufferSource, open_file_source, open_buffer_source


class TestFileSource:
    """Test the read-only file source."""

    def test_basic_read(self):
        """Test sequential and positioned reads."""
        test_data = b"0123456789"

        with tempfile.NamedTemporaryFile() as f:
            f.write(test_data)
            f.flush()

            source = FileSource(f.name)
            assert source.size == 10
            assert source.read(5) == b"01234"
            assert source.tell() == 5
            source.seek(2)
            assert source.read(3) == b"234"

            # Check bytes_fetched accounting
            assert source.bytes_fetched == 8

            source.close()

    def test_short_read_at_eof(self):
        """Reading past the end returns what is left."""
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"0123456789")
            f.flush()

            with FileSource(f.name) as source:
                source.seek(8)
                assert source.read(5) == b"89"
                assert source.read(5) == b""

    def test_path_source(self):
        """Test using Path as source."""
        with tempfile.NamedTemporaryFile(delete=False) as f:
            f.write(b"0123456789")
            f.flush()
            temp_path = Path(f.name)

        try:
            source = FileSource(temp_path)
            assert source.path == str(temp_path)
            assert source.read(5) == b"01234"
            source.close()
        finally:
            temp_path.unlink()

    def test_close_is_idempotent(self):
        """Closing twice is fine, using a closed source is not."""
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"0123456789")
            f.flush()

            source = FileSource(f.name)
            source.close()
            source.close()
            assert source.closed
            with pytest.raises(ValueError, match="closed"):
                source.read(1)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileSource(tmp_path / "missing.bin")


class TestBufferSource:
    """Test the in-memory source."""

    def test_fetch(self):
        source = BufferSource(b"0123456789")
        assert source.size == 10
        assert source.fetch(0, 5) == b"01234"
        assert source.fetch(2, 3) == b"234"
        assert source.bytes_fetched == 8

    def test_fetch_past_end_is_short(self):
        source = BufferSource(b"0123456789")
        assert source.fetch(8, 5) == b"89"
        assert source.fetch(20, 5) == b""

    def test_negative_start(self):
        source = BufferSource(b"0123456789")
        with pytest.raises(ValueError, match="Start offset cannot be negative"):
            source.fetch(-1, 5)

    def test_copies_mutable_input(self):
        data = bytearray(b"0123")
        source = BufferSource(data)
        data[0:1] = b"X"
        assert source.fetch(0, 1) == b"0"

    def test_close_discards_data(self):
        with BufferSource(b"0123456789") as source:
            assert source.size == 10
        assert source.size == 0


class TestFactoryFunctions:
    """Test factory functions."""

    def test_open_source_with_bytes(self):
        source = open_source(b"0123456789")
        assert isinstance(source, BufferSource)
        assert isinstance(source, ByteSource)

    def test_open_source_with_path(self):
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"0123456789")
            f.flush()

            source = open_source(f.name)
            assert isinstance(source, FileSource)
            assert isinstance(source, ByteSource)
            source.close()

    def test_named_factories(self):
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"01")
            f.flush()
            source = open_file_source(f.name)
            assert source.read(2) == b"01"
            source.close()
        assert open_buffer_source(b"ab").fetch(0, 2) == b"ab"

    def test_is_url(self):
        assert is_url("http://example.com/a.zip")
        assert is_url("https://example.com/a.zip")
        assert not is_url("/tmp/a.zip")
        assert not is_url(b"http://")
