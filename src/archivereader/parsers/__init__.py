"""Format-specific readers for archivereader."""

from .zip import ZipReader
