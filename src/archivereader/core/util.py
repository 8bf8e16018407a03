from __future__ import annotations
from typing import Dict, Any, Iterable

from .model import Result
from .reader_base import ArchiveReader


def reader_result(reader: ArchiveReader, ok: bool, *, full: bool = False) -> Result:
    """Wrap an opened reader's summary in a `Result`."""
    source = reader.accessor.source
    fetched = source.bytes_fetched if source is not None else 0
    if not ok:
        return Result(False, None, reader.error or "Analysis failed", fetched)
    return Result(True, reader.get_summary(full=full), None, fetched)


def result_asdict(res: Result, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict (skip None) optionally filtered."""
    if not res.success or res.data is None:
        return {"success": False, "error": res.error, "bytes_fetched": res.bytes_fetched}
    payload = {k: v for k, v in res.data.items() if v is not None}
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    payload.update({"success": True, "bytes_fetched": res.bytes_fetched})
    return payload
