"""CLI implementation for archivereader."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import open_archive
from .core.model import ArchiveReaderError, Result
from .core.util import reader_result, result_asdict
from .io.base import SAVE_CHUNK_SIZE

app = typer.Typer(add_completion=False, help="Inspect archive files, fragments and byte ranges.")


def iter_sources(files: list[str]) -> list[str]:
    """Get list of sources from files argument or stdin."""
    files = files or []
    if "-" in files:
        return [ln.strip() for ln in sys.stdin if ln.strip()]
    return list(files)


def _byte_range(start: Optional[int], end: Optional[int]):
    if start is None and end is None:
        return None
    return (start or 0, end)


def _inspect(src: str, byte_range, is_fragment: bool, max_read_bytes: Optional[int], full: bool) -> Result:
    try:
        reader = open_archive(src, is_fragment=is_fragment, byte_range=byte_range,
                              max_read_bytes=max_read_bytes)
    except (ArchiveReaderError, OSError) as e:
        return Result(success=False, data=None, error=str(e), bytes_fetched=0)
    with reader:
        ok = not reader.error
        return reader_result(reader, ok, full=full)


@app.command()
def info(
    files: list[str] = typer.Argument(None, help="Archive files or URLs to inspect, or '-' for stdin"),
    start: Optional[int] = typer.Option(None, "--start", min=0, help="Absolute first byte to analyze"),
    end: Optional[int] = typer.Option(None, "--end", min=0,
                                      help="Absolute last byte to analyze (inclusive, default: last byte)"),
    fragment: bool = typer.Option(False, "--fragment", help="Treat the sources as archive fragments"),
    max_read_bytes: Optional[int] = typer.Option(None, "--max-read-bytes", min=1,
                                                 help="Bytes kept in memory for URLs and data"),
    file_list: bool = typer.Option(False, "--list", help="Include the list of archived files"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Force JSON-lines output"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log debug output to stderr"),
):
    """Summarize one or many archive files or URLs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(levelname)s %(name)s: %(message)s")

    sel_fields = set(fields.split(",")) if fields else None
    sources = iter_sources(files)
    if not sources:
        typer.echo("No input files given.", err=True)
        raise typer.Exit(code=1)

    byte_range = _byte_range(start, end)
    results = [_inspect(src, byte_range, fragment, max_read_bytes, file_list) for src in sources]

    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        if len(sources) == 1 and not jsonl:
            json.dump(result_asdict(results[0], fields=sel_fields), sink, indent=2)
            sink.write("\n")
        else:
            for res in results:
                sink.write(json.dumps(result_asdict(res, fields=sel_fields)))
                sink.write("\n")
    finally:
        if output:
            sink.close()

    if any(not r.success for r in results):
        raise typer.Exit(code=1)


@app.command()
def dump(
    source: Path = typer.Argument(..., help="Archive file to read from"),
    start: int = typer.Argument(..., min=0, help="Absolute first byte"),
    end: int = typer.Argument(..., min=0, help="Absolute last byte (inclusive)"),
    destination: Path = typer.Argument(..., help="File to create"),
    chunk_size: int = typer.Option(SAVE_CHUNK_SIZE, "--chunk-size", min=1, help="Bytes per write"),
):
    """Save an absolute byte range of SOURCE to DESTINATION."""
    try:
        reader = open_archive(str(source))
    except (ArchiveReaderError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    with reader:
        if reader.accessor.source is None:
            typer.echo(f"Error: {reader.error}", err=True)
            raise typer.Exit(code=1)
        written = reader.accessor.save_range((start, end), destination, chunk_size=chunk_size)
        if written is None:
            typer.echo(f"Error: {reader.accessor.error}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"{written} bytes written to {destination}")


if __name__ == "__main__":
    app()
