"""
Tabular Parser — one delimited call-log file into rows + ordered columns.

The delimiter is chosen from the first line: a tab anywhere in it selects
TSV, otherwise CSV.  Quoting follows the standard CSV dialect, so quoted
fields may contain delimiters and newlines.  Blank lines are skipped.

Usage::

    from pipeline.parsing import parse_file

    rows, columns = parse_file(Path("calls.csv"))
"""

from __future__ import annotations

import csv
import io
from pathlib import Path

from pipeline.errors import ParseError
from utils.config import PROVENANCE_COLUMNS

# Encodings tried in order; cp1252 catches spreadsheet exports from Windows
_ENCODINGS = ("utf-8-sig", "cp1252")


def detect_delimiter(text: str) -> str:
    """Return "\\t" if the first line contains a tab, else ","."""
    first_line = text.split("\n", 1)[0]
    return "\t" if "\t" in first_line else ","


def decode_bytes(raw: bytes, source: str | None = None) -> str:
    """Decode uploaded bytes as text.

    Raises:
        ParseError: If the bytes are binary or undecodable.
    """
    if b"\x00" in raw[:4096]:
        raise ParseError("File is not a text file (contains NUL bytes)", source)
    for enc in _ENCODINGS:
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    raise ParseError("File could not be decoded as text", source)


def parse_text(
    text: str,
    delimiter: str | None = None,
    source: str | None = None,
) -> tuple[list[dict[str, str | None]], list[str]]:
    """Parse delimited text into (rows, columns).

    Args:
        text: Full file contents.
        delimiter: Force a delimiter; auto-detected from the first line if None.
        source: File name used in error messages.

    Returns:
        rows: one dict per non-empty data line keyed by header column.  Short
              lines map the missing trailing columns to None; surplus fields
              on long lines are dropped.
        columns: header names in file order (blank headers become
                 ``Column<n>``, duplicates get a ``_<n>`` suffix).

    Raises:
        ParseError: On an empty file, a missing header or malformed quoting.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        raise ParseError("File is empty", source)
    delim = delimiter or detect_delimiter(text)

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delim, strict=True)
    try:
        header = next(reader)
        while not any(cell.strip() for cell in header):
            header = next(reader)
    except StopIteration:
        raise ParseError("File has no header row", source) from None
    except csv.Error as e:
        raise ParseError(f"Malformed header: {e}", source) from e

    columns = _unique_columns(header)
    rows: list[dict[str, str | None]] = []
    try:
        for record in reader:
            if not record or not any(cell.strip() for cell in record):
                continue
            row: dict[str, str | None] = {}
            for i, col in enumerate(columns):
                row[col] = record[i] if i < len(record) else None
            rows.append(row)
    except csv.Error as e:
        raise ParseError(f"Malformed CSV near line {reader.line_num}: {e}", source) from e

    return rows, columns


def parse_bytes(
    raw: bytes,
    delimiter: str | None = None,
    source: str | None = None,
) -> tuple[list[dict[str, str | None]], list[str]]:
    """Decode then parse raw upload bytes (see parse_text)."""
    return parse_text(decode_bytes(raw, source), delimiter=delimiter, source=source)


def parse_file(
    path: Path,
    delimiter: str | None = None,
) -> tuple[list[dict[str, str | None]], list[str]]:
    """Read and parse a stored file (see parse_text).

    Raises:
        ParseError: If the file is missing, unreadable or malformed.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise ParseError(f"Cannot read file: {e}", str(path)) from e
    return parse_bytes(raw, delimiter=delimiter, source=Path(path).name)


def _unique_columns(header: list[str]) -> list[str]:
    """Strip header cells and make them unique and non-empty.

    A repeated name gets the first free ``_2``, ``_3`` ... suffix.  The
    provenance column names are reserved for the merge, so a file that uses
    one keeps its data under a suffixed name.
    """
    columns: list[str] = []
    seen: set[str] = set(PROVENANCE_COLUMNS)
    for i, cell in enumerate(header, 1):
        base = cell.strip() or f"Column{i}"
        name, n = base, 1
        while name in seen:
            n += 1
            name = f"{base}_{n}"
        seen.add(name)
        columns.append(name)
    return columns
