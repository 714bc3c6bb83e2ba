from __future__ import annotations

import io
from pathlib import Path

import pandas as pd

from ..columns import normalize_column_name
from ..errors import ParseError
from ..models.raw_row import RawRow, SourceTable

"""Delimited-text reader for past sales sources.

- Row 1 is the header; every following line is zipped against it positionally.
- Quote-aware tokenisation is delegated to pandas, so a quoted
  "26 Milan Drive, Glen Eden" stays a single cell.
- All cells are read as text; pandas' NA conversion is disabled so values such
  as "NA" or "None" reach the validator untouched.
- Template comment lines (first cell starting with '#') and blank lines are dropped.
- A data line with more fields than the header is malformed; shorter lines
  are padded with empty cells.
"""

__all__ = [
    "ParseError",
    "read_csv_file",
    "read_csv_text",
]

COMMENT_PREFIX = "#"


def read_csv_file(path: Path) -> SourceTable:
    """Read an uploaded CSV file.

    Raises:
        ParseError: kind="unreadable" if the file is missing or not text,
            otherwise as for read_csv_text.
    """
    try:
        text = path.read_bytes().decode("utf-8-sig")
    except FileNotFoundError as e:
        raise ParseError(f"file not found: {path}", kind="unreadable") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{path.name} is not a UTF-8 text file", kind="unreadable") from e
    except OSError as e:
        raise ParseError(f"could not read {path}: {e}", kind="unreadable") from e
    return read_csv_text(text, source_name=path.name)


def read_csv_text(text: str, source_name: str = "<csv>") -> SourceTable:
    """Tokenise CSV text into a SourceTable.

    Raises:
        ParseError: kind="empty" when there is no header or no data rows,
            kind="malformed" when the text cannot be tokenised.
    """
    if not text.strip():
        raise ParseError(f"no data found in {source_name}", kind="empty")
    try:
        # header=None: the first line fixes the width, so a data line with
        # more fields than the header is a tokenising error, never an index
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="error",
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"no data found in {source_name}", kind="empty") from e
    except pd.errors.ParserError as e:
        raise ParseError(f"could not parse {source_name}: {e}", kind="malformed") from e

    records = df.itertuples(index=False, name=None)
    header = next(records, None)
    if header is None:
        raise ParseError(f"no data found in {source_name}", kind="empty")
    columns = [normalize_column_name("" if pd.isna(c) else str(c)) for c in header]
    rows: list[RawRow] = []
    for raw in records:
        cells = ["" if pd.isna(v) else str(v) for v in raw]
        # blank (",,,,") and comment lines
        if all(c.strip() == "" for c in cells):
            continue
        if cells and cells[0].lstrip().startswith(COMMENT_PREFIX):
            continue
        rows.append(
            RawRow(
                row_number=len(rows) + 1,
                values=dict(zip(columns, cells, strict=False)),
            )
        )

    if not rows:
        raise ParseError(f"no records found in {source_name}", kind="empty")
    return SourceTable(source_name=source_name, columns=columns, rows=rows)
