from __future__ import annotations

import io
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

"""Raw payload readers: CSV text, Sheets API values and Excel workbooks.

All readers return a 2-D list of trimmed text cells with no header
interpretation; header detection belongs to the column resolver. Rows keep
their ragged length from the source (CSV rows are padded to the widest row).
Blank lines of CSV text are dropped before tokenizing.
"""

__all__ = [
    "PayloadError",
    "rows_from_csv_text",
    "rows_from_values",
    "read_csv_file",
    "read_excel_rows",
]


class PayloadError(Exception):
    """Raised when a raw payload cannot be tokenized into rows."""


def _text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric cells (age, phone) read from workbooks as floats
        return str(int(value))
    return str(value).strip()


def _frame_rows(df: pd.DataFrame) -> list[list[str]]:
    return [[_text(v) for v in row] for row in df.itertuples(index=False, name=None)]


def rows_from_csv_text(text: str) -> list[list[str]]:
    """Tokenize comma-separated, double-quote-escaped text (no embedded newlines)."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    # Upper bound of the field count; quoted commas only add empty columns.
    width = max(line.count(",") for line in lines) + 1
    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            quotechar='"',
            doublequote=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise PayloadError(f"invalid csv payload: {e}") from e
    rows = _frame_rows(df.fillna(""))
    return [_trim_padding(row) for row in rows]


def _trim_padding(row: list[str]) -> list[str]:
    end = len(row)
    while end > 0 and row[end - 1] == "":
        end -= 1
    return row[:end]


def rows_from_values(values: Sequence[Sequence[Any]] | None) -> list[list[str]]:
    """Rows of a Sheets API `values` array (cells may be numbers or missing)."""
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise PayloadError(f"values must be a list of rows, got {type(values).__name__}")
    rows: list[list[str]] = []
    for row in values:
        if row is None:
            rows.append([])
        elif isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise PayloadError(f"row must be a list of cells, got {type(row).__name__}")
        else:
            rows.append([_text(v) for v in row])
    return rows


def read_csv_file(path: Path, encoding: str = "utf-8-sig") -> list[list[str]]:
    """Rows of a local CSV export."""
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise PayloadError(f"cannot read {path}: {e}") from e
    return rows_from_csv_text(text)


def read_excel_rows(path: Path, sheet_name: str | None = None) -> list[list[str]]:
    """Rows of one sheet of an Excel workbook (first sheet when not given).

    Cells are converted to text; datetime cells arrive in ISO form
    (YYYY-MM-DD HH:MM:SS) and are converted by the date canonicalizer.
    """
    try:
        xls = pd.ExcelFile(path)
    except (OSError, ValueError) as e:
        raise PayloadError(f"cannot open workbook {path}: {e}") from e
    names = [str(n) for n in xls.sheet_names]
    if sheet_name is None:
        if not names:
            raise PayloadError(f"workbook {path} has no sheets")
        sheet_name = names[0]
    elif sheet_name not in names:
        raise PayloadError(f"sheet '{sheet_name}' not found in {path.name} (sheets: {names})")
    df = xls.parse(sheet_name, header=None, keep_default_na=False)
    return [_trim_padding(row) for row in _frame_rows(df)]
