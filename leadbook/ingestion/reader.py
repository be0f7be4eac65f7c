"""Read uploaded spreadsheet bytes into plain positional rows."""
from __future__ import annotations

import csv
import io
from datetime import datetime
from pathlib import PurePath
from typing import Any, List, Optional

import pandas as pd

from leadbook.core.errors import ValidationError

Row = List[Any]

_CSV_SUFFIXES = {".csv", ".tsv"}
_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class UnsupportedFileTypeError(ValidationError):
    """Raised when an upload is not a CSV or Excel workbook."""


class SpreadsheetReadError(ValidationError):
    """Raised when the uploaded content cannot be parsed."""


def read_rows(content: bytes, filename: Optional[str]) -> List[Row]:
    """Parse the first sheet of ``content`` into a list of cell lists.

    Header detection happens later, so no row is treated as a header here.
    Empty cells come back as ``""`` and timestamps as ``datetime``; other
    values keep the type the spreadsheet stored them with.
    """
    suffix = PurePath(filename or "").suffix.lower()
    if suffix not in _CSV_SUFFIXES and suffix not in _EXCEL_SUFFIXES:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{suffix or filename}'. Upload a .xlsx, .xlsm or .csv file"
        )

    if not content:
        return []

    try:
        frame = _read_frame(content, suffix)
    except pd.errors.EmptyDataError:
        return []
    except Exception as exc:
        raise SpreadsheetReadError(f"Could not read spreadsheet: {exc}") from exc

    return [[_clean_cell(value) for value in record] for record in frame.itertuples(index=False, name=None)]


def _csv_width(content: bytes, sep: str) -> int:
    """Field count of the widest line; pandas otherwise sizes columns from line one."""
    text = content.decode("utf-8-sig", errors="replace")
    return max((len(fields) for fields in csv.reader(io.StringIO(text), delimiter=sep)), default=0)


def _read_frame(content: bytes, suffix: str) -> pd.DataFrame:
    buffer = io.BytesIO(content)
    if suffix in _CSV_SUFFIXES:
        sep = "\t" if suffix == ".tsv" else ","
        width = _csv_width(content, sep)
        if not width:
            raise pd.errors.EmptyDataError("No columns to parse from file")
        return pd.read_csv(
            buffer,
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            sep=sep,
        )
    return pd.read_excel(buffer, sheet_name=0, header=None, dtype=object, engine="openpyxl")


def _clean_cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if not isinstance(value, (str, datetime)) and pd.isna(value):
        return ""
    return value


__all__ = ["Row", "SpreadsheetReadError", "UnsupportedFileTypeError", "read_rows"]
