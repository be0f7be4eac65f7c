"""Spreadsheet ingestion: header resolution, row normalisation and bulk import."""
from .engine import BulkIngestionEngine, FailedRow, IngestionReport, NoUsableRowsError, ingest_rows
from .reader import SpreadsheetReadError, UnsupportedFileTypeError, read_rows

__all__ = [
    "BulkIngestionEngine",
    "FailedRow",
    "IngestionReport",
    "NoUsableRowsError",
    "SpreadsheetReadError",
    "UnsupportedFileTypeError",
    "ingest_rows",
    "read_rows",
]
