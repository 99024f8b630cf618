"""Spreadsheet ingestion module."""

from ingest.sheet_loader import (
    SUPPORTED_EXTENSIONS as SUPPORTED_EXTENSIONS,
)
from ingest.sheet_loader import (
    load_rows as load_rows,
)

__all__ = ["SUPPORTED_EXTENSIONS", "load_rows"]
