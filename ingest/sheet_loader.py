"""Spreadsheet loading: uploaded bytes to a list of raw header->value rows."""

import logging
import math
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from core.exceptions import SheetParseError

logger = logging.getLogger(__name__)

EXCEL_ENGINES = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xls": "xlrd",
}
SUPPORTED_EXTENSIONS = tuple(EXCEL_ENGINES) + (".csv",)


def cell_to_text(value: Any) -> Optional[str]:
    """Normalize one cell to trimmed text; None for empty cells."""
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, pd.Timestamp)):
        if pd.isna(value):
            return None
        return value.strftime("%d/%m/%Y")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    text = str(value).strip()
    return text or None


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame to row dicts, dropping blank headers and empty rows."""
    headers = []
    for column in df.columns:
        name = str(column).strip()
        if not name or name.startswith("Unnamed:"):
            headers.append(None)
        else:
            headers.append(name)

    rows = []
    for values in df.itertuples(index=False, name=None):
        row = {}
        for header, value in zip(headers, values):
            if header is None:
                continue
            text = cell_to_text(value)
            if text is not None:
                row[header] = text
        if row:
            rows.append(row)
    return rows


def load_rows(content: bytes, filename: str) -> List[Dict[str, Any]]:
    """
    Parse the first sheet of an uploaded spreadsheet.

    Args:
        content: Raw file bytes
        filename: Original filename, used to pick the reader

    Returns:
        Rows keyed by the sheet's own (trimmed) header text

    Raises:
        SheetParseError: unsupported type, unreadable content, or no data
    """
    extension = Path(filename or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise SheetParseError(
            f"Unsupported file type '{extension or filename}'. "
            f"Expected one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    try:
        if extension == ".csv":
            df = pd.read_csv(BytesIO(content), dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(
                BytesIO(content),
                sheet_name=0,
                dtype=object,
                engine=EXCEL_ENGINES[extension],
            )
    except Exception as e:
        raise SheetParseError(f"Failed to parse spreadsheet: {e}") from e

    if len(df.columns) == 0:
        raise SheetParseError("Spreadsheet has no header row")

    rows = frame_to_rows(df)
    if not rows:
        raise SheetParseError("Excel file is empty or contains no valid data")

    logger.info(f"Parsed {filename}: {len(rows)} data rows, {len(df.columns)} columns")
    return rows
