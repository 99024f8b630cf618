"""Spreadsheet date normalization.

Dealer exports carry dates either as text ("01-10-2025", "01/10/2025") or as
spreadsheet serial day numbers (45931). Everything is normalized to
DD/MM/YYYY for storage and display.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# Serial 1 is 1900-01-01, and the format counts a fictitious 1900-02-29,
# so serial N is 1899-12-30 + N days for every date after February 1900.
EXCEL_EPOCH = date(1899, 12, 30)
MIN_SERIAL = 1
MAX_SERIAL = 100000

DISPLAY_FORMAT = "%d/%m/%Y"

_SERIAL_RE = re.compile(r"^(\d+)(\.\d+)?$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_YEAR_FIRST_RE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")


def format_date(value: date) -> str:
    """Format a date as DD/MM/YYYY."""
    return value.strftime(DISPLAY_FORMAT)


def serial_to_date(serial: int) -> date:
    return EXCEL_EPOCH + timedelta(days=serial)


def convert_excel_date(value: Any) -> Any:
    """
    Convert a spreadsheet date cell to DD/MM/YYYY.

    Delimited strings keep their field order; dashes become slashes.
    Serial numbers in [1, 100000] are converted. Anything else, including
    out-of-range serials, comes back unchanged. Never raises.
    """
    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, str) and ("/" in value or "-" in value):
        return value.replace("-", "/")

    try:
        serial = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return value

    if serial < MIN_SERIAL or serial > MAX_SERIAL:
        logger.debug(f"Not a spreadsheet serial date: {value!r}")
        return value

    try:
        return format_date(serial_to_date(serial))
    except OverflowError:
        return value


def parse_booking_date(value: Any) -> Optional[date]:
    """
    Parse a booking's scheduled date.

    Accepts serial numbers (fraction ignored), DD-MM-YYYY / DD/MM/YYYY,
    YYYY-MM-DD / YYYY/MM/DD and anything dateutil can read day-first.
    Returns None when unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    if _SERIAL_RE.match(text):
        try:
            return EXCEL_EPOCH + timedelta(days=int(float(text)))
        except OverflowError:
            return None

    match = _DAY_FIRST_RE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    # Year-first strings ("2025-11-05", or "2025/11/05" after normalization)
    # must not be read day-first
    match = _YEAR_FIRST_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable booking date: {text!r}")
        return None
