"""Row-level extraction: header mapping and date normalization."""

from extractors.column_mapper import (
    ColumnMapper,
    get_column_mapper,
    map_columns,
    map_rows,
    reset_column_mapper,
)
from extractors.date_converter import convert_excel_date, format_date, parse_booking_date

__all__ = [
    # Column mapping
    "ColumnMapper",
    "get_column_mapper",
    "reset_column_mapper",
    "map_columns",
    "map_rows",
    # Dates
    "convert_excel_date",
    "parse_booking_date",
    "format_date",
]
