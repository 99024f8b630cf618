"""Tests for spreadsheet date normalization."""

import math
from datetime import date, datetime

import pytest

from extractors.date_converter import convert_excel_date, format_date, parse_booking_date


class TestConvertExcelDate:
    """Tests for convert_excel_date."""

    @pytest.mark.parametrize("serial,expected", [
        (45931, "01/10/2025"),
        (45964, "03/11/2025"),
        ("45931", "01/10/2025"),
        (45931.75, "01/10/2025"),
        (61, "01/03/1900"),
    ])
    def test_serial_numbers(self, serial, expected):
        assert convert_excel_date(serial) == expected

    def test_dashes_become_slashes(self):
        """Dash-delimited strings are rewritten without reordering."""
        assert convert_excel_date("01-10-2025") == "01/10/2025"
        assert convert_excel_date("2025-10-01") == "2025/10/01"

    def test_slash_string_unchanged(self):
        assert convert_excel_date("03/11/2025") == "03/11/2025"

    @pytest.mark.parametrize("value", [0, -3, 100001, "200000"])
    def test_out_of_range_serial_passes_through(self, value):
        assert convert_excel_date(value) == value

    @pytest.mark.parametrize("value", ["next week", None, "", True])
    def test_non_dates_pass_through(self, value):
        assert convert_excel_date(value) == value

    def test_never_raises_on_odd_input(self):
        odd = object()
        assert convert_excel_date(odd) is odd
        assert math.isnan(convert_excel_date(float("nan")))


class TestParseBookingDate:
    """Tests for parse_booking_date."""

    def test_serial(self):
        assert parse_booking_date("45931") == date(2025, 10, 1)

    def test_serial_with_fraction(self):
        assert parse_booking_date("45931.5") == date(2025, 10, 1)

    def test_day_first_dashes(self):
        assert parse_booking_date("05-11-2025") == date(2025, 11, 5)

    def test_day_first_slashes(self):
        """Stored bookings carry the normalized DD/MM/YYYY form."""
        assert parse_booking_date("05/11/2025") == date(2025, 11, 5)

    def test_free_form_with_time(self):
        assert parse_booking_date("05/11/2025 10:30 AM") == date(2025, 11, 5)

    def test_iso_string(self):
        assert parse_booking_date("2025-11-05") == date(2025, 11, 5)

    def test_year_first_slashes(self):
        """ISO dates come back from the mapper with slashes."""
        assert parse_booking_date("2025/11/05") == date(2025, 11, 5)
        assert parse_booking_date("2025/11/05 09:30") == date(2025, 11, 5)

    def test_date_objects(self):
        assert parse_booking_date(datetime(2025, 1, 2, 9, 0)) == date(2025, 1, 2)
        assert parse_booking_date(date(2025, 1, 2)) == date(2025, 1, 2)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", "31-02-2025"])
    def test_unparseable_is_none(self, value):
        assert parse_booking_date(value) is None


def test_format_date():
    assert format_date(date(2025, 3, 7)) == "07/03/2025"
