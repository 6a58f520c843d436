"""
Unit tests for date_utils module.

Tests cover:
- Flexible parsing and month boundaries (leap years)
- Strict MM-DD-YYYY parsing and formatting
- DateWindow query bounds and serialization
- Month offsets across year boundaries
"""

from datetime import date, datetime

import pandas as pd
import pytest

from src.utils.date_utils import (
    DateWindow,
    build_date_window,
    end_of_day,
    format_mm_dd_yyyy,
    month_date_range,
    month_end,
    month_start,
    parse_date,
    parse_mm_dd_yyyy,
)


class TestParseDate:
    """Tests for parse_date function."""

    def test_iso_string(self):
        assert parse_date("2024-10-31") == pd.Timestamp("2024-10-31")

    def test_date_and_datetime(self):
        assert parse_date(date(2024, 10, 31)) == pd.Timestamp("2024-10-31")
        assert parse_date(datetime(2024, 10, 31, 15, 30)) == pd.Timestamp("2024-10-31 15:30")

    def test_timezone_aware_converted_to_naive_utc(self):
        result = parse_date(pd.Timestamp("2024-10-31 02:00", tz="Europe/Paris"))
        assert result.tz is None
        assert result == pd.Timestamp("2024-10-31 01:00")

    def test_none_and_empty_rejected(self):
        with pytest.raises(ValueError):
            parse_date(None)
        with pytest.raises(ValueError):
            parse_date("   ")

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            parse_date(12345)


class TestMonthBoundaries:
    """Tests for month_start / month_end."""

    def test_month_start(self):
        assert month_start("2024-10-31") == pd.Timestamp("2024-10-01")

    def test_month_end_leap_year(self):
        assert month_end("2024-02-10") == pd.Timestamp("2024-02-29")
        assert month_end("2025-02-10") == pd.Timestamp("2025-02-28")

    def test_month_end_on_last_day(self):
        assert month_end("2024-12-31") == pd.Timestamp("2024-12-31")


class TestMmDdYyyy:
    """Tests for the platform's MM-DD-YYYY format."""

    def test_parse(self):
        assert parse_mm_dd_yyyy("02-28-2025") == pd.Timestamp("2025-02-28")

    @pytest.mark.parametrize("value", ["2025-02-28", "2-28-2025", "02/28/2025", ""])
    def test_parse_rejects_other_formats(self, value):
        with pytest.raises(ValueError):
            parse_mm_dd_yyyy(value)

    def test_parse_rejects_impossible_date(self):
        with pytest.raises(ValueError):
            parse_mm_dd_yyyy("02-30-2025")

    def test_format(self):
        assert format_mm_dd_yyyy("2025-03-01") == "03-01-2025"

    def test_end_of_day(self):
        assert end_of_day("2025-03-31") == pd.Timestamp("2025-03-31 23:59:59.999")


class TestDateWindow:
    """Tests for DateWindow."""

    def test_query_bounds_inclusive(self):
        window = DateWindow("03-01-2025", "03-31-2025")
        assert window.query_from == datetime(2025, 3, 1, 0, 0, 0)
        assert window.query_to == datetime(2025, 3, 31, 23, 59, 59, 999000)

    def test_to_dict(self):
        window = DateWindow("03-01-2025", "03-31-2025")
        assert window.to_dict() == {
            "fromDate": "03-01-2025",
            "toDate": "03-31-2025",
            "fromDateISO": "2025-03-01T00:00:00.000Z",
            "toDateISO": "2025-03-31T23:59:59.999Z",
        }

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError, match="after window end"):
            DateWindow("04-01-2025", "03-31-2025")

    def test_single_day_window(self):
        window = build_date_window("2025-03-15", "2025-03-15")
        assert window.from_date == window.to_date == "03-15-2025"

    def test_build_date_window_from_dates(self):
        window = build_date_window(date(2025, 3, 1), pd.Timestamp("2025-03-31"))
        assert (window.from_date, window.to_date) == ("03-01-2025", "03-31-2025")


class TestMonthDateRange:
    """Tests for month_date_range."""

    def test_current_month(self):
        window = month_date_range(0, today="2025-03-14")
        assert (window.from_date, window.to_date) == ("03-01-2025", "03-31-2025")

    def test_previous_month(self):
        window = month_date_range(-1, today="2025-03-14")
        assert (window.from_date, window.to_date) == ("02-01-2025", "02-28-2025")

    def test_previous_month_across_year(self):
        window = month_date_range(-1, today="2025-01-15")
        assert (window.from_date, window.to_date) == ("12-01-2024", "12-31-2024")

    def test_end_of_month_reference(self):
        window = month_date_range(-1, today="2025-03-31")
        assert window.to_date == "02-28-2025"
