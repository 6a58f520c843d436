"""
Date utilities for the apportionment checker.

This module provides a centralized API for the date handling the checks rely
on: parsing, month boundaries, the MM-DD-YYYY format used by the platform,
and the inclusive reporting window that every aggregation query filters on.

Key Functions:
    - parse_date(): Parse various date inputs to pd.Timestamp
    - month_start(): Get first day of month
    - month_end(): Get last day of month (handles leap years)
    - parse_mm_dd_yyyy(): Strict MM-DD-YYYY parsing
    - format_mm_dd_yyyy(): Format as MM-DD-YYYY
    - month_date_range(): Reporting window for a month offset
    - build_date_window(): Window with UTC query bounds

Usage Example:
    >>> from src.utils.date_utils import month_date_range
    >>> window = month_date_range(-1, today="2025-03-14")
    >>> window.from_date, window.to_date
    ('02-01-2025', '02-28-2025')
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

import pandas as pd


DateLike = Union[str, date, datetime, pd.Timestamp]

_MM_DD_YYYY = re.compile(r'^\d{2}-\d{2}-\d{4}$')


def parse_date(value: DateLike) -> pd.Timestamp:
    """
    Parse various date inputs into a timezone-naive pandas Timestamp.

    Args:
        value: ISO string, datetime.date, datetime.datetime or pd.Timestamp

    Returns:
        pd.Timestamp

    Raises:
        ValueError: If the input cannot be parsed as a valid date
        TypeError: If the input type is not supported

    Examples:
        >>> parse_date("2024-10-31")
        Timestamp('2024-10-31 00:00:00')
    """
    if value is None:
        raise ValueError("Date value cannot be None")

    if isinstance(value, pd.Timestamp):
        result = value
    elif isinstance(value, (datetime, date)):
        result = pd.Timestamp(value)
    elif isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Date string cannot be empty")
        try:
            result = pd.to_datetime(value)
        except Exception as e:
            raise ValueError(f"Unable to parse date string '{value}': {e}")
    else:
        raise TypeError(
            f"Unsupported date type: {type(value).__name__}. "
            f"Expected str, date, datetime, or pd.Timestamp"
        )

    if result.tz is not None:
        result = result.tz_convert('UTC').tz_localize(None)
    return result


def month_start(value: DateLike) -> pd.Timestamp:
    """
    Get the first day of the month for a given date.

    Examples:
        >>> month_start("2024-10-31")
        Timestamp('2024-10-01 00:00:00')
    """
    return parse_date(value).replace(day=1).normalize()


def month_end(value: DateLike) -> pd.Timestamp:
    """
    Get the last day of the month for a given date.

    Uses the pandas MonthEnd offset, so leap years are handled.

    Examples:
        >>> month_end("2024-02-10")
        Timestamp('2024-02-29 00:00:00')
    """
    parsed = parse_date(value)
    return (parsed + pd.offsets.MonthEnd(0)).normalize()


def parse_mm_dd_yyyy(value: str) -> pd.Timestamp:
    """
    Parse a strict MM-DD-YYYY string to midnight of that day.

    Raises:
        ValueError: If the string does not match MM-DD-YYYY or is not a real date

    Examples:
        >>> parse_mm_dd_yyyy("02-28-2025")
        Timestamp('2025-02-28 00:00:00')
    """
    if not isinstance(value, str) or not _MM_DD_YYYY.match(value.strip()):
        raise ValueError(
            f"Date string '{value}' does not match MM-DD-YYYY format"
        )
    try:
        return pd.Timestamp(datetime.strptime(value.strip(), '%m-%d-%Y'))
    except ValueError as e:
        raise ValueError(f"Invalid date value '{value}': {e}")


def format_mm_dd_yyyy(value: DateLike) -> str:
    """Format a date value as MM-DD-YYYY."""
    return parse_date(value).strftime('%m-%d-%Y')


def end_of_day(value: DateLike) -> pd.Timestamp:
    """Last representable millisecond of the given day (23:59:59.999)."""
    return parse_date(value).normalize() + pd.Timedelta(days=1) - pd.Timedelta(milliseconds=1)


@dataclass(frozen=True)
class DateWindow:
    """
    Inclusive reporting window.

    Attributes:
        from_date: First day, MM-DD-YYYY
        to_date: Last day, MM-DD-YYYY
    """
    from_date: str
    to_date: str

    def __post_init__(self):
        start = parse_mm_dd_yyyy(self.from_date)
        end = parse_mm_dd_yyyy(self.to_date)
        if start > end:
            raise ValueError(
                f"Window start {self.from_date} is after window end {self.to_date}"
            )

    @property
    def query_from(self) -> datetime:
        """Lower query bound: 00:00:00.000 UTC on from_date (naive, as stored by the platform)."""
        return parse_mm_dd_yyyy(self.from_date).to_pydatetime()

    @property
    def query_to(self) -> datetime:
        """Upper query bound: 23:59:59.999 UTC on to_date."""
        return end_of_day(parse_mm_dd_yyyy(self.to_date)).to_pydatetime()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fromDate': self.from_date,
            'toDate': self.to_date,
            'fromDateISO': self.query_from.isoformat(timespec='milliseconds') + 'Z',
            'toDateISO': self.query_to.isoformat(timespec='milliseconds') + 'Z',
        }


def build_date_window(from_date: DateLike, to_date: DateLike) -> DateWindow:
    """Build a DateWindow from any two date values."""
    return DateWindow(format_mm_dd_yyyy(from_date), format_mm_dd_yyyy(to_date))


def month_date_range(month_offset: int = 0, today: Optional[DateLike] = None) -> DateWindow:
    """
    Window covering a whole calendar month relative to today.

    Args:
        month_offset: 0 for the current month, -1 for the previous month, ...
        today: Reference date (default: now)

    Returns:
        DateWindow from the first to the last day of the target month

    Examples:
        >>> month_date_range(-1, today="2025-01-15").to_dict()['fromDate']
        '12-01-2024'
    """
    reference = parse_date(today) if today is not None else pd.Timestamp.now()
    target = month_start(reference) + pd.DateOffset(months=month_offset)
    return build_date_window(month_start(target), month_end(target))


__all__ = [
    'DateWindow',
    'parse_date',
    'month_start',
    'month_end',
    'parse_mm_dd_yyyy',
    'format_mm_dd_yyyy',
    'end_of_day',
    'build_date_window',
    'month_date_range',
]
