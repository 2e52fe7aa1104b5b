"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_MONTH_NUMBERS = {abbr: number for number, abbr in enumerate(MONTH_ABBREVIATIONS, start=1)}

_DAY_PATTERN = re.compile(r"^\d{1,2}$")
_YEAR_PATTERN = re.compile(r"^\d{4}$")


def parse_source_date(date_str: str) -> date:
    """Parse a CSV date in ``D-Mon-YYYY`` or ``DD-Mon-YYYY`` form.

    The month must be a three-letter English abbreviation with the case used
    in exports ("Jan" .. "Dec"). ``"2024-01-05"`` and other layouts are
    rejected rather than guessed.

    Args:
        date_str: Date string from a CSV record

    Returns:
        Date object

    Raises:
        ValueError: If the string is not a valid source date
    """
    parts = date_str.strip().split("-")
    if len(parts) != 3:
        raise ValueError(f"Invalid date format (expected DD-Mon-YYYY): '{date_str}'")

    day_str, month_str, year_str = parts
    month = _MONTH_NUMBERS.get(month_str)
    if month is None:
        raise ValueError(f"Unknown month '{month_str}' in date '{date_str}'")
    if not _DAY_PATTERN.match(day_str) or not 1 <= int(day_str) <= 31:
        raise ValueError(f"Invalid day '{day_str}' in date '{date_str}'")
    if not _YEAR_PATTERN.match(year_str):
        raise ValueError(f"Invalid year '{year_str}' in date '{date_str}'")

    try:
        return date(int(year_str), month, int(day_str))
    except ValueError as e:
        raise ValueError(f"Invalid date '{date_str}': {e}")


def format_source_date(value: date) -> str:
    """Format a date as ``DD-Mon-YYYY``, the inverse of parse_source_date."""
    return f"{value.day:02d}-{MONTH_ABBREVIATIONS[value.month - 1]}-{value.year:04d}"


def parse_iso_date(date_str: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` date.

    Raises:
        ValueError: If date string is not an ISO calendar date
    """
    try:
        return date.fromisoformat(date_str.strip())
    except ValueError:
        raise ValueError(f"Invalid ISO date '{date_str}' (expected YYYY-MM-DD)")


def parse_date(date_str: str) -> date:
    """Parse a date typed on the command line.

    Supports absolute dates ("2024-01-15", "January 15, 2024", "05-Jan-2024")
    and the relative words "today" and "yesterday".

    Raises:
        ValueError: If date string cannot be parsed
    """
    normalized = date_str.strip().lower()
    today = date.today()

    if normalized == "today":
        return today
    if normalized == "yesterday":
        return today - timedelta(days=1)

    try:
        return date_parser.parse(normalized).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get inclusive start and end dates for a named period.

    Args:
        period: One of this-month, last-month, this-year, last-year

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-month":
        start = (today - relativedelta(months=1)).replace(day=1)
        return start, today.replace(day=1) - timedelta(days=1)
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, this-year, last-year"
    )
