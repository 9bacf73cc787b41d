"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_DIGITS = str.maketrans("۰۱۲۳۴۵۶۷۸۹", "0123456789")
_DAYS_AGO = re.compile(r"^(\d+) days? ago$")

PERIODS = (
    "today",
    "this-week",
    "this-month",
    "this-quarter",
    "this-year",
    "last-week",
    "last-month",
    "last-quarter",
    "last-year",
)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones ("today", "yesterday", "30 days ago", "last month", "this year").
    Persian digits are accepted.

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower().translate(_DIGITS)
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    match = _DAYS_AGO.match(date_str)
    if match:
        return today - timedelta(days=int(match.group(1)))

    # "last/this/next" + period resolves to the first day of that period
    for prefix, offset in (("last ", -1), ("this ", 0), ("next ", 1)):
        if date_str.startswith(prefix):
            period = date_str[len(prefix):]
            if period == "month":
                return (today + relativedelta(months=offset)).replace(day=1)
            if period == "year":
                return today.replace(month=1, day=1) + relativedelta(years=offset)
            if period == "week":
                return today - timedelta(days=today.weekday()) + timedelta(weeks=offset)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def _quarter_start(day: date) -> date:
    return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Periods starting with "this" end today; periods starting with "last"
    cover the whole previous period.

    Args:
        period: One of PERIODS
        today: Reference day (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "today":
        return (today, today)
    if period == "this-week":
        return (today - timedelta(days=today.weekday()), today)
    if period == "this-month":
        return (today.replace(day=1), today)
    if period == "this-quarter":
        return (_quarter_start(today), today)
    if period == "this-year":
        return (today.replace(month=1, day=1), today)
    if period == "last-week":
        start = today - timedelta(days=today.weekday() + 7)
        return (start, start + timedelta(days=6))
    if period == "last-month":
        first_of_month = today.replace(day=1)
        return (first_of_month - relativedelta(months=1), first_of_month - timedelta(days=1))
    if period == "last-quarter":
        first_of_quarter = _quarter_start(today)
        return (first_of_quarter - relativedelta(months=3), first_of_quarter - timedelta(days=1))
    if period == "last-year":
        first_of_year = today.replace(month=1, day=1)
        return (first_of_year - relativedelta(years=1), first_of_year - timedelta(days=1))

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
