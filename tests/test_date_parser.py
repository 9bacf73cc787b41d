"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from cafebooks.utils.date_parser import PERIODS, get_date_range, parse_date

# A Thursday in the middle of a quarter
TODAY = date(2024, 5, 16)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_persian_digits():
    """Persian digits are read as ASCII digits."""
    assert parse_date("۲۰۲۴-۰۱-۱۵") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("today", date(2024, 5, 16)),
        ("Yesterday", date(2024, 5, 15)),
        ("tomorrow", date(2024, 5, 17)),
        ("30 days ago", date(2024, 4, 16)),
        ("1 day ago", date(2024, 5, 15)),
        ("this week", date(2024, 5, 13)),
        ("last week", date(2024, 5, 6)),
        ("next week", date(2024, 5, 20)),
        ("this month", date(2024, 5, 1)),
        ("last month", date(2024, 4, 1)),
        ("next month", date(2024, 6, 1)),
        ("this year", date(2024, 1, 1)),
        ("last year", date(2023, 1, 1)),
    ],
)
def test_parse_relative_dates(text, expected):
    """Relative dates resolve against the reference day."""
    assert parse_date(text, today=TODAY) == expected


def test_parse_last_month_in_january():
    """Test 'last month' across a year boundary."""
    assert parse_date("last month", today=date(2024, 1, 20)) == date(2023, 12, 1)


def test_parse_defaults_to_current_day():
    assert parse_date("today") == date.today()
    assert parse_date("yesterday") == date.today() - timedelta(days=1)


def test_parse_invalid_relative():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "period,expected",
    [
        ("today", (date(2024, 5, 16), date(2024, 5, 16))),
        ("this-week", (date(2024, 5, 13), date(2024, 5, 16))),
        ("this-month", (date(2024, 5, 1), date(2024, 5, 16))),
        ("this-quarter", (date(2024, 4, 1), date(2024, 5, 16))),
        ("this-year", (date(2024, 1, 1), date(2024, 5, 16))),
        ("last-week", (date(2024, 5, 6), date(2024, 5, 12))),
        ("last-month", (date(2024, 4, 1), date(2024, 4, 30))),
        ("last-quarter", (date(2024, 1, 1), date(2024, 3, 31))),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_get_date_range(period, expected):
    """Named periods cover the expected days."""
    assert get_date_range(period, today=TODAY) == expected


def test_every_period_is_supported():
    for period in PERIODS:
        start, end = get_date_range(period, today=TODAY)
        assert start <= end


def test_get_date_range_last_month_in_march_of_leap_year():
    """Test get_date_range handles month boundaries correctly."""
    assert get_date_range("last-month", today=date(2024, 3, 10)) == (
        date(2024, 2, 1),
        date(2024, 2, 29),
    )


def test_get_date_range_last_quarter_in_january():
    """Test get_date_range handles year boundaries correctly."""
    assert get_date_range("last-quarter", today=date(2024, 1, 5)) == (
        date(2023, 10, 1),
        date(2023, 12, 31),
    )


def test_get_date_range_invalid_period():
    """Test get_date_range with invalid period."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")
