"""Tests for CLI date filter helpers."""

from datetime import date

import click
import pytest

from cafebooks.cli.date_filters import (
    PERIOD_FLAGS,
    parse_date_or_exit,
    pop_period_flags,
    resolve_cli_date_range,
)
from cafebooks.utils.date_parser import get_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def _flags(*set_periods: str) -> dict[str, bool]:
    return {period: period in set_periods for period in PERIOD_FLAGS}


def test_pop_period_flags_removes_flag_arguments():
    kwargs = {"period_" + p.replace("-", "_"): p == "last-month" for p in PERIOD_FLAGS}
    kwargs["account"] = "1-101"

    flags = pop_period_flags(kwargs)

    assert kwargs == {"account": "1-101"}
    assert flags["last-month"] is True
    assert sum(flags.values()) == 1


def test_resolve_cli_date_range_rejects_multiple_periods(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date=None,
            end_date=None,
            period_flags=_flags("this-month", "last-month"),
        )

    assert excinfo.value.exit_code == 1
    assert "Only one period option" in capsys.readouterr().err


def test_resolve_cli_date_range_rejects_period_with_start_end(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-01-01",
            end_date=None,
            period_flags=_flags("this-quarter"),
        )

    assert excinfo.value.exit_code == 1
    assert "cannot be combined" in capsys.readouterr().err


def test_resolve_cli_date_range_returns_period_range():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date=None,
        end_date=None,
        period_flags=_flags("last-year"),
    )

    assert (start, end) == get_date_range("last-year")


def test_resolve_cli_date_range_parses_explicit_dates():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date="2024-01-02",
        end_date="۲۰۲۴-۰۱-۰۵",
        period_flags=_flags(),
    )

    assert start == date(2024, 1, 2)
    assert end == date(2024, 1, 5)


def test_resolve_cli_date_range_applies_default_range():
    default_range = (date(2020, 1, 1), date(2020, 1, 31))

    start, end = resolve_cli_date_range(
        _ctx(),
        start_date=None,
        end_date=None,
        period_flags=_flags(),
        default_range=default_range,
    )

    assert (start, end) == default_range


def test_resolve_cli_date_range_open_ended():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date="2024-01-02",
        end_date=None,
        period_flags=_flags(),
        default_range=(date(2020, 1, 1), date(2020, 1, 31)),
    )

    assert start == date(2024, 1, 2)
    assert end is None


def test_resolve_cli_date_range_rejects_reversed_dates(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-02-01",
            end_date="2024-01-01",
            period_flags=_flags(),
        )

    assert excinfo.value.exit_code == 1
    assert "Start date is after end date" in capsys.readouterr().err


def test_resolve_cli_date_range_invalid_start_date(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="not-a-date",
            end_date=None,
            period_flags=_flags(),
        )

    assert excinfo.value.exit_code == 1
    assert "Invalid start date" in capsys.readouterr().err


def test_parse_date_or_exit():
    assert parse_date_or_exit(_ctx(), None) == date.today()
    assert parse_date_or_exit(_ctx(), "2024-03-01") == date(2024, 3, 1)


def test_parse_date_or_exit_invalid(capsys):
    with pytest.raises(click.exceptions.Exit):
        parse_date_or_exit(_ctx(), "someday soon", "as-of date")

    assert "Invalid as-of date" in capsys.readouterr().err
