"""CLI helpers for date range resolution."""

from datetime import date

import click

from cafebooks.utils.date_parser import get_date_range, parse_date

PERIOD_FLAGS = (
    "this-week",
    "this-month",
    "this-quarter",
    "this-year",
    "last-week",
    "last-month",
    "last-quarter",
    "last-year",
)


def period_options(command):
    """Add --start-date/--end-date and the period flags to a command.

    The command receives them as ``start_date``, ``end_date`` and a
    ``period_flags`` dict keyed by period name.
    """
    for period in reversed(PERIOD_FLAGS):
        command = click.option(
            f"--{period}",
            "period_" + period.replace("-", "_"),
            is_flag=True,
            help=f"Limit to {period.replace('-', ' ')}",
        )(command)
    command = click.option(
        "--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'last month')"
    )(command)
    command = click.option(
        "--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')"
    )(command)
    return command


def pop_period_flags(kwargs: dict) -> dict[str, bool]:
    """Remove the period flag arguments from kwargs, keyed by period name."""
    return {period: kwargs.pop("period_" + period.replace("-", "_")) for period in PERIOD_FLAGS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve the reporting window from a period flag or explicit dates.

    Exits with status 1 on conflicting options, unparsable dates or a
    start date after the end date.
    """
    periods = [period for period, is_set in period_flags.items() if is_set]

    if len(periods) > 1:
        click.echo("Error: Only one period option can be specified at a time.", err=True)
        ctx.exit(1)
    if periods and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --last-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if periods:
        return get_date_range(periods[0])

    start = _parse_optional(ctx, start_date, "start date")
    end = _parse_optional(ctx, end_date, "end date")
    if start is None and end is None and default_range is not None:
        return default_range

    if start is not None and end is not None and start > end:
        click.echo("Error: Start date is after end date.", err=True)
        ctx.exit(1)
    return start, end


def _parse_optional(ctx, value: str | None, label: str) -> date | None:
    return parse_date_or_exit(ctx, value, label) if value else None


def parse_date_or_exit(ctx, value: str | None, label: str = "date") -> date:
    """Parse a single date option (defaults to today), or exit with a CLI error."""
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
