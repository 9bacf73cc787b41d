"""Accounting report commands."""

from datetime import date

import click
from cafebooks.cli.account_resolution import resolve_account_or_exit
from cafebooks.cli.date_filters import (
    parse_date_or_exit,
    period_options,
    pop_period_flags,
    resolve_cli_date_range,
)
from cafebooks.cli.error_handling import handle_domain_error
from cafebooks.cli.session import get_state
from cafebooks.domain.account import AccountService
from cafebooks.domain.aging import AgingService, PAYABLE, RECEIVABLE
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.reports import StatementLine
from cafebooks.domain.statements import StatementService
from cafebooks.domain.summary import GROUP_BY_CATEGORY, GROUP_BY_VENDOR, SummaryService
from cafebooks.domain.tax import TaxService
from cafebooks.utils.amount_parser import format_amount
from cafebooks.utils.date_parser import get_date_range

WIDTH = 72


def _label(account) -> str:
    return f"{account.code} {account.name_en or account.name}"


def _row(label: str, amount, indent: int = 0) -> None:
    label = " " * indent + label
    click.echo(f"{label:<{WIDTH - 18}}{format_amount(amount):>18}")


def _lines(lines: tuple[StatementLine, ...], indent: int = 2) -> None:
    for line in lines:
        _row(_label(line.account), line.amount, indent)


def _skipped_notice(skipped: int) -> None:
    if skipped:
        click.echo(
            f"\nWarning: {skipped} event{'s' if skipped != 1 else ''} could not be posted; "
            "run 'cafebooks validate' for details.",
            err=True,
        )


def _period(ctx, start_date, end_date, kwargs) -> tuple[date, date]:
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(kwargs),
        default_range=get_date_range("this-month"),
    )
    end = end or date.today()
    return start or end.replace(day=1), end


@click.group()
def report_group():
    """Show ledgers and financial statements."""
    pass


@report_group.command("ledger")
@click.option("--account", help="Account code or ID (all accounts with activity when omitted)")
@period_options
@click.pass_context
def ledger_report(ctx, account: str | None, start_date: str | None, end_date: str | None, **kwargs):
    """Show the general ledger.

    Examples:
        cafebooks report ledger --account 1-101 --this-month
        cafebooks report ledger --start-date 2024-01-01 --end-date 2024-03-31
    """
    state = get_state(ctx)
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )
    account_id = resolve_account_or_exit(ctx, AccountService(state), account).id if account else None

    try:
        ledger = LedgerService(state).get_general_ledger(account_id, start, end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not ledger.views:
        click.echo("No postings found.")
    for view in ledger.views:
        click.echo(f"\n{_label(view.account)} ({view.account.type.value})")
        click.echo("-" * WIDTH)
        click.echo(f"{'Opening balance':<54}{format_amount(view.opening_balance):>18}")
        for line in view.entries:
            debit = format_amount(line.debit) if line.debit else ""
            credit = format_amount(line.credit) if line.credit else ""
            click.echo(
                f"{line.date.isoformat()}  {line.description[:22]:<22}  {debit:>12}  {credit:>12}  "
                f"{format_amount(line.balance):>12}"
            )
        click.echo(f"{'Closing balance':<54}{format_amount(view.closing_balance):>18}")
    _skipped_notice(ledger.skipped_events)


@report_group.command("trial-balance")
@click.option("--as-of", help="Last day included (defaults to today)")
@click.pass_context
def trial_balance_report(ctx, as_of: str | None):
    """Show the trial balance.

    Examples:
        cafebooks report trial-balance --as-of "last month"
    """
    as_of_date = parse_date_or_exit(ctx, as_of, "as-of date")
    trial_balance = LedgerService(get_state(ctx)).get_trial_balance(as_of_date)

    click.echo(f"\nTrial balance as of {as_of_date}")
    click.echo("-" * WIDTH)
    click.echo(f"{'Account':<40}{'Debit':>16}{'Credit':>16}")
    for row in trial_balance.rows:
        click.echo(f"{_label(row.account)[:39]:<40}{format_amount(row.debit):>16}{format_amount(row.credit):>16}")
    click.echo("-" * WIDTH)
    click.echo(
        f"{'Total':<40}{format_amount(trial_balance.total_debit):>16}"
        f"{format_amount(trial_balance.total_credit):>16}"
    )
    if not trial_balance.balanced:
        click.echo("Warning: debits and credits do not balance.", err=True)
    _skipped_notice(trial_balance.skipped_events)


@report_group.command("balance-sheet")
@click.option("--as-of", help="Last day included (defaults to today)")
@click.pass_context
def balance_sheet_report(ctx, as_of: str | None):
    """Show the balance sheet."""
    as_of_date = parse_date_or_exit(ctx, as_of, "as-of date")
    sheet = StatementService(get_state(ctx)).get_balance_sheet(as_of_date)

    click.echo(f"\nBalance sheet as of {as_of_date}")
    click.echo("=" * WIDTH)
    for title, section in (("Assets", sheet.assets), ("Liabilities", sheet.liabilities)):
        click.echo(title)
        click.echo("  Current")
        _lines(section.current, indent=4)
        click.echo("  Non-current")
        _lines(section.non_current, indent=4)
        _row(f"Total {title.lower()}", section.total)
        click.echo()
    click.echo("Equity")
    _lines(sheet.equity.lines)
    _row("Current and retained earnings", sheet.equity.retained_earnings, 2)
    _row("Total equity", sheet.equity.total)
    click.echo("-" * WIDTH)
    _row("Liabilities and equity", sheet.liabilities.total + sheet.equity.total)
    if not sheet.balanced:
        click.echo("Warning: assets do not equal liabilities plus equity.", err=True)
    _skipped_notice(sheet.skipped_events)


@report_group.command("income")
@period_options
@click.pass_context
def income_report(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Show the income statement (defaults to this month)."""
    start, end = _period(ctx, start_date, end_date, kwargs)
    statement = StatementService(get_state(ctx)).get_income_statement(start, end)

    click.echo(f"\nIncome statement {start} to {end}")
    click.echo("=" * WIDTH)
    click.echo("Revenue")
    _lines(statement.revenue.lines)
    _row("Total revenue", statement.revenue.total)
    click.echo("Cost of goods sold")
    _lines(statement.cogs.lines)
    _row("Total cost of goods sold", statement.cogs.total)
    _row(f"Gross profit ({statement.gross_margin}%)", statement.gross_profit)
    click.echo("Expenses")
    _lines(statement.expenses.lines)
    _row("Total expenses", statement.expenses.total)
    click.echo("-" * WIDTH)
    _row(f"Net income ({statement.net_margin}%)", statement.net_income)
    _skipped_notice(statement.skipped_events)


@report_group.command("cash-flow")
@period_options
@click.pass_context
def cash_flow_report(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Show the cash-flow statement (defaults to this month)."""
    start, end = _period(ctx, start_date, end_date, kwargs)
    statement = StatementService(get_state(ctx)).get_cash_flow_statement(start, end)

    click.echo(f"\nCash flow statement {start} to {end}")
    click.echo("=" * WIDTH)
    click.echo("Operating activities")
    _row("Net income", statement.net_income, 2)
    for item in statement.operating.items:
        _row(item.description, item.amount, 2)
    _row("Net cash from operating activities", statement.operating.total)
    for title, section in (("Investing", statement.investing), ("Financing", statement.financing)):
        click.echo(f"{title} activities")
        for item in section.items:
            _row(item.description, item.amount, 2)
        _row(f"Net cash from {title.lower()} activities", section.total)
    click.echo("-" * WIDTH)
    _row("Net change in cash", statement.net_cash_flow)
    _row("Cash at beginning of period", statement.beginning_cash)
    _row("Cash at end of period", statement.ending_cash)
    if not statement.reconciled:
        click.echo("Warning: ending cash does not reconcile with the cash flow.", err=True)
    _skipped_notice(statement.skipped_events)


@report_group.command("aging")
@click.argument("report_type", type=click.Choice([RECEIVABLE, PAYABLE]), metavar="receivable|payable")
@click.option("--as-of", help="Reference day (defaults to today)")
@click.pass_context
def aging_report(ctx, report_type: str, as_of: str | None):
    """Show receivable or payable aging.

    Examples:
        cafebooks report aging payable
        cafebooks report aging receivable --as-of 2024-06-30
    """
    as_of_date = parse_date_or_exit(ctx, as_of, "as-of date")
    report = AgingService(get_state(ctx)).get_aging_report(report_type, as_of_date)

    click.echo(f"\n{report_type.capitalize()} aging as of {as_of_date}")
    click.echo("-" * WIDTH)
    for bucket in (report.current, report.days31to60, report.days61to90, report.over90):
        _row(f"{bucket.period} days ({bucket.count})", bucket.amount)
    _row("Total", report.total)
    if report.details:
        click.echo()
        for detail in report.details:
            click.echo(
                f"{detail.invoice_number[:14]:<14}  {detail.name[:20]:<20}  due {detail.due_date}  "
                f"{detail.days_overdue:>4}d  {format_amount(detail.amount):>12}"
            )


@report_group.command("tax")
@period_options
@click.pass_context
def tax_report(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Show collected tax (defaults to this month)."""
    start, end = _period(ctx, start_date, end_date, kwargs)
    report = TaxService(get_state(ctx)).get_tax_report(start, end)

    click.echo(f"\nTax report {start} to {end}")
    click.echo("-" * WIDTH)
    if not report.enabled:
        click.echo("Tax is disabled; no tax is collected.")
    _row("Taxable revenue", report.taxable_revenue)
    _row("Non-taxable revenue", report.non_taxable_revenue)
    _row("Total revenue", report.total_revenue)
    _row("Tax collected", report.tax_collected)
    if report.transactions:
        click.echo()
        for row in report.transactions:
            receipt = f"#{row.receipt_number}" if row.receipt_number is not None else row.id
            click.echo(
                f"{row.date}  {receipt:<16}  {format_amount(row.amount):>14}  "
                f"{format_amount(row.tax_amount):>12}  {row.tax_rate * 100:.2f}%"
            )


@report_group.command("summary")
@click.option(
    "--by",
    "group_by",
    type=click.Choice([GROUP_BY_CATEGORY, GROUP_BY_VENDOR]),
    default=GROUP_BY_CATEGORY,
    show_default=True,
    help="Group spending by category or vendor",
)
@click.option(
    "--per",
    "by_period",
    type=click.Choice(["month", "year"]),
    help="Also split the groups by month or year",
)
@period_options
@click.pass_context
def spending_summary(
    ctx, group_by: str, by_period: str | None, start_date: str | None, end_date: str | None, **kwargs
):
    """Show spending on bought items (defaults to this month).

    Examples:
        cafebooks report summary --last-month
        cafebooks report summary --by vendor --this-year --per month
    """
    start, end = _period(ctx, start_date, end_date, kwargs)
    try:
        summary = SummaryService(get_state(ctx)).build_spending_summary(start, end, group_by, by_period)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nSpending summary {start} to {end}")
    click.echo("-" * WIDTH)
    if not summary.groups:
        click.echo("No purchases found.")
        return

    for group in summary.groups:
        _row(f"{group.name} ({group.count})", group.amount)
    click.echo("-" * WIDTH)
    _row("Total spend", summary.total_spend)
    _row("Average per day", summary.avg_daily_spend)
    click.echo(f"Distinct items: {summary.distinct_items}")
    if summary.top_category is not None:
        click.echo(f"Top category: {summary.top_category.name}")
    if summary.top_vendor is not None:
        click.echo(f"Top vendor: {summary.top_vendor.name}")

    for key in summary.period_keys:
        click.echo(f"\n{key}")
        for group in summary.period_groups[key]:
            _row(group.name, group.amount, 2)


@report_group.command("sales")
@click.option("--top", default=10, show_default=True, type=click.IntRange(min=1), help="Number of menu items to show")
@period_options
@click.pass_context
def sales_summary(ctx, top: int, start_date: str | None, end_date: str | None, **kwargs):
    """Show sales by menu item and category (defaults to this month).

    Examples:
        cafebooks report sales --last-month --top 5
    """
    start, end = _period(ctx, start_date, end_date, kwargs)
    summary = SummaryService(get_state(ctx)).build_sales_summary(start, end)

    click.echo(f"\nSales summary {start} to {end}")
    click.echo("-" * WIDTH)
    if not summary.items:
        click.echo("No sales found.")
        return

    click.echo(f"{'Item':<30}{'Quantity':>12}{'Revenue':>30}")
    for group in summary.items[:top]:
        click.echo(f"{group.name[:29]:<30}{group.quantity.normalize():>12,f}{format_amount(group.amount):>30}")
    click.echo()
    for group in summary.categories:
        _row(group.name, group.amount)
    click.echo("-" * WIDTH)
    _row("Total revenue", summary.total_revenue)
    _row("Average sale", summary.avg_transaction_value)
    click.echo(f"Sales: {summary.transaction_count}  Refunds: {summary.refund_count}")
    if summary.top_item is not None:
        click.echo(f"Top item: {summary.top_item.name} ({summary.top_item.quantity.normalize():,f} sold)")
    if summary.top_category is not None:
        click.echo(f"Top category: {summary.top_category.name}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
