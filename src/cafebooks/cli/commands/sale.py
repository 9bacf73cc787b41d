"""Point of sale commands."""

from datetime import datetime, UTC

import click
from cafebooks.cli.date_filters import (
    parse_date_or_exit,
    period_options,
    pop_period_flags,
    resolve_cli_date_range,
)
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.options import (
    PAYMENT_METHODS,
    parse_quantity_line_or_exit,
    parse_split_or_exit,
    payment_method_choice,
)
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.events import EventService
from cafebooks.utils.amount_parser import format_amount


def _sale_time(ctx, value: str | None) -> datetime:
    if not value:
        return datetime.now(UTC)
    on_date = parse_date_or_exit(ctx, value, "sale date")
    return datetime.combine(on_date, datetime.now(UTC).time(), tzinfo=UTC)


@click.group()
def sale_group():
    """Record and list sales."""
    pass


@sale_group.command("add")
@click.argument("lines", nargs=-1, required=True, metavar="ITEM[:QTY]...")
@click.option("--method", type=payment_method_choice, default="cash", show_default=True, help="Payment method")
@click.option("--split", "splits", multiple=True, help="Split payment as METHOD:AMOUNT (repeatable)")
@click.option("--discount", help="Discount off the subtotal")
@click.option("--date", "sale_date", help="Sale date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--notes", help="Notes")
@click.pass_context
def add_sale(
    ctx,
    lines: tuple[str, ...],
    method: str,
    splits: tuple[str, ...],
    discount: str | None,
    sale_date: str | None,
    notes: str | None,
):
    """Record a sale of menu items.

    ITEM is a menu item ID or name, optionally followed by :QTY.

    Examples:
        cafebooks sale add Latte:2 Croissant
        cafebooks sale add Latte:3 --split cash:150000 --split card:135000
        cafebooks sale add pos-1a2b3c4d --method card --discount 10,000
    """
    state = get_state(ctx)
    service = EventService(state)

    sale_lines = []
    for line in lines:
        item, quantity = parse_quantity_line_or_exit(ctx, line)
        pos_item = next((p for p in state.pos_items if p.id == item), None) or next(
            (p for p in state.pos_items if p.name == item), None
        )
        if pos_item is None:
            click.echo(f"Error: Menu item '{item}' not found", err=True)
            ctx.exit(1)
        sale_lines.append((pos_item.id, quantity))

    kwargs = {}
    if discount is not None:
        kwargs["discount_amount"] = parse_amount_or_exit(ctx, discount, "discount")
    if splits:
        kwargs["split_payments"] = [parse_split_or_exit(ctx, split) for split in splits]

    try:
        txn = service.record_sale(
            sale_lines,
            payment_method=PAYMENT_METHODS[method.lower()],
            sold_at=_sale_time(ctx, sale_date),
            notes=notes,
            **kwargs,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Recorded sale #{txn.receipt_number} ({txn.id}) for {format_amount(txn.total_amount)}")


@sale_group.command("refund")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--date", "refund_date", help="Refund date (defaults to now)")
@click.pass_context
def refund_sale(ctx, transaction_id: str, refund_date: str | None):
    """Refund a sale in full.

    Examples:
        cafebooks sale refund txn-1a2b3c4d
    """
    service = EventService(get_state(ctx))
    try:
        refund = service.record_refund(transaction_id, refunded_at=_sale_time(ctx, refund_date))
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Refunded {transaction_id}: {format_amount(refund.total_amount)} ({refund.id})")


@sale_group.command("list")
@period_options
@click.pass_context
def list_sales(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """List sales and refunds."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )

    transactions = sorted(
        (
            txn
            for txn in get_state(ctx).sell_transactions
            if (start is None or txn.date.date() >= start) and (end is None or txn.date.date() <= end)
        ),
        key=lambda txn: (txn.date, txn.id),
    )
    if not transactions:
        click.echo("No sales found.")
        return

    click.echo(f"\n{'Date':<10}  {'Receipt':>7}  {'ID':<16}  {'Method':<8}  {'Total':>14}")
    click.echo("-" * 66)
    for txn in transactions:
        receipt = f"#{txn.receipt_number}" if txn.receipt_number is not None else ""
        flag = " refund" if txn.is_refund else (" draft" if not txn.is_completed else "")
        click.echo(
            f"{txn.date.date().isoformat():<10}  {receipt:>7}  {txn.id:<16}  "
            f"{txn.payment_method.value:<8}  {format_amount(txn.total_amount):>14}{flag}"
        )


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
