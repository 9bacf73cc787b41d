"""Purchase recording commands."""

import click
from cafebooks.cli.date_filters import parse_date_or_exit
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.options import PAYMENT_METHODS, payment_method_choice
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.entities import PaymentStatus
from cafebooks.domain.events import EventService
from cafebooks.utils.amount_parser import format_amount


@click.group()
def purchase_group():
    """Record purchases."""
    pass


@purchase_group.command("add")
@click.argument("name", metavar="ITEM_NAME")
@click.argument("price", metavar="PRICE")
@click.option("--quantity", default="1", show_default=True, help="Purchased quantity")
@click.option("--unit", default="عدد", show_default=True, help="Unit (e.g., کیلوگرم, لیتر)")
@click.option("--category", required=True, help="Category (e.g., dairy, produce, cleaning)")
@click.option("--date", "purchase_date", help="Purchase date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--method", type=payment_method_choice, default="cash", show_default=True, help="Payment method")
@click.option("--due", is_flag=True, help="Not paid yet; owed to the vendor")
@click.option("--vendor", help="Vendor ID or name")
@click.option("--notes", help="Notes")
@click.pass_context
def add_purchase(
    ctx,
    name: str,
    price: str,
    quantity: str,
    unit: str,
    category: str,
    purchase_date: str | None,
    method: str,
    due: bool,
    vendor: str | None,
    notes: str | None,
):
    """Record a bought item.

    PRICE is the total paid for the whole quantity. Ingredient categories
    are stocked as inventory; anything else is expensed.

    Examples:
        cafebooks purchase add "Milk" 1,200,000 --quantity 10 --unit لیتر --category dairy
        cafebooks purchase add "Detergent" 300000 --category cleaning --due --vendor "Pak Co"
    """
    state = get_state(ctx)
    service = EventService(state)

    paid_price = parse_amount_or_exit(ctx, price, "price")
    amount = parse_amount_or_exit(ctx, quantity, "quantity")
    on_date = parse_date_or_exit(ctx, purchase_date, "purchase date")

    vendor_id = None
    if vendor is not None:
        match = next((v for v in state.vendors if v.id == vendor), None) or service.find_vendor_by_name(vendor)
        if match is None:
            click.echo(f"Error: Vendor '{vendor}' not found", err=True)
            ctx.exit(1)
        vendor_id = match.id

    try:
        item = service.record_purchase(
            purchase_date=on_date,
            name=name,
            unit=unit,
            quantity=amount,
            category=category,
            paid_price=paid_price,
            payment_status=PaymentStatus.DUE if due else PaymentStatus.PAID,
            payment_method=PAYMENT_METHODS[method.lower()],
            vendor_id=vendor_id,
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    status = "due" if due else "paid"
    click.echo(f"Recorded purchase of {item.name} for {format_amount(paid_price)} ({status}) on {on_date}")


def register_commands(cli):
    """Register purchase commands with main CLI."""
    cli.add_command(purchase_group, name="purchase")
