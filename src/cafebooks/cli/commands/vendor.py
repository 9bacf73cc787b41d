"""Vendor management commands."""

import click
from cafebooks.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from cafebooks.cli.error_handling import handle_domain_error
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.entities import PaymentStatus
from cafebooks.domain.events import EventService
from cafebooks.domain.summary import SummaryService
from cafebooks.utils.amount_parser import format_amount


@click.group()
def vendor_group():
    """Manage vendors."""
    pass


@vendor_group.command("add")
@click.argument("name", metavar="NAME")
@click.option("--phone", help="Phone number")
@click.option("--notes", help="Notes")
@click.pass_context
def add_vendor(ctx, name: str, phone: str | None, notes: str | None):
    """Add a vendor.

    Examples:
        cafebooks vendor add "Golestan Dairy" --phone 021-5550000
    """
    service = EventService(get_state(ctx))
    try:
        vendor = service.add_vendor(name=name, phone=phone, notes=notes)
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created vendor '{vendor.name}' (ID: {vendor.id})")


@vendor_group.command("list")
@click.pass_context
def list_vendors(ctx):
    """List all vendors."""
    vendors = sorted(get_state(ctx).vendors, key=lambda v: v.name)
    if not vendors:
        click.echo("No vendors found.")
        return

    click.echo("\nVendors:")
    click.echo("-" * 60)
    for vendor in vendors:
        click.echo(f"{vendor.id:16s} | {vendor.name:25s} | {vendor.phone or ''}")


@vendor_group.command("history")
@click.argument("vendor_ref", metavar="VENDOR")
@period_options
@click.pass_context
def vendor_history(ctx, vendor_ref: str, start_date: str | None, end_date: str | None, **kwargs):
    """Show what was bought from a vendor.

    VENDOR is a vendor ID or name. All purchases are shown unless a period
    is given.

    Examples:
        cafebooks vendor history "Pak Co"
        cafebooks vendor history "Pak Co" --this-year
    """
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )
    try:
        history = SummaryService(get_state(ctx)).get_vendor_history(vendor_ref, start, end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{history.vendor.name}")
    click.echo("-" * 72)
    if not history.purchases:
        click.echo("No purchases found.")
        return

    for purchase in history.purchases:
        status = "due" if purchase.payment_status == PaymentStatus.DUE else "paid"
        click.echo(
            f"{purchase.date}  {purchase.name[:24]:<24}  {purchase.quantity.normalize():>8,f} {purchase.unit[:8]:<8}"
            f"{format_amount(purchase.amount):>14}  {status}"
        )
    click.echo("-" * 72)
    click.echo(f"Purchases: {history.purchase_count}  Last: {history.last_purchase}")
    click.echo(f"Total spent: {format_amount(history.total_spent)}")
    click.echo(f"Outstanding: {format_amount(history.outstanding)}")


def register_commands(cli):
    """Register vendor commands with main CLI."""
    cli.add_command(vendor_group, name="vendor")
