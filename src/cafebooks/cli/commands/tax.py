"""Tax rate and settings commands."""

from decimal import Decimal

import click
from cafebooks.cli.account_resolution import resolve_account_or_exit
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.account import AccountService
from cafebooks.domain.events import EventService


def _parse_rate_or_exit(ctx, value: str) -> Decimal:
    """Parse "9%" or "0.09" into a fraction."""
    value = value.strip()
    if value.endswith("%"):
        return parse_amount_or_exit(ctx, value[:-1], "rate") / 100
    return parse_amount_or_exit(ctx, value, "rate")


def _percent(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"


@click.group()
def tax_group():
    """Manage tax rates and settings."""
    pass


@tax_group.command("rate-add")
@click.argument("name", metavar="NAME")
@click.argument("rate", metavar="RATE")
@click.option("--account", help="Liability account code or ID (defaults to Tax Payable)")
@click.option("--default", "make_default", is_flag=True, help="Use as the default tax rate")
@click.pass_context
def add_tax_rate(ctx, name: str, rate: str, account: str | None, make_default: bool):
    """Add a tax rate.

    RATE is a fraction (0.09) or a percentage (9%).

    Examples:
        cafebooks tax rate-add "VAT 9%" 9% --default
    """
    state = get_state(ctx)
    service = EventService(state)
    fraction = _parse_rate_or_exit(ctx, rate)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(state), account).id

    try:
        tax_rate = service.add_tax_rate(name=name, rate=fraction, account_id=account_id)
        if make_default:
            service.update_tax_settings(default_tax_rate_id=tax_rate.id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created tax rate '{tax_rate.name}' at {_percent(tax_rate.rate)} (ID: {tax_rate.id})")


@tax_group.command("settings")
@click.option("--enable", is_flag=True, help="Turn tax on")
@click.option("--disable", is_flag=True, help="Turn tax off")
@click.option("--inclusive", is_flag=True, help="Menu prices include tax")
@click.option("--exclusive", is_flag=True, help="Tax is added on top of menu prices")
@click.option("--default-rate", help="Default tax rate ID")
@click.option("--show-on-receipts", is_flag=True, help="Show the tax breakdown on receipts")
@click.option("--hide-on-receipts", is_flag=True, help="Hide the tax breakdown on receipts")
@click.pass_context
def tax_settings(
    ctx,
    enable: bool,
    disable: bool,
    inclusive: bool,
    exclusive: bool,
    default_rate: str | None,
    show_on_receipts: bool,
    hide_on_receipts: bool,
):
    """Show or change the tax settings.

    Without options the current settings are shown.

    Examples:
        cafebooks tax settings --enable --exclusive
    """
    for on, off, label in (
        (enable, disable, "--enable and --disable"),
        (inclusive, exclusive, "--inclusive and --exclusive"),
        (show_on_receipts, hide_on_receipts, "--show-on-receipts and --hide-on-receipts"),
    ):
        if on and off:
            click.echo(f"Error: {label} cannot be combined.", err=True)
            ctx.exit(1)

    patch = {}
    if enable or disable:
        patch["enabled"] = enable
    if inclusive or exclusive:
        patch["include_tax_in_price"] = inclusive
    if show_on_receipts or hide_on_receipts:
        patch["show_tax_on_receipts"] = show_on_receipts
    if default_rate is not None:
        patch["default_tax_rate_id"] = default_rate

    state = get_state(ctx)
    if patch:
        try:
            EventService(state).update_tax_settings(**patch)
        except ValueError as e:
            handle_domain_error(ctx, e)
        save_state(ctx)

    settings = state.tax_settings
    click.echo(f"Tax enabled:        {'yes' if settings.enabled else 'no'}")
    click.echo(f"Prices include tax: {'yes' if settings.include_tax_in_price else 'no'}")
    click.echo(f"Default rate:       {settings.default_tax_rate_id or '-'}")
    click.echo(f"Show on receipts:   {'yes' if settings.show_tax_on_receipts else 'no'}")
    for rate in state.tax_rates:
        status = "" if rate.is_active else " (inactive)"
        click.echo(f"  {rate.id:14s} {rate.name:20s} {_percent(rate.rate)}{status}")


def register_commands(cli):
    """Register tax commands with main CLI."""
    cli.add_command(tax_group, name="tax")
