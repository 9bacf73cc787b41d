"""Shared option values and parsing for CLI commands."""

from decimal import Decimal

import click

from cafebooks.cli.error_handling import parse_amount_or_exit
from cafebooks.domain.entities import PaymentMethod

PAYMENT_METHODS = {method.value.lower(): method for method in PaymentMethod}

payment_method_choice = click.Choice(sorted(PAYMENT_METHODS), case_sensitive=False)


def parse_split_or_exit(ctx: click.Context, value: str) -> tuple[PaymentMethod, Decimal]:
    """Parse a METHOD:AMOUNT split payment, or exit with a CLI error."""
    method, sep, amount = value.partition(":")
    method = method.strip().lower()
    if not sep or method not in PAYMENT_METHODS:
        click.echo(
            f"Error: Invalid split payment '{value}'. Use METHOD:AMOUNT with METHOD one of "
            f"{', '.join(sorted(PAYMENT_METHODS))}",
            err=True,
        )
        ctx.exit(1)
    return PAYMENT_METHODS[method], parse_amount_or_exit(ctx, amount, "split amount")


def parse_quantity_line_or_exit(ctx: click.Context, value: str) -> tuple[str, Decimal]:
    """Parse an ITEM[:QUANTITY] sale line; the quantity defaults to 1."""
    item, sep, quantity = value.rpartition(":")
    if not sep:
        return value, Decimal("1")
    return item, parse_amount_or_exit(ctx, quantity, "quantity")
