"""CLI error handling helpers."""

from decimal import Decimal

import click

from cafebooks.domain.errors import DomainError, ExternalServiceError
from cafebooks.utils.amount_parser import parse_amount


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_external_error(ctx: click.Context, error: ExternalServiceError) -> None:
    """Render a storage failure and exit with failure."""
    click.echo(f"Error: storage unavailable: {error}", err=True)
    ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    """Parse an amount option, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
