"""Access to the loaded store from CLI commands."""

import click

from cafebooks.domain.account import AccountService
from cafebooks.domain.entities import StoreState
from cafebooks.domain.errors import ExternalServiceError
from cafebooks.domain.journal import JournalService
from cafebooks.cli.error_handling import handle_external_error


def get_state(ctx: click.Context) -> StoreState:
    return ctx.obj["state"]


def save_state(ctx: click.Context) -> None:
    """Refresh account balances and write the store back."""
    state = get_state(ctx)
    AccountService(state).apply_balances(JournalService(state).build_log())
    try:
        ctx.obj["repository"].save(state)
    except ExternalServiceError as e:
        handle_external_error(ctx, e)
