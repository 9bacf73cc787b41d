"""CLI helpers for account resolution."""

from __future__ import annotations

import click
from cafebooks.domain.account import AccountService
from cafebooks.domain.entities import Account


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str) -> Account:
    """Resolve an account by ID or code, preferring the active account, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    found = account_service.get_account(account) or account_service.get_account_by_code(account)
    if found is None:
        # Deactivated accounts are still reachable by code
        matches = [a for a in account_service.list_accounts(include_inactive=True) if a.code == account]
        found = matches[-1] if matches else None
    if found is None:
        click.echo(f"Error: Account '{account}' not found", err=True)
        ctx.exit(1)
    return found
