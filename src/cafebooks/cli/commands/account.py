"""Account management commands."""

import click
from cafebooks.cli.account_resolution import resolve_account_or_exit
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.account import AccountService
from cafebooks.domain.entities import AccountType
from cafebooks.utils.amount_parser import format_amount

ACCOUNT_TYPES = {account_type.value.lower(): account_type for account_type in AccountType}


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("add")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(sorted(ACCOUNT_TYPES), case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--name-en", help="English name")
@click.option("--description", help="Description")
@click.option("--opening-balance", help="Opening balance (e.g., 1,000,000 or ۱۰۰۰۰۰۰ ریال)")
@click.pass_context
def add_account(
    ctx,
    code: str,
    name: str,
    account_type: str,
    name_en: str | None,
    description: str | None,
    opening_balance: str | None,
):
    """Add an account.

    The opening balance is posted against Opening Balance Equity.

    Examples:
        cafebooks account add 1-103 "Petty Cash" --type asset
        cafebooks account add 1-402 "Espresso Machine" --type asset --opening-balance 250,000,000
    """
    service = AccountService(get_state(ctx))

    kwargs = {}
    if opening_balance is not None:
        kwargs["opening_balance"] = parse_amount_or_exit(ctx, opening_balance, "opening balance")

    try:
        account = service.add_account(
            code=code,
            name=name,
            account_type=ACCOUNT_TYPES[account_type.lower()],
            name_en=name_en,
            description=description,
            **kwargs,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created account {account.code} '{account.name}' (ID: {account.id})")


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts with their balances."""
    service = AccountService(get_state(ctx))

    accounts = service.list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found. Run 'cafebooks init' to create the default chart.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        label = acc.name_en or acc.name
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.code:7s} | {label:30s} | {acc.type.value:9s} | {format_amount(acc.balance):>16s}{status}"
        )


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New name")
@click.option("--name-en", help="New English name")
@click.option("--description", help="New description")
@click.option("--activate", is_flag=True, help="Reactivate a deactivated account")
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    name_en: str | None,
    description: str | None,
    activate: bool,
) -> None:
    """Update an account's name, English name or description.

    ACCOUNT can be an account code or ID. Code and type cannot change.

    Examples:
        cafebooks account update 1-101 --name-en "Cash Drawer"
        cafebooks account update acc-1a2b3c4d --activate
    """
    service = AccountService(get_state(ctx))
    account_obj = resolve_account_or_exit(ctx, service, account)

    patch = {}
    if name is not None:
        patch["name"] = name
    if name_en is not None:
        patch["name_en"] = name_en
    if description is not None:
        patch["description"] = description
    if activate:
        patch["is_active"] = True
    if not patch:
        click.echo("Nothing to update.")
        return

    try:
        updated = service.update_account(account_obj.id, **patch)
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Updated account {updated.code} '{updated.name}'")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account.

    ACCOUNT can be an account code or ID. Accounts are never deleted; their
    history stays in the ledger.

    Examples:
        cafebooks account deactivate 6-301
    """
    service = AccountService(get_state(ctx))
    account_obj = resolve_account_or_exit(ctx, service, account)

    try:
        service.deactivate_account(account_obj.id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Deactivated account {account_obj.code} '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
