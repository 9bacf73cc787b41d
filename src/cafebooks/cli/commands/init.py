"""Chart of accounts initialization command."""

import click
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.account import AccountService


@click.command("init")
@click.pass_context
def init(ctx):
    """Seed the default chart of accounts.

    Does nothing when accounts already exist.

    Examples:
        cafebooks init
    """
    service = AccountService(get_state(ctx))
    created = service.initialize_default_accounts()
    if created == 0:
        click.echo("Chart of accounts already exists; nothing to do.")
        return

    save_state(ctx)
    click.echo(f"Created {created} default accounts.")


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init)
