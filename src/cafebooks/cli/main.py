"""Main CLI entry point."""

import logging

import click
from cafebooks.cli.error_handling import handle_external_error
from cafebooks.database.factories import create_sqlite_store
from cafebooks.database.repository import StoreRepository
from cafebooks.domain.errors import ExternalServiceError

# Import and register all commands at module level
from cafebooks.cli.commands import (
    account,
    customer,
    init,
    menu,
    purchase,
    report,
    sale,
    tax,
    validate,
    vendor,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CAFEBOOKS_DB_PATH environment variable)",
    envvar="CAFEBOOKS_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Cafebooks - Cafe bookkeeping.

    Record purchases and sales, and read the ledger, statements, aging and
    tax reports derived from them.
    """
    ctx.ensure_object(dict)
    logging.getLogger("cafebooks").setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Load the store only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            store = create_sqlite_store(database_path=db_path)
            store.connect()
            store.initialize_schema()
            repository = StoreRepository(store)
            ctx.obj["repository"] = repository
            ctx.obj["state"] = repository.load()
        except ExternalServiceError as e:
            handle_external_error(ctx, e)
        ctx.call_on_close(store.disconnect)


# Register all commands
init.register_commands(cli)
account.register_commands(cli)
vendor.register_commands(cli)
purchase.register_commands(cli)
menu.register_commands(cli)
sale.register_commands(cli)
tax.register_commands(cli)
customer.register_commands(cli)
report.register_commands(cli)
validate.register_commands(cli)


def main():
    """Main entry point for CLI."""
    logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    cli()


if __name__ == "__main__":
    main()
