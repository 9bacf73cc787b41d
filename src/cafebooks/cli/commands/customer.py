"""Customer and invoice commands."""

import click
from cafebooks.cli.date_filters import parse_date_or_exit
from cafebooks.cli.error_handling import handle_domain_error, parse_amount_or_exit
from cafebooks.cli.session import get_state, save_state
from cafebooks.domain.customer import CustomerService
from cafebooks.domain.entities import InvoiceType
from cafebooks.utils.amount_parser import format_amount

INVOICE_TYPES = {invoice_type.value.lower(): invoice_type for invoice_type in InvoiceType}


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("add")
@click.argument("name", metavar="NAME")
@click.option("--phone", help="Phone number")
@click.option("--email", help="Email address")
@click.option("--terms", type=int, help="Payment terms in days (e.g., 30 for Net 30)")
@click.option("--credit-limit", help="Credit limit")
@click.pass_context
def add_customer(
    ctx, name: str, phone: str | None, email: str | None, terms: int | None, credit_limit: str | None
):
    """Add a customer.

    Examples:
        cafebooks customer add "Office Catering Ltd" --terms 30
    """
    service = CustomerService(get_state(ctx))
    limit = parse_amount_or_exit(ctx, credit_limit, "credit limit") if credit_limit else None
    try:
        customer = service.add_customer(
            name=name, phone=phone, email=email, payment_terms=terms, credit_limit=limit
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created customer '{customer.name}' (ID: {customer.id})")


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List customers with stored and recomputed balances."""
    state = get_state(ctx)
    service = CustomerService(state)
    if not state.customers:
        click.echo("No customers found.")
        return

    click.echo("\nCustomers:")
    click.echo("-" * 72)
    for customer in sorted(state.customers, key=lambda c: c.name):
        computed = service.get_customer_balance(customer.id)
        click.echo(
            f"{customer.id:18s} | {customer.name:22s} | {format_amount(customer.balance):>12s} "
            f"| open invoices {format_amount(computed):>12s}"
        )


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("add")
@click.argument("number", metavar="INVOICE_NUMBER")
@click.argument("amount", metavar="AMOUNT")
@click.option(
    "--type",
    "invoice_type",
    type=click.Choice(sorted(INVOICE_TYPES), case_sensitive=False),
    default="sale",
    show_default=True,
)
@click.option("--customer", "customer_id", help="Customer ID (sale invoices)")
@click.option("--vendor", "vendor_id", help="Vendor ID (purchase and expense invoices)")
@click.option("--issued", help="Issue date (defaults to today)")
@click.option("--due", help="Due date (defaults to the customer's payment terms)")
@click.pass_context
def add_invoice(
    ctx,
    number: str,
    amount: str,
    invoice_type: str,
    customer_id: str | None,
    vendor_id: str | None,
    issued: str | None,
    due: str | None,
):
    """Add an invoice.

    Examples:
        cafebooks invoice add INV-1001 4,500,000 --customer customer-1a2b3c4d
        cafebooks invoice add P-77 900000 --type purchase --vendor vendor-1a2b3c4d --due "next month"
    """
    service = CustomerService(get_state(ctx))
    total = parse_amount_or_exit(ctx, amount)
    issue_date = parse_date_or_exit(ctx, issued, "issue date")
    due_date = parse_date_or_exit(ctx, due, "due date") if due else None
    try:
        invoice = service.add_invoice(
            invoice_number=number,
            invoice_type=INVOICE_TYPES[invoice_type.lower()],
            issue_date=issue_date,
            due_date=due_date,
            total_amount=total,
            customer_id=customer_id,
            vendor_id=vendor_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(f"Created invoice {invoice.invoice_number} (ID: {invoice.id}), due {invoice.due_date}")


@invoice_group.command("pay")
@click.argument("invoice_id", metavar="INVOICE_ID")
@click.argument("amount", metavar="AMOUNT")
@click.pass_context
def pay_invoice(ctx, invoice_id: str, amount: str):
    """Record a payment against an invoice.

    Examples:
        cafebooks invoice pay invoice-1a2b3c4d 1,000,000
    """
    service = CustomerService(get_state(ctx))
    payment = parse_amount_or_exit(ctx, amount)
    try:
        invoice = service.record_invoice_payment(invoice_id, payment)
    except ValueError as e:
        handle_domain_error(ctx, e)

    save_state(ctx)
    click.echo(
        f"Invoice {invoice.invoice_number}: {invoice.status.value}, "
        f"outstanding {format_amount(invoice.outstanding)}"
    )


def register_commands(cli):
    """Register customer and invoice commands with main CLI."""
    cli.add_command(customer_group, name="customer")
    cli.add_command(invoice_group, name="invoice")
