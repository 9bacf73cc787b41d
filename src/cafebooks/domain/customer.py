"""Customer and invoice domain service."""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import (
    Customer,
    Invoice,
    InvoiceStatus,
    InvoiceType,
    StoreState,
)
from cafebooks.domain.errors import (
    NotFoundError,
    ValidationError,
    customer_not_found,
    vendor_not_found,
)
from cafebooks.domain.reports import within_tolerance

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class CustomerService:
    """Service for customers and their invoices.

    A customer's stored balance and the balance recomputed from invoices
    are kept side by side. Mismatches are reported, never reconciled.
    """

    def __init__(self, state: StoreState):
        self.state = state

    def add_customer(
        self,
        name: str,
        balance: Decimal = ZERO,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        payment_terms: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
    ) -> Customer:
        """Add a customer.

        Raises:
            ValidationError: If name is empty or payment terms negative
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Customer name is required")
        if payment_terms is not None and payment_terms < 0:
            raise ValidationError("Payment terms cannot be negative")

        customer = Customer(
            id=f"customer-{uuid.uuid4().hex[:8]}",
            name=name,
            balance=balance,
            phone=phone,
            email=email,
            payment_terms=payment_terms,
            credit_limit=credit_limit,
            created_at=datetime.now(UTC),
        )
        self.state.customers.append(customer)
        return customer

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        for customer in self.state.customers:
            if customer.id == customer_id:
                return customer
        return None

    def add_invoice(
        self,
        invoice_number: str,
        invoice_type: InvoiceType,
        issue_date: date,
        total_amount: Decimal,
        due_date: Optional[date] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        status: InvoiceStatus = InvoiceStatus.SENT,
    ) -> Invoice:
        """Add an invoice.

        Sale invoices need a customer, the others a vendor. Without a due
        date the customer's payment terms (or none) decide it.

        Raises:
            ValidationError: If fields are missing or amounts negative
            NotFoundError: If the customer or vendor does not exist
        """
        if not (invoice_number or "").strip():
            raise ValidationError("Invoice number is required")
        if total_amount < 0:
            raise ValidationError("Invoice total cannot be negative")

        terms = 0
        if invoice_type == InvoiceType.SALE:
            if customer_id is None:
                raise ValidationError("Sale invoices need a customer")
            customer = self.get_customer(customer_id)
            if customer is None:
                raise NotFoundError(customer_not_found(customer_id))
            terms = customer.payment_terms or 0
        else:
            if vendor_id is None:
                raise ValidationError("Purchase and expense invoices need a vendor")
            if not any(v.id == vendor_id for v in self.state.vendors):
                raise NotFoundError(vendor_not_found(vendor_id))

        if due_date is None:
            due_date = issue_date + timedelta(days=terms)
        if due_date < issue_date:
            raise ValidationError("Due date cannot be before the issue date")

        invoice = Invoice(
            id=f"invoice-{uuid.uuid4().hex[:8]}",
            invoice_number=invoice_number.strip(),
            type=invoice_type,
            customer_id=customer_id,
            vendor_id=vendor_id,
            issue_date=issue_date,
            due_date=due_date,
            subtotal=total_amount,
            total_amount=total_amount,
            status=status,
        )
        self.state.invoices.append(invoice)
        return invoice

    def record_invoice_payment(self, invoice_id: str, amount: Decimal) -> Invoice:
        """Apply a payment to an invoice and update its status.

        Raises:
            ValidationError: If the amount is not positive or overpays
            NotFoundError: If the invoice does not exist
        """
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")
        for index, invoice in enumerate(self.state.invoices):
            if invoice.id != invoice_id:
                continue
            if invoice.status == InvoiceStatus.CANCELLED:
                raise ValidationError(f"Invoice {invoice_id} is cancelled")
            if amount > invoice.outstanding:
                raise ValidationError(
                    f"Payment {amount} exceeds outstanding amount {invoice.outstanding}"
                )
            paid = invoice.paid_amount + amount
            status = InvoiceStatus.PAID if paid == invoice.total_amount else InvoiceStatus.PARTIALLY_PAID
            updated = replace(invoice, paid_amount=paid, status=status)
            self.state.invoices[index] = updated
            return updated
        raise NotFoundError(f"Invoice {invoice_id} not found")

    def get_customer_balance(self, customer_id: str) -> Decimal:
        """Recompute a customer's balance from their open sale invoices."""
        return sum(
            (
                invoice.outstanding
                for invoice in self.state.invoices
                if invoice.customer_id == customer_id
                and invoice.type == InvoiceType.SALE
                and invoice.status not in (InvoiceStatus.CANCELLED, InvoiceStatus.DRAFT)
            ),
            ZERO,
        )

    def find_balance_mismatches(self) -> list[tuple[Customer, Decimal]]:
        """Return customers whose stored balance differs from the recomputed one.

        Returns:
            List of (customer, recomputed balance) pairs
        """
        mismatches = []
        for customer in self.state.customers:
            computed = self.get_customer_balance(customer.id)
            if not within_tolerance(customer.balance, computed):
                logger.warning(
                    "Customer %s balance mismatch: stored %s, computed %s",
                    customer.id,
                    customer.balance,
                    computed,
                )
                mismatches.append((customer, computed))
        return mismatches
