"""Receivable and payable aging."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import (
    InvoiceStatus,
    InvoiceType,
    ItemStatus,
    PaymentStatus,
    StoreState,
)
from cafebooks.domain.errors import ValidationError
from cafebooks.domain.reports import AgingBucket, AgingDetail, AgingReport

logger = logging.getLogger(__name__)

RECEIVABLE = "receivable"
PAYABLE = "payable"

ZERO = Decimal("0")

_CLOSED_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


def bucket_key(days_overdue: int) -> str:
    """Return the bucket for a number of days past due.

    Anything not yet due or at most 30 days late is current.
    """
    if days_overdue <= 30:
        return "current"
    if days_overdue <= 60:
        return "days31to60"
    if days_overdue <= 90:
        return "days61to90"
    return "over90"


class AgingService:
    """Buckets open receivables and payables by age."""

    def __init__(self, state: StoreState):
        self.state = state

    def get_aging_report(self, report_type: str, as_of_date: Optional[date] = None) -> AgingReport:
        """Build an aging report.

        Receivables are open sale invoices. Payables are open purchase and
        expense invoices plus bought shopping items still due, which fall
        due on their purchase date.

        Args:
            report_type: "receivable" or "payable"
            as_of_date: Reference day (defaults to today)

        Returns:
            AgingReport with four buckets and itemized details

        Raises:
            ValidationError: If report_type is unknown
        """
        if report_type not in (RECEIVABLE, PAYABLE):
            raise ValidationError(f"Unknown aging report type: '{report_type}'")
        as_of_date = as_of_date or date.today()

        if report_type == RECEIVABLE:
            details = self._open_invoices((InvoiceType.SALE,), as_of_date)
        else:
            details = self._open_invoices((InvoiceType.PURCHASE, InvoiceType.EXPENSE), as_of_date)
            details += self._due_purchases(as_of_date)

        buckets = {
            "current": AgingBucket(period="0-30"),
            "days31to60": AgingBucket(period="31-60"),
            "days61to90": AgingBucket(period="61-90"),
            "over90": AgingBucket(period="90+"),
        }
        for detail in details:
            key = bucket_key(detail.days_overdue)
            bucket = buckets[key]
            buckets[key] = replace(bucket, amount=bucket.amount + detail.amount, count=bucket.count + 1)

        details.sort(key=lambda d: (-d.days_overdue, d.id))
        logger.debug("Aging %s as of %s: %d open items", report_type, as_of_date, len(details))
        return AgingReport(
            type=report_type,
            as_of_date=as_of_date,
            current=buckets["current"],
            days31to60=buckets["days31to60"],
            days61to90=buckets["days61to90"],
            over90=buckets["over90"],
            total=sum((d.amount for d in details), ZERO),
            details=tuple(details),
        )

    def _open_invoices(self, types: tuple[InvoiceType, ...], as_of_date: date) -> list[AgingDetail]:
        details = []
        for invoice in self.state.invoices:
            if invoice.type not in types or invoice.status in _CLOSED_STATUSES:
                continue
            if invoice.issue_date > as_of_date or invoice.outstanding <= 0:
                continue
            if invoice.type == InvoiceType.SALE:
                name = self._customer_name(invoice.customer_id)
            else:
                name = self._vendor_name(invoice.vendor_id)
            details.append(
                AgingDetail(
                    id=invoice.id,
                    name=name,
                    invoice_number=invoice.invoice_number,
                    invoice_date=invoice.issue_date,
                    due_date=invoice.due_date,
                    amount=invoice.outstanding,
                    days_overdue=(as_of_date - invoice.due_date).days,
                )
            )
        return details

    def _due_purchases(self, as_of_date: date) -> list[AgingDetail]:
        details = []
        for shopping_list in self.state.lists:
            purchase_date = shopping_list.created_at.date()
            if purchase_date > as_of_date:
                continue
            for item in shopping_list.items:
                if (
                    item.status != ItemStatus.BOUGHT
                    or item.payment_status != PaymentStatus.DUE
                    or not item.paid_price
                    or item.paid_price <= 0
                ):
                    continue
                details.append(
                    AgingDetail(
                        id=item.id,
                        name=self._vendor_name(item.vendor_id) or item.name,
                        invoice_number=shopping_list.id,
                        invoice_date=purchase_date,
                        due_date=purchase_date,
                        amount=item.paid_price,
                        days_overdue=(as_of_date - purchase_date).days,
                    )
                )
        return details

    def _customer_name(self, customer_id: Optional[str]) -> str:
        for customer in self.state.customers:
            if customer.id == customer_id:
                return customer.name
        return ""

    def _vendor_name(self, vendor_id: Optional[str]) -> str:
        for vendor in self.state.vendors:
            if vendor.id == vendor_id:
                return vendor.name
        return ""
