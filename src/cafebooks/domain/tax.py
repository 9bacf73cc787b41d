"""Tax rate resolution and tax reporting."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import (
    POSItem,
    SellTransaction,
    SellTransactionItem,
    StoreState,
    TaxRate,
)
from cafebooks.domain.reports import TaxReport, TaxReportRow
from cafebooks.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class TaxService:
    """Service for resolving item taxes and building the tax report."""

    def __init__(self, state: StoreState):
        """Initialize tax service.

        Args:
            state: Store state with tax rates, settings and transactions
        """
        self.state = state

    def get_tax_rate(self, rate_id: Optional[str]) -> Optional[TaxRate]:
        """Get an active tax rate by ID."""
        if rate_id is None:
            return None
        for rate in self.state.tax_rates:
            if rate.id == rate_id and rate.is_active:
                return rate
        return None

    def get_default_rate(self) -> Optional[TaxRate]:
        return self.get_tax_rate(self.state.tax_settings.default_tax_rate_id)

    def get_pos_item(self, pos_item_id: str) -> Optional[POSItem]:
        for pos_item in self.state.pos_items:
            if pos_item.id == pos_item_id:
                return pos_item
        return None

    def is_item_taxable(self, item: SellTransactionItem) -> bool:
        """Return the recorded item flag, falling back to the POS item flag."""
        if item.is_taxable is not None:
            return item.is_taxable
        pos_item = self.get_pos_item(item.pos_item_id)
        return pos_item.is_taxable if pos_item is not None else False

    def resolve_rate(self, item: SellTransactionItem) -> tuple[Decimal, Optional[str]]:
        """Resolve the rate and the liability account for an item.

        The recorded item rate wins, then the POS item's own tax rate, then
        the default rate of the tax settings.

        Returns:
            Tuple of (rate, tax account ID or None)
        """
        pos_item = self.get_pos_item(item.pos_item_id)
        tax_rate = None
        if pos_item is not None:
            tax_rate = self.get_tax_rate(pos_item.tax_rate_id)
        if tax_rate is None:
            tax_rate = self.get_default_rate()

        account_id = tax_rate.account_id if tax_rate is not None else None
        if item.tax_rate is not None:
            return item.tax_rate, account_id
        if tax_rate is not None:
            return tax_rate.rate, account_id
        return ZERO, account_id

    def item_tax(self, item: SellTransactionItem) -> Decimal:
        """Tax carried by one sold item."""
        if item.tax_amount is not None:
            return abs(item.tax_amount)
        if not self.is_item_taxable(item):
            return ZERO
        rate, _ = self.resolve_rate(item)
        amount = abs(item.total_price)
        if self.state.tax_settings.include_tax_in_price:
            return to_money(amount * rate / (1 + rate))
        return to_money(amount * rate)

    def transaction_tax(self, transaction: SellTransaction) -> Decimal:
        """Tax part of a transaction total, as a non-negative amount."""
        if transaction.tax_amount is not None:
            return abs(transaction.tax_amount)
        return sum((self.item_tax(item) for item in transaction.items), ZERO)

    def get_tax_report(self, start_date: date, end_date: date) -> TaxReport:
        """Build the tax report for completed transactions in a date range.

        The collected tax follows the ledger: nothing is collected while tax
        is disabled, and a transaction's recorded tax wins over the item
        taxes.

        Args:
            start_date: First day of the period (inclusive)
            end_date: Last day of the period (inclusive)

        Returns:
            TaxReport with taxable/non-taxable revenue and per-transaction rows
        """
        enabled = self.state.tax_settings.enabled
        taxable_revenue = ZERO
        non_taxable_revenue = ZERO
        tax_collected = ZERO
        rows = []

        transactions = sorted(
            (
                txn
                for txn in self.state.sell_transactions
                if txn.is_completed and start_date <= txn.date.date() <= end_date
            ),
            key=lambda txn: (txn.date, txn.id),
        )
        for txn in transactions:
            sign = -1 if txn.is_refund else 1
            txn_taxable = ZERO
            for item in txn.items:
                amount = abs(item.total_price)
                if enabled and self.is_item_taxable(item):
                    txn_taxable += amount
                else:
                    non_taxable_revenue += sign * amount
            txn_tax = self.transaction_tax(txn) if enabled else ZERO
            taxable_revenue += sign * txn_taxable
            tax_collected += sign * txn_tax

            effective_rate = ZERO
            if txn_taxable:
                effective_rate = (txn_tax / txn_taxable).quantize(Decimal("0.0001"))
            rows.append(
                TaxReportRow(
                    id=txn.id,
                    date=txn.date.date(),
                    receipt_number=txn.receipt_number,
                    amount=sign * abs(txn.total_amount),
                    tax_amount=sign * txn_tax,
                    tax_rate=effective_rate,
                )
            )

        default_rate = self.get_default_rate()
        logger.debug("Tax report %s..%s: %d transactions", start_date, end_date, len(rows))
        return TaxReport(
            start_date=start_date,
            end_date=end_date,
            taxable_revenue=taxable_revenue,
            non_taxable_revenue=non_taxable_revenue,
            total_revenue=taxable_revenue + non_taxable_revenue,
            tax_collected=tax_collected,
            tax_rate=default_rate.rate if default_rate is not None else ZERO,
            transactions=tuple(rows),
            enabled=enabled,
        )
