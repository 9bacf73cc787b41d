"""Derived accounting records and report data transfer objects.

Everything in this module is computed fresh per query and discarded after
rendering. Nothing here is persisted.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import Account, PaymentStatus, Vendor

TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class Posting:
    """One debit or credit line against an account."""

    date: date
    account_id: str
    debit: Decimal
    credit: Decimal
    description: str
    reference: str


@dataclass(frozen=True)
class JournalEntry:
    """Balanced posting set derived from one source event."""

    id: str
    date: date
    description: str
    reference: str
    reference_type: str
    postings: tuple[Posting, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((p.debit for p in self.postings), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((p.credit for p in self.postings), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


@dataclass(frozen=True)
class DerivationGap:
    """Source event excluded from the aggregates."""

    event_id: str
    event_type: str
    reason: str


@dataclass(frozen=True)
class LedgerLine:
    date: date
    description: str
    reference: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerView:
    """General ledger of one account."""

    account: Account
    entries: tuple[LedgerLine, ...]
    opening_balance: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class GeneralLedger:
    views: tuple[LedgerView, ...]
    skipped_events: int = 0


@dataclass(frozen=True)
class TrialBalanceRow:
    account: Account
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    as_of_date: date
    rows: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    balanced: bool
    skipped_events: int = 0


@dataclass(frozen=True)
class StatementLine:
    account: Account
    amount: Decimal


@dataclass(frozen=True)
class StatementSection:
    """Group of statement lines with its total."""

    lines: tuple[StatementLine, ...]
    total: Decimal


@dataclass(frozen=True)
class ClassifiedSection:
    """Assets or liabilities split into current and non-current lines."""

    current: tuple[StatementLine, ...]
    non_current: tuple[StatementLine, ...]
    total: Decimal


@dataclass(frozen=True)
class EquitySection:
    lines: tuple[StatementLine, ...]
    retained_earnings: Decimal
    total: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    as_of_date: date
    assets: ClassifiedSection
    liabilities: ClassifiedSection
    equity: EquitySection
    balanced: bool
    skipped_events: int = 0


@dataclass(frozen=True)
class IncomeStatement:
    start_date: date
    end_date: date
    revenue: StatementSection
    cogs: StatementSection
    gross_profit: Decimal
    gross_margin: Decimal
    expenses: StatementSection
    net_income: Decimal
    net_margin: Decimal
    skipped_events: int = 0


@dataclass(frozen=True)
class CashFlowItem:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class CashFlowSection:
    items: tuple[CashFlowItem, ...]
    total: Decimal


@dataclass(frozen=True)
class CashFlowStatement:
    start_date: date
    end_date: date
    net_income: Decimal
    operating: CashFlowSection
    investing: CashFlowSection
    financing: CashFlowSection
    net_cash_flow: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal
    reconciled: bool
    skipped_events: int = 0


@dataclass(frozen=True)
class AgingBucket:
    period: str
    amount: Decimal = Decimal("0")
    count: int = 0


@dataclass(frozen=True)
class AgingDetail:
    id: str
    name: str
    invoice_number: str
    invoice_date: date
    due_date: date
    amount: Decimal
    days_overdue: int


@dataclass(frozen=True)
class AgingReport:
    type: str
    as_of_date: date
    current: AgingBucket
    days31to60: AgingBucket
    days61to90: AgingBucket
    over90: AgingBucket
    total: Decimal
    details: tuple[AgingDetail, ...] = ()


@dataclass(frozen=True)
class TaxReportRow:
    id: str
    date: date
    amount: Decimal
    tax_amount: Decimal
    tax_rate: Decimal
    receipt_number: Optional[int] = None


@dataclass(frozen=True)
class TaxReport:
    start_date: date
    end_date: date
    taxable_revenue: Decimal
    non_taxable_revenue: Decimal
    total_revenue: Decimal
    tax_collected: Decimal
    tax_rate: Decimal
    transactions: tuple[TaxReportRow, ...] = field(default_factory=tuple)
    enabled: bool = True


@dataclass(frozen=True)
class SummaryGroup:
    """Total of one category, vendor or menu item over a period."""

    name: str
    amount: Decimal
    count: int
    quantity: Decimal = Decimal("0")


@dataclass(frozen=True)
class SpendingSummary:
    """Spending on bought items, grouped by category or vendor."""

    start_date: date
    end_date: date
    group_by: str
    total_spend: Decimal
    distinct_items: int
    avg_daily_spend: Decimal
    groups: tuple[SummaryGroup, ...] = field(default_factory=tuple)
    top_category: Optional[SummaryGroup] = None
    top_vendor: Optional[SummaryGroup] = None
    daily_spend: tuple[tuple[date, Decimal], ...] = field(default_factory=tuple)
    period_keys: tuple[str, ...] = field(default_factory=tuple)
    period_groups: dict[str, tuple[SummaryGroup, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class SalesSummary:
    """Sales of menu items; refunds count negative."""

    start_date: date
    end_date: date
    total_revenue: Decimal
    transaction_count: int
    refund_count: int
    avg_transaction_value: Decimal
    items: tuple[SummaryGroup, ...] = field(default_factory=tuple)
    categories: tuple[SummaryGroup, ...] = field(default_factory=tuple)
    top_item: Optional[SummaryGroup] = None
    top_category: Optional[SummaryGroup] = None


@dataclass(frozen=True)
class VendorPurchase:
    date: date
    list_name: str
    name: str
    quantity: Decimal
    unit: str
    amount: Decimal
    payment_status: PaymentStatus


@dataclass(frozen=True)
class VendorHistory:
    """Bought items of one vendor, oldest first."""

    vendor: Vendor
    purchases: tuple[VendorPurchase, ...]
    total_spent: Decimal
    outstanding: Decimal

    @property
    def purchase_count(self) -> int:
        return len(self.purchases)

    @property
    def last_purchase(self) -> Optional[date]:
        return self.purchases[-1].date if self.purchases else None


@dataclass(frozen=True)
class ValidationIssue:
    """Finding of the store-wide data validation scan."""

    type: str
    severity: str
    entity: str
    entity_id: str
    message: str
    field: Optional[str] = None
    suggestion: Optional[str] = None


def within_tolerance(a: Decimal, b: Decimal) -> bool:
    """Return True if two amounts agree within one hundredth of a Rial."""
    return abs(a - b) < TOLERANCE
