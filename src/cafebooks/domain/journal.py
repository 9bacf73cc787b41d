"""Journal derivation: source events to balanced posting sets.

Postings are computed, not stored. Every read rebuilds a PostingLog from the
current store state, so the derivation must stay deterministic: the same
state always yields the same entries in the same order.
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Iterator, Optional

from cafebooks.domain import account as codes
from cafebooks.domain.entities import (
    Account,
    ItemStatus,
    PaymentMethod,
    PaymentStatus,
    SellTransaction,
    ShoppingItem,
    ShoppingList,
    StoreState,
)
from cafebooks.domain.errors import ConflictError, DerivationGapError, DomainError, ValidationError
from cafebooks.domain.recipe import RecipeCostService
from cafebooks.domain.reports import DerivationGap, JournalEntry, Posting
from cafebooks.domain.tax import TaxService
from cafebooks.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Purchase categories stocked as inventory; everything else is expensed.
# Both the English keys and the Persian labels of the original store occur.
INVENTORY_CATEGORIES = frozenset(
    {
        "dairy",
        "produce",
        "bakery",
        "drygoods",
        "dry goods",
        "meat",
        "beverages",
        "لبنیات",
        "میوه و سبزیجات",
        "نان و شیرینی",
        "خشکبار و حبوبات",
        "گوشت و مرغ",
        "نوشیدنی‌ها",
    }
)

PAYMENT_ACCOUNT_CODES = {
    PaymentMethod.CASH: codes.CASH,
    PaymentMethod.CARD: codes.BANK,
    PaymentMethod.TRANSFER: codes.BANK,
    PaymentMethod.STAFF: codes.ACCOUNTS_RECEIVABLE,
}

# A purchase paid by a staff member is owed back to them.
PURCHASE_PAYMENT_ACCOUNT_CODES = {
    PaymentMethod.CASH: codes.CASH,
    PaymentMethod.CARD: codes.BANK,
    PaymentMethod.TRANSFER: codes.BANK,
    PaymentMethod.STAFF: codes.ACCOUNTS_PAYABLE,
}

# Same-day ordering of events in the log
_OPENING, _PURCHASE, _SALE, _REFUND = range(4)


class PostingLog:
    """Ordered, append-only sequence of immutable journal entries.

    ``append`` never mutates the log; it returns a new one. Entry ids are
    unique within a log.
    """

    def __init__(
        self,
        entries: tuple[JournalEntry, ...] = (),
        gaps: tuple[DerivationGap, ...] = (),
    ):
        self._entries = tuple(entries)
        self._ids = frozenset(entry.id for entry in self._entries)
        self._gaps = tuple(gaps)

    @property
    def entries(self) -> tuple[JournalEntry, ...]:
        return self._entries

    @property
    def gaps(self) -> tuple[DerivationGap, ...]:
        return self._gaps

    @property
    def skipped_events(self) -> int:
        return len(self._gaps)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._ids

    def append(self, entry: JournalEntry) -> "PostingLog":
        """Return a new log with the entry added at the end.

        Raises:
            ConflictError: If an entry with the same id is already logged
            ValidationError: If the entry does not balance exactly
        """
        if entry.id in self._ids:
            raise ConflictError(f"Journal entry '{entry.id}' is already in the log")
        if not entry.is_balanced:
            raise ValidationError(
                f"Journal entry '{entry.id}' is unbalanced: "
                f"debit {entry.total_debit} != credit {entry.total_credit}"
            )
        return PostingLog(self._entries + (entry,), self._gaps)

    def with_gap(self, gap: DerivationGap) -> "PostingLog":
        return PostingLog(self._entries, self._gaps + (gap,))

    def postings(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Iterator[Posting]:
        """Iterate postings in log order, optionally filtered.

        Args:
            account_id: Only postings against this account
            start_date: Only postings on or after this date
            end_date: Only postings on or before this date
        """
        for entry in self._entries:
            for posting in entry.postings:
                if account_id is not None and posting.account_id != account_id:
                    continue
                if start_date is not None and posting.date < start_date:
                    continue
                if end_date is not None and posting.date > end_date:
                    continue
                yield posting


class JournalService:
    """Derives journal entries from the store's source events."""

    def __init__(self, state: StoreState):
        """Initialize journal service.

        Args:
            state: Store state; it is only read
        """
        self.state = state
        self.tax = TaxService(state)
        self.recipes = RecipeCostService(state)

    def build_log(self) -> PostingLog:
        """Replay every source event into a fresh posting log.

        Events that cannot be mapped to a balanced posting set are logged,
        recorded as derivation gaps and left out.

        Returns:
            PostingLog in (date, kind, event id) order
        """
        log = PostingLog()
        for _, _, event_id, event_type, derive in sorted(self._events(), key=lambda e: e[:3]):
            try:
                event_log = log
                for entry in derive():
                    event_log = event_log.append(entry)
                log = event_log
            except DerivationGapError as e:
                log = self._skip(log, e.event_id, e.event_type, e.reason)
            except DomainError as e:
                log = self._skip(log, event_id, event_type, str(e))
        return log

    def _skip(self, log: PostingLog, event_id: str, event_type: str, reason: str) -> PostingLog:
        logger.warning("Skipping %s %s: %s", event_type, event_id, reason)
        return log.with_gap(DerivationGap(event_id=event_id, event_type=event_type, reason=reason))

    def _events(self) -> Iterator[tuple[date, int, str, str, Callable[[], list[JournalEntry]]]]:
        for acc in self.state.accounts:
            if acc.opening_balance:
                yield (
                    acc.created_at.date(),
                    _OPENING,
                    acc.id,
                    "opening",
                    lambda acc=acc: self.derive_opening(acc),
                )

        for shopping_list in self.state.lists:
            for item in shopping_list.items:
                if item.status != ItemStatus.BOUGHT:
                    continue
                yield (
                    shopping_list.created_at.date(),
                    _PURCHASE,
                    item.id,
                    "purchase",
                    lambda sl=shopping_list, it=item: self.derive_purchase(sl, it),
                )

        for txn in self.state.sell_transactions:
            if not txn.is_completed:
                continue
            if txn.is_refund:
                yield (txn.date.date(), _REFUND, txn.id, "refund", lambda t=txn: self.derive_refund(t))
            else:
                yield (txn.date.date(), _SALE, txn.id, "sale", lambda t=txn: self.derive_sale(t))

    # Account mapping

    def _require(self, code: str, event_id: str, event_type: str) -> Account:
        for acc in self.state.accounts:
            if acc.code == code and acc.is_active:
                return acc
        raise DerivationGapError(event_id, event_type, f"no active account with code '{code}'")

    def _require_id(self, account_id: str, event_id: str, event_type: str) -> Account:
        for acc in self.state.accounts:
            if acc.id == account_id and acc.is_active:
                return acc
        raise DerivationGapError(event_id, event_type, f"no active account with id '{account_id}'")

    # Derivation rules

    def derive_opening(self, acc: Account) -> list[JournalEntry]:
        """Post an account's opening balance against Opening Balance Equity."""
        offset = self._require(codes.OPENING_BALANCE_EQUITY, acc.id, "opening")
        if offset.id == acc.id:
            raise DerivationGapError(
                acc.id, "opening", "Opening Balance Equity cannot carry its own opening balance"
            )

        on_date = acc.created_at.date()
        amount = abs(acc.opening_balance)
        debit_side = acc.type.is_debit_normal == (acc.opening_balance > 0)
        debit_id, credit_id = (acc.id, offset.id) if debit_side else (offset.id, acc.id)
        description = f"Opening balance: {acc.name}"
        return [
            JournalEntry(
                id=f"opening:{acc.id}",
                date=on_date,
                description=description,
                reference=acc.id,
                reference_type="opening",
                postings=(
                    Posting(on_date, debit_id, amount, ZERO, description, acc.id),
                    Posting(on_date, credit_id, ZERO, amount, description, acc.id),
                ),
            )
        ]

    def derive_purchase(self, shopping_list: ShoppingList, item: ShoppingItem) -> list[JournalEntry]:
        """Debit inventory or expense, credit cash/bank or payables."""
        if item.paid_price is None:
            raise DerivationGapError(item.id, "purchase", "bought item has no paid price")
        if item.paid_price < 0:
            raise DerivationGapError(item.id, "purchase", "negative paid price")
        if item.paid_price == 0:
            return []

        if item.category.strip().lower() in INVENTORY_CATEGORIES:
            debit_code = codes.INVENTORY
        else:
            debit_code = codes.SUPPLIES_EXPENSE

        if item.payment_status == PaymentStatus.DUE:
            credit_code = codes.ACCOUNTS_PAYABLE
        else:
            credit_code = PURCHASE_PAYMENT_ACCOUNT_CODES[item.payment_method or PaymentMethod.CASH]

        debit_account = self._require(debit_code, item.id, "purchase")
        credit_account = self._require(credit_code, item.id, "purchase")

        on_date = shopping_list.created_at.date()
        description = f"Purchase: {item.name}"
        vendor = self._vendor_name(item.vendor_id)
        if vendor:
            description = f"{description} ({vendor})"
        amount = item.paid_price
        return [
            JournalEntry(
                id=f"purchase:{item.id}",
                date=on_date,
                description=description,
                reference=item.id,
                reference_type="purchase",
                postings=(
                    Posting(on_date, debit_account.id, amount, ZERO, description, item.id),
                    Posting(on_date, credit_account.id, ZERO, amount, description, item.id),
                ),
            )
        ]

    def derive_sale(self, txn: SellTransaction) -> list[JournalEntry]:
        """Sale entry plus its COGS entry, all or nothing."""
        entries = []
        sale_entry = self._sale_entry(txn, "sale")
        if sale_entry is not None:
            entries.append(sale_entry)
        cogs_entry = self._cogs_entry(txn, "sale")
        if cogs_entry is not None:
            entries.append(cogs_entry)
        return entries

    def derive_refund(self, txn: SellTransaction) -> list[JournalEntry]:
        """Mirror the original sale with debit and credit swapped.

        Without an original transaction the refund's own fields are used.
        """
        if txn.original_transaction_id is None:
            source = [e for e in (self._sale_entry(txn, "refund"), self._cogs_entry(txn, "refund")) if e]
        else:
            original = self._find_transaction(txn.original_transaction_id)
            if original is None or original.is_refund:
                raise DerivationGapError(
                    txn.id, "refund", f"original transaction '{txn.original_transaction_id}' not found"
                )
            if abs(txn.total_amount) != abs(original.total_amount):
                raise DerivationGapError(
                    txn.id,
                    "refund",
                    f"refund total {abs(txn.total_amount)} does not match original total "
                    f"{abs(original.total_amount)}",
                )
            try:
                source = self.derive_sale(original)
            except DerivationGapError as e:
                raise DerivationGapError(txn.id, "refund", f"original {original.id}: {e.reason}") from e

        on_date = txn.date.date()
        mirrored = []
        for entry in source:
            kind = "refund-cogs" if entry.reference_type == "cogs" else "refund"
            description = f"Refund: {entry.description}"
            mirrored.append(
                JournalEntry(
                    id=f"{kind}:{txn.id}",
                    date=on_date,
                    description=description,
                    reference=txn.id,
                    reference_type="refund",
                    postings=tuple(
                        replace(
                            p,
                            date=on_date,
                            debit=p.credit,
                            credit=p.debit,
                            description=description,
                            reference=txn.id,
                        )
                        for p in entry.postings
                    ),
                )
            )
        return mirrored

    def _sale_entry(self, txn: SellTransaction, event_type: str) -> Optional[JournalEntry]:
        total = abs(txn.total_amount)
        discount = abs(txn.discount_amount or ZERO)
        on_date = txn.date.date()
        label = f"Sale #{txn.receipt_number}" if txn.receipt_number is not None else f"Sale {txn.id}"
        postings: list[Posting] = []

        def post(account: Account, debit: Decimal, credit: Decimal) -> None:
            if debit or credit:
                postings.append(Posting(on_date, account.id, debit, credit, label, txn.id))

        if txn.split_payments:
            split_total = sum((abs(s.amount) for s in txn.split_payments), ZERO)
            if split_total != total:
                raise DerivationGapError(
                    txn.id, event_type, f"split payments sum to {split_total}, total is {total}"
                )
            for split in txn.split_payments:
                post(self._require(PAYMENT_ACCOUNT_CODES[split.method], txn.id, event_type), abs(split.amount), ZERO)
        else:
            post(self._require(PAYMENT_ACCOUNT_CODES[txn.payment_method], txn.id, event_type), total, ZERO)

        if discount:
            post(self._require(codes.SALES_DISCOUNTS, txn.id, event_type), discount, ZERO)

        tax_lines = self._tax_lines(txn, event_type)
        tax_total = sum(tax_lines.values(), ZERO)
        revenue = total + discount - tax_total
        if revenue < 0:
            raise DerivationGapError(txn.id, event_type, f"tax {tax_total} exceeds sale total {total}")
        post(self._require(codes.SALES_REVENUE, txn.id, event_type), ZERO, revenue)
        for account_id, amount in tax_lines.items():
            post(self._require_id(account_id, txn.id, event_type), ZERO, amount)

        if not postings:
            return None
        return JournalEntry(
            id=f"{event_type}:{txn.id}",
            date=on_date,
            description=label,
            reference=txn.id,
            reference_type="sale",
            postings=tuple(postings),
        )

    def _tax_lines(self, txn: SellTransaction, event_type: str) -> dict[str, Decimal]:
        """Tax to credit per tax account id; empty when tax is disabled."""
        if not self.state.tax_settings.enabled:
            return {}

        tax_payable = self._find_code(codes.TAX_PAYABLE)
        default_account_id = tax_payable.id if tax_payable is not None else None

        lines: dict[str, Decimal] = {}
        if txn.tax_amount is not None:
            default_rate = self.tax.get_default_rate()
            account_id = default_rate.account_id if default_rate is not None else default_account_id
            amounts = [(account_id, abs(txn.tax_amount))]
        else:
            amounts = []
            for item in txn.items:
                tax = self.tax.item_tax(item)
                if tax:
                    _, account_id = self.tax.resolve_rate(item)
                    amounts.append((account_id or default_account_id, tax))

        for account_id, amount in amounts:
            if not amount:
                continue
            if account_id is None:
                raise DerivationGapError(txn.id, event_type, "no tax payable account")
            lines[account_id] = lines.get(account_id, ZERO) + amount
        return lines

    def _cogs_entry(self, txn: SellTransaction, event_type: str) -> Optional[JournalEntry]:
        on_date = txn.date.date()
        cost = ZERO
        for item in txn.items:
            if item.cost_of_goods is not None:
                cost += abs(item.cost_of_goods)
                continue
            pos_item = self.tax.get_pos_item(item.pos_item_id)
            if pos_item is None or pos_item.recipe_id is None:
                continue
            recipe = self.recipes.get_recipe(pos_item.recipe_id)
            if recipe is None:
                continue
            cost += self.recipes.get_recipe_cost(recipe, on_date) * abs(item.quantity)
        cost = to_money(cost)
        if not cost:
            return None

        cogs = self._require(codes.COST_OF_GOODS_SOLD, txn.id, event_type)
        inventory = self._require(codes.INVENTORY, txn.id, event_type)
        description = f"Cost of goods sold: {txn.id}"
        return JournalEntry(
            id=f"cogs:{txn.id}",
            date=on_date,
            description=description,
            reference=txn.id,
            reference_type="cogs",
            postings=(
                Posting(on_date, cogs.id, cost, ZERO, description, txn.id),
                Posting(on_date, inventory.id, ZERO, cost, description, txn.id),
            ),
        )

    def _find_code(self, code: str) -> Optional[Account]:
        for acc in self.state.accounts:
            if acc.code == code and acc.is_active:
                return acc
        return None

    def _find_transaction(self, transaction_id: str) -> Optional[SellTransaction]:
        for txn in self.state.sell_transactions:
            if txn.id == transaction_id and txn.is_completed:
                return txn
        return None

    def _vendor_name(self, vendor_id: Optional[str]) -> Optional[str]:
        if vendor_id is None:
            return None
        for vendor in self.state.vendors:
            if vendor.id == vendor_id:
                return vendor.name
        return None
