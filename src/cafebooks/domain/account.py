"""Account registry domain service."""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, Any

from cafebooks.domain.entities import Account, AccountType, StoreState
from cafebooks.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_code,
    immutable_account_field,
)

logger = logging.getLogger(__name__)

CASH = "1-101"
BANK = "1-102"
INVENTORY = "1-201"
ACCOUNTS_RECEIVABLE = "1-301"
EQUIPMENT = "1-401"
ACCOUNTS_PAYABLE = "2-101"
TAX_PAYABLE = "2-201"
CAPITAL = "3-101"
RETAINED_EARNINGS = "3-201"
OPENING_BALANCE_EQUITY = "3-301"
SALES_REVENUE = "4-101"
SALES_DISCOUNTS = "4-901"
COST_OF_GOODS_SOLD = "5-101"
SUPPLIES_EXPENSE = "6-401"

# (code, name, English name, type, description)
DEFAULT_CHART_OF_ACCOUNTS = [
    (CASH, "صندوق", "Cash", AccountType.ASSET, "صندوق نقدی"),
    (BANK, "بانک", "Bank", AccountType.ASSET, "حساب بانکی"),
    (INVENTORY, "موجودی کالا", "Inventory", AccountType.ASSET, "موجودی کالا و مواد اولیه"),
    (ACCOUNTS_RECEIVABLE, "حساب‌های دریافتنی", "Accounts Receivable", AccountType.ASSET, "طلب از مشتریان"),
    (EQUIPMENT, "تجهیزات", "Equipment", AccountType.ASSET, "اثاثیه و تجهیزات کافه"),
    (ACCOUNTS_PAYABLE, "حساب‌های پرداختنی", "Accounts Payable", AccountType.LIABILITY, "بدهی به تامین‌کنندگان"),
    (TAX_PAYABLE, "مالیات پرداختنی", "Tax Payable", AccountType.LIABILITY, "مالیات قابل پرداخت"),
    (CAPITAL, "سرمایه", "Capital", AccountType.EQUITY, "سرمایه اولیه"),
    (RETAINED_EARNINGS, "سود انباشته", "Retained Earnings", AccountType.EQUITY, "سود (زیان) انباشته"),
    (OPENING_BALANCE_EQUITY, "مانده افتتاحیه", "Opening Balance Equity", AccountType.EQUITY, "طرف مقابل مانده‌های افتتاحیه"),
    (SALES_REVENUE, "درآمد فروش", "Sales Revenue", AccountType.REVENUE, "درآمد حاصل از فروش"),
    (SALES_DISCOUNTS, "تخفیفات فروش", "Sales Discounts", AccountType.REVENUE, "تخفیف‌های اعطایی (کاهنده درآمد)"),
    (COST_OF_GOODS_SOLD, "بهای تمام شده کالای فروش رفته", "Cost of Goods Sold", AccountType.COGS, "بهای تمام شده کالای فروخته شده"),
    ("6-101", "هزینه حقوق و دستمزد", "Payroll Expense", AccountType.EXPENSE, "هزینه حقوق و مزایای پرسنل"),
    ("6-201", "هزینه اجاره", "Rent Expense", AccountType.EXPENSE, "هزینه اجاره محل"),
    ("6-301", "هزینه برق و آب و گاز", "Utilities Expense", AccountType.EXPENSE, "هزینه‌های برق، آب و گاز"),
    (SUPPLIES_EXPENSE, "هزینه ملزومات و عمومی", "Supplies & General Expense", AccountType.EXPENSE, "ملزومات نظافتی و سایر خریدها"),
]

_MUTABLE_FIELDS = {"name", "name_en", "description", "is_active"}


def signed_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Return a balance in the normal-side sign of the account type."""
    if account_type.is_debit_normal:
        return debit - credit
    return credit - debit


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, state: StoreState):
        """Initialize account service.

        Args:
            state: Store state holding the account list
        """
        self.state = state

    def initialize_default_accounts(self) -> int:
        """Seed the default chart of accounts if there are no accounts.

        Returns:
            Number of accounts created (0 when accounts already exist)
        """
        if self.state.accounts:
            return 0

        now = datetime.now(UTC)
        for code, name, name_en, account_type, description in DEFAULT_CHART_OF_ACCOUNTS:
            self.state.accounts.append(
                Account(
                    id=f"acc-{code}",
                    code=code,
                    name=name,
                    name_en=name_en,
                    type=account_type,
                    description=description,
                    created_at=now,
                )
            )
        logger.info("Seeded %d default accounts", len(DEFAULT_CHART_OF_ACCOUNTS))
        return len(DEFAULT_CHART_OF_ACCOUNTS)

    def add_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        name_en: Optional[str] = None,
        description: Optional[str] = None,
        opening_balance: Decimal = Decimal("0"),
        created_at: Optional[datetime] = None,
    ) -> Account:
        """Add an account to the chart.

        Args:
            code: Unique account code, e.g. "1-103"
            name: Display name
            account_type: Account type bucket
            name_en: Optional English name
            description: Optional description
            opening_balance: Balance at creation in the normal-side sign
            created_at: Creation time (defaults to now); the opening balance
                is posted on this date

        Returns:
            The created account

        Raises:
            ValidationError: If code or name is empty, or Opening Balance
                Equity is given an opening balance
            ConflictError: If an active account already uses the code
        """
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Account code is required")
        if not name:
            raise ValidationError("Account name is required")
        if not isinstance(account_type, AccountType):
            raise ValidationError(f"Invalid account type: {account_type!r}")
        if code == OPENING_BALANCE_EQUITY and opening_balance:
            raise ValidationError("Opening Balance Equity cannot have an opening balance")

        if self.get_account_by_code(code) is not None:
            raise ConflictError(duplicate_account_code(code))

        account = Account(
            id=f"acc-{uuid.uuid4().hex[:8]}",
            code=code,
            name=name,
            name_en=name_en,
            type=account_type,
            description=description,
            opening_balance=Decimal(opening_balance),
            balance=Decimal(opening_balance),
            created_at=created_at or datetime.now(UTC),
        )
        self.state.accounts.append(account)
        logger.info("Added account %s '%s' (%s)", code, name, account_type.value)
        return account

    def update_account(self, account_id: str, **patch: Any) -> Account:
        """Patch mutable account fields.

        Args:
            account_id: Account ID
            **patch: Fields to change (name, name_en, description, is_active)

        Returns:
            The updated account

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the patch changes code or type, or names an
                unknown field
        """
        index, account = self._find(account_id)

        for immutable in ("code", "type"):
            if immutable in patch and patch[immutable] != getattr(account, immutable):
                raise ValidationError(immutable_account_field(immutable, account_id))
            patch.pop(immutable, None)

        unknown = set(patch) - _MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown account fields: {', '.join(sorted(unknown))}")
        if "name" in patch and not (patch["name"] or "").strip():
            raise ValidationError("Account name is required")
        if patch.get("is_active") and not account.is_active:
            if self.get_account_by_code(account.code) is not None:
                raise ConflictError(duplicate_account_code(account.code))

        updated = replace(account, **patch)
        self.state.accounts[index] = updated
        return updated

    def deactivate_account(self, account_id: str) -> Account:
        """Soft-delete an account. Accounts are never physically removed."""
        return self.update_account(account_id, is_active=False)

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        for account in self.state.accounts:
            if account.id == account_id:
                return account
        return None

    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get the active account with the given code."""
        for account in self.state.accounts:
            if account.code == code and account.is_active:
                return account
        return None

    def list_accounts(self, include_inactive: bool = False) -> list[Account]:
        """List accounts sorted by code."""
        accounts = [
            acc for acc in self.state.accounts if include_inactive or acc.is_active
        ]
        return sorted(accounts, key=lambda acc: acc.code)

    def get_accounts_by_type(self, account_type: AccountType) -> list[Account]:
        """Return active accounts of a type, sorted by code."""
        return [acc for acc in self.list_accounts() if acc.type == account_type]

    def apply_balances(self, log) -> None:
        """Refresh every account's balance from its opening balance and the log.

        The opening balance is part of the log as an opening entry, so the
        refreshed balance is the signed sum of the account's postings. Calling
        this twice with the same log gives the same balances.

        Args:
            log: PostingLog built by JournalService
        """
        totals: dict[str, tuple[Decimal, Decimal]] = {}
        for posting in log.postings():
            debit, credit = totals.get(posting.account_id, (Decimal("0"), Decimal("0")))
            totals[posting.account_id] = (debit + posting.debit, credit + posting.credit)

        for index, account in enumerate(self.state.accounts):
            debit, credit = totals.get(account.id, (Decimal("0"), Decimal("0")))
            balance = signed_balance(account.type, debit, credit)
            if balance != account.balance:
                self.state.accounts[index] = replace(account, balance=balance)

    def _find(self, account_id: str) -> tuple[int, Account]:
        for index, account in enumerate(self.state.accounts):
            if account.id == account_id:
                return index, account
        raise NotFoundError(account_not_found(account_id))
