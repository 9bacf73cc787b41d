"""Domain model entities for cafebooks.

These are pure data classes representing the cafe's business records,
independent of how the store blob is laid out. Accounting views are never
stored here; they are derived from these records on every read.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AccountType(str, Enum):
    """Account type buckets of the chart of accounts."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    COGS = "COGS"
    EXPENSE = "Expense"

    @property
    def is_debit_normal(self) -> bool:
        """True for types whose balance grows with debits."""
        return self in (AccountType.ASSET, AccountType.COGS, AccountType.EXPENSE)


class ItemStatus(str, Enum):
    PENDING = "Pending"
    BOUGHT = "Bought"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    DUE = "Due"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    TRANSFER = "Transfer"
    STAFF = "Staff"


class InvoiceType(str, Enum):
    SALE = "Sale"
    PURCHASE = "Purchase"
    EXPENSE = "Expense"


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    PARTIALLY_PAID = "PartiallyPaid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry.

    ``opening_balance`` is what the caller supplied at creation. ``balance``
    is refreshed from the derived postings and uses the normal-side sign of
    the account type.
    """

    id: str
    code: str
    name: str
    type: AccountType
    created_at: datetime
    name_en: Optional[str] = None
    description: Optional[str] = None
    opening_balance: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    is_active: bool = True


@dataclass(frozen=True)
class Vendor:
    """Supplier of shopping items."""

    id: str
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ShoppingItem:
    """Line of a shopping list; a purchase event once bought."""

    id: str
    name: str
    unit: str
    quantity: Decimal
    category: str
    status: ItemStatus = ItemStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.DUE
    paid_price: Optional[Decimal] = None
    estimated_price: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
    vendor_id: Optional[str] = None
    notes: Optional[str] = None
    purchased_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class ShoppingList:
    """Shopping list for one day; its date is the purchase date of its items."""

    id: str
    name: str
    created_at: datetime
    items: tuple[ShoppingItem, ...] = ()


@dataclass(frozen=True)
class POSItem:
    """Menu item sold at the point of sale."""

    id: str
    name: str
    category: str
    sell_price: Decimal
    recipe_id: Optional[str] = None
    is_taxable: bool = False
    tax_rate_id: Optional[str] = None


@dataclass(frozen=True)
class ValueChoice:
    """Free text or numeric customization value."""

    value: Union[str, Decimal]


@dataclass(frozen=True)
class OptionChoice:
    """Customization answered by picking an option."""

    option_id: str


@dataclass(frozen=True)
class AmountChoice:
    """Custom amount of a per-unit priced option."""

    option_id: str
    amount: Decimal


CustomizationChoice = Union[ValueChoice, OptionChoice, AmountChoice]


@dataclass(frozen=True)
class SellTransactionItem:
    """Line of a sell transaction."""

    id: str
    pos_item_id: str
    name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    customization_choices: dict[str, CustomizationChoice] = field(default_factory=dict)
    cost_of_goods: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None
    is_taxable: Optional[bool] = None


@dataclass(frozen=True)
class SplitPayment:
    method: PaymentMethod
    amount: Decimal


@dataclass(frozen=True)
class SellTransaction:
    """Point of sale receipt. Refunds carry a negative total."""

    id: str
    date: datetime
    items: tuple[SellTransactionItem, ...]
    total_amount: Decimal
    payment_method: PaymentMethod
    receipt_number: Optional[int] = None
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    split_payments: Optional[tuple[SplitPayment, ...]] = None
    notes: Optional[str] = None
    discount_amount: Optional[Decimal] = None
    is_refund: bool = False
    original_transaction_id: Optional[str] = None
    status: str = "completed"

    @property
    def is_completed(self) -> bool:
        return self.status != "draft"


@dataclass(frozen=True)
class RecipeIngredient:
    id: str
    item_name: str
    item_unit: str
    required_quantity: Decimal
    cost_per_unit: Optional[Decimal] = None


@dataclass(frozen=True)
class Recipe:
    """Ingredient list of a menu item; its cost drives COGS."""

    id: str
    name: str
    category: str
    base_sell_price: Decimal
    ingredients: tuple[RecipeIngredient, ...]
    created_at: datetime
    prep_notes: Optional[str] = None


@dataclass(frozen=True)
class TaxRate:
    """Tax rate, e.g. ``Decimal("0.09")`` for 9% VAT."""

    id: str
    name: str
    rate: Decimal
    account_id: str
    is_active: bool = True
    name_en: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class TaxSettings:
    enabled: bool = False
    default_tax_rate_id: Optional[str] = None
    include_tax_in_price: bool = False
    show_tax_on_receipts: bool = True


@dataclass(frozen=True)
class Customer:
    """Customer with a stored outstanding balance."""

    id: str
    name: str
    created_at: datetime
    balance: Decimal = Decimal("0")
    is_active: bool = True
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    credit_limit: Optional[Decimal] = None
    payment_terms: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class InvoiceLineItem:
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    tax_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Invoice:
    """Sale (receivable) or purchase/expense (payable) invoice."""

    id: str
    invoice_number: str
    type: InvoiceType
    issue_date: date
    due_date: date
    total_amount: Decimal
    items: tuple[InvoiceLineItem, ...] = ()
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    status: InvoiceStatus = InvoiceStatus.DRAFT
    customer_id: Optional[str] = None
    vendor_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    reference: Optional[str] = None

    @property
    def outstanding(self) -> Decimal:
        return self.total_amount - self.paid_amount


@dataclass
class StoreState:
    """The whole application store.

    Services receive this object explicitly; there is no module-level
    singleton. Mutating services replace entries in these lists.
    """

    accounts: list[Account] = field(default_factory=list)
    lists: list[ShoppingList] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)
    pos_items: list[POSItem] = field(default_factory=list)
    sell_transactions: list[SellTransaction] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    tax_rates: list[TaxRate] = field(default_factory=list)
    tax_settings: TaxSettings = field(default_factory=TaxSettings)
    customers: list[Customer] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)
    custom_categories: list[str] = field(default_factory=list)
