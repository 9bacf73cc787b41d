"""Recording of source events: purchases, sales, refunds and master data."""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, time, UTC
from decimal import Decimal
from typing import Any, Optional, Sequence

from cafebooks.domain import account as codes
from cafebooks.domain.entities import (
    CustomizationChoice,
    ItemStatus,
    PaymentMethod,
    PaymentStatus,
    POSItem,
    Recipe,
    RecipeIngredient,
    SellTransaction,
    SellTransactionItem,
    ShoppingItem,
    ShoppingList,
    SplitPayment,
    StoreState,
    TaxRate,
    Vendor,
)
from cafebooks.domain.errors import (
    ConflictError,
    ValidationError,
    transaction_not_found,
    vendor_not_found,
)
from cafebooks.domain.recipe import RecipeCostService
from cafebooks.domain.tax import TaxService
from cafebooks.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _require_name(value: Optional[str], what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{what} is required")
    return value


class EventService:
    """Validated mutations of the store's source events.

    Every method validates all of its input before touching the state, so
    a rejected call leaves the state unchanged.
    """

    def __init__(self, state: StoreState):
        """Initialize event service.

        Args:
            state: Store state to mutate
        """
        self.state = state
        self.tax = TaxService(state)
        self.recipes = RecipeCostService(state)

    # Vendors

    def add_vendor(self, name: str, phone: Optional[str] = None, notes: Optional[str] = None) -> Vendor:
        """Add a vendor.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a vendor with the same name exists
        """
        name = _require_name(name, "Vendor name")
        if self.find_vendor_by_name(name) is not None:
            raise ConflictError(f"Vendor with name '{name}' already exists")
        vendor = Vendor(id=_new_id("vendor"), name=name, phone=phone, notes=notes)
        self.state.vendors.append(vendor)
        return vendor

    def find_vendor_by_name(self, name: str) -> Optional[Vendor]:
        for vendor in self.state.vendors:
            if vendor.name == name:
                return vendor
        return None

    # Purchases

    def get_or_create_list(self, purchase_date: date) -> ShoppingList:
        """Return the shopping list of a day, creating it when missing."""
        list_id = purchase_date.isoformat()
        for shopping_list in self.state.lists:
            if shopping_list.id == list_id:
                return shopping_list
        shopping_list = ShoppingList(
            id=list_id,
            name=f"Shopping list {list_id}",
            created_at=datetime.combine(purchase_date, time(), tzinfo=UTC),
        )
        self.state.lists.append(shopping_list)
        return shopping_list

    def record_purchase(
        self,
        purchase_date: date,
        name: str,
        unit: str,
        quantity: Decimal,
        category: str,
        paid_price: Decimal,
        payment_status: PaymentStatus = PaymentStatus.PAID,
        payment_method: Optional[PaymentMethod] = PaymentMethod.CASH,
        vendor_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ShoppingItem:
        """Record a bought item on the shopping list of its day.

        Raises:
            ValidationError: On empty name/unit/category, non-positive
                quantity, negative price or unknown vendor
        """
        name = _require_name(name, "Item name")
        unit = _require_name(unit, "Unit")
        category = _require_name(category, "Category")
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")
        if paid_price < 0:
            raise ValidationError("Paid price cannot be negative")
        if vendor_id is not None and not any(v.id == vendor_id for v in self.state.vendors):
            raise ValidationError(vendor_not_found(vendor_id))

        item = ShoppingItem(
            id=_new_id("item"),
            name=name,
            unit=unit,
            quantity=quantity,
            purchased_amount=quantity,
            category=category,
            status=ItemStatus.BOUGHT,
            paid_price=paid_price,
            payment_status=payment_status,
            payment_method=payment_method if payment_status == PaymentStatus.PAID else None,
            vendor_id=vendor_id,
            notes=notes,
        )
        shopping_list = self.get_or_create_list(purchase_date)
        index = self.state.lists.index(shopping_list)
        self.state.lists[index] = replace(shopping_list, items=shopping_list.items + (item,))
        logger.info("Recorded purchase %s: %s for %s", item.id, name, paid_price)
        return item

    # Menu and recipes

    def add_pos_item(
        self,
        name: str,
        category: str,
        sell_price: Decimal,
        recipe_id: Optional[str] = None,
        is_taxable: bool = False,
        tax_rate_id: Optional[str] = None,
    ) -> POSItem:
        """Add a menu item.

        Raises:
            ValidationError: On empty name, negative price or unknown recipe
                or tax rate
        """
        name = _require_name(name, "Item name")
        if sell_price < 0:
            raise ValidationError("Sell price cannot be negative")
        if recipe_id is not None and self.recipes.get_recipe(recipe_id) is None:
            raise ValidationError(f"Recipe {recipe_id} not found")
        if tax_rate_id is not None and self.tax.get_tax_rate(tax_rate_id) is None:
            raise ValidationError(f"Tax rate {tax_rate_id} not found")

        pos_item = POSItem(
            id=_new_id("pos"),
            name=name,
            category=category,
            sell_price=sell_price,
            recipe_id=recipe_id,
            is_taxable=is_taxable,
            tax_rate_id=tax_rate_id,
        )
        self.state.pos_items.append(pos_item)
        return pos_item

    def add_recipe(
        self,
        name: str,
        category: str,
        base_sell_price: Decimal,
        ingredients: Sequence[tuple[str, str, Decimal]],
        prep_notes: Optional[str] = None,
    ) -> Recipe:
        """Add a recipe from (item name, unit, required quantity) triples.

        Raises:
            ValidationError: On empty name, no ingredients or a non-positive
                ingredient quantity
        """
        name = _require_name(name, "Recipe name")
        if not ingredients:
            raise ValidationError("A recipe needs at least one ingredient")
        if base_sell_price < 0:
            raise ValidationError("Sell price cannot be negative")

        parsed = []
        for item_name, item_unit, required_quantity in ingredients:
            if required_quantity <= 0:
                raise ValidationError(f"Ingredient '{item_name}' needs a positive quantity")
            parsed.append(
                RecipeIngredient(
                    id=_new_id("ing"),
                    item_name=_require_name(item_name, "Ingredient name"),
                    item_unit=_require_name(item_unit, "Ingredient unit"),
                    required_quantity=required_quantity,
                )
            )

        recipe = Recipe(
            id=_new_id("recipe"),
            name=name,
            category=category,
            base_sell_price=base_sell_price,
            ingredients=tuple(parsed),
            prep_notes=prep_notes,
            created_at=datetime.now(UTC),
        )
        self.state.recipes.append(recipe)
        return recipe

    # Tax

    def add_tax_rate(self, name: str, rate: Decimal, account_id: Optional[str] = None) -> TaxRate:
        """Add a tax rate; it credits Tax Payable unless another account is given.

        Raises:
            ValidationError: On empty name, rate outside [0, 1] or unknown
                account
        """
        name = _require_name(name, "Tax rate name")
        if rate < 0 or rate > 1:
            raise ValidationError("Tax rate must be between 0 and 1")
        if account_id is None:
            tax_payable = next(
                (a for a in self.state.accounts if a.code == codes.TAX_PAYABLE and a.is_active),
                None,
            )
            if tax_payable is None:
                raise ValidationError("No Tax Payable account; initialize the chart of accounts first")
            account_id = tax_payable.id
        elif not any(a.id == account_id and a.is_active for a in self.state.accounts):
            raise ValidationError(f"Account {account_id} not found")

        tax_rate = TaxRate(id=_new_id("tax"), name=name, rate=rate, account_id=account_id)
        self.state.tax_rates.append(tax_rate)
        return tax_rate

    def update_tax_settings(self, **patch: Any):
        """Patch the tax settings.

        Raises:
            ValidationError: On unknown fields or an unknown default rate
        """
        allowed = {"enabled", "default_tax_rate_id", "include_tax_in_price", "show_tax_on_receipts"}
        unknown = set(patch) - allowed
        if unknown:
            raise ValidationError(f"Unknown tax settings: {', '.join(sorted(unknown))}")
        rate_id = patch.get("default_tax_rate_id")
        if rate_id is not None and self.tax.get_tax_rate(rate_id) is None:
            raise ValidationError(f"Tax rate {rate_id} not found")
        self.state.tax_settings = replace(self.state.tax_settings, **patch)
        return self.state.tax_settings

    # Sales

    def record_sale(
        self,
        lines: Sequence[tuple[str, Decimal]],
        payment_method: PaymentMethod = PaymentMethod.CASH,
        sold_at: Optional[datetime] = None,
        discount_amount: Decimal = ZERO,
        split_payments: Optional[Sequence[tuple[PaymentMethod, Decimal]]] = None,
        customizations: Optional[dict[str, dict[str, CustomizationChoice]]] = None,
        notes: Optional[str] = None,
    ) -> SellTransaction:
        """Record a completed sale of POS items.

        Prices come from the POS items. When tax is enabled each taxable
        line records its rate and tax; with tax-exclusive pricing the tax is
        added to the total. The ingredient cost of recipe-linked lines is
        captured at the time of sale.

        Args:
            lines: (POS item ID, quantity) pairs
            payment_method: Primary payment method
            sold_at: Sale time (defaults to now)
            discount_amount: Discount taken off the subtotal
            split_payments: Optional (method, amount) pairs summing to the total
            customizations: Optional customization choices per POS item ID
            notes: Optional notes

        Raises:
            ValidationError: On empty lines, unknown POS items, non-positive
                quantities, an invalid discount or mismatched split payments
        """
        if not lines:
            raise ValidationError("A sale needs at least one item")
        if discount_amount < 0:
            raise ValidationError("Discount cannot be negative")
        sold_at = sold_at or datetime.now(UTC)
        settings = self.state.tax_settings
        customizations = customizations or {}

        items = []
        subtotal = ZERO
        tax_total = ZERO
        for pos_item_id, quantity in lines:
            pos_item = self.tax.get_pos_item(pos_item_id)
            if pos_item is None:
                raise ValidationError(f"POS item {pos_item_id} not found")
            if quantity <= 0:
                raise ValidationError(f"Quantity of '{pos_item.name}' must be positive")

            item = SellTransactionItem(
                id=_new_id("line"),
                pos_item_id=pos_item.id,
                name=pos_item.name,
                quantity=quantity,
                unit_price=pos_item.sell_price,
                total_price=pos_item.sell_price * quantity,
                customization_choices=dict(customizations.get(pos_item.id, {})),
                cost_of_goods=self._line_cost(pos_item, quantity, sold_at.date()),
            )
            if settings.enabled:
                rate, _ = self.tax.resolve_rate(item)
                taxable = pos_item.is_taxable
                item = replace(item, is_taxable=taxable, tax_rate=rate if taxable else ZERO)
                item = replace(item, tax_amount=self.tax.item_tax(item))
                tax_total += item.tax_amount
            items.append(item)
            subtotal += item.total_price

        if discount_amount > subtotal:
            raise ValidationError("Discount cannot exceed the subtotal")
        total = subtotal - discount_amount
        if settings.enabled and not settings.include_tax_in_price:
            total += tax_total

        splits = None
        if split_payments:
            splits = tuple(SplitPayment(method=m, amount=a) for m, a in split_payments)
            if any(s.amount < 0 for s in splits):
                raise ValidationError("Split payment amounts cannot be negative")
            split_total = sum((s.amount for s in splits), ZERO)
            if split_total != total:
                raise ValidationError(f"Split payments sum to {split_total}, total is {total}")

        txn = SellTransaction(
            id=_new_id("txn"),
            date=sold_at,
            receipt_number=self._next_receipt_number(),
            items=tuple(items),
            subtotal=subtotal,
            tax_amount=tax_total if settings.enabled else None,
            total_amount=total,
            payment_method=payment_method,
            split_payments=splits,
            discount_amount=discount_amount or None,
            notes=notes,
        )
        self.state.sell_transactions.append(txn)
        logger.info("Recorded sale %s for %s", txn.id, total)
        return txn

    def record_refund(self, original_transaction_id: str, refunded_at: Optional[datetime] = None) -> SellTransaction:
        """Refund a completed sale in full.

        Raises:
            ValidationError: If the transaction is unknown, a refund itself
                or already refunded
        """
        original = next(
            (t for t in self.state.sell_transactions if t.id == original_transaction_id),
            None,
        )
        if original is None:
            raise ValidationError(transaction_not_found(original_transaction_id))
        if original.is_refund or not original.is_completed:
            raise ValidationError(f"Transaction {original_transaction_id} cannot be refunded")
        if any(t.original_transaction_id == original.id for t in self.state.sell_transactions):
            raise ValidationError(f"Transaction {original_transaction_id} is already refunded")

        refund = replace(
            original,
            id=_new_id("refund"),
            date=refunded_at or datetime.now(UTC),
            receipt_number=self._next_receipt_number(),
            total_amount=-original.total_amount,
            is_refund=True,
            original_transaction_id=original.id,
            notes=f"Refund of {original.id}",
        )
        self.state.sell_transactions.append(refund)
        logger.info("Recorded refund %s of %s", refund.id, original.id)
        return refund

    def _line_cost(self, pos_item: POSItem, quantity: Decimal, on_date: date) -> Optional[Decimal]:
        if pos_item.recipe_id is None:
            return None
        recipe = self.recipes.get_recipe(pos_item.recipe_id)
        if recipe is None:
            return None
        return to_money(self.recipes.get_recipe_cost(recipe, on_date) * quantity)

    def _next_receipt_number(self) -> int:
        numbers = [t.receipt_number for t in self.state.sell_transactions if t.receipt_number is not None]
        return max(numbers, default=0) + 1
