"""Mapper functions to convert between the store blob and domain entities.

The blob is the JSON document the cafe app persists: camelCase keys,
numbers for amounts and ISO strings for dates. Enum values are written with
their English values; the Persian labels of older blobs are read as well.
Amounts are written as strings so no precision is lost on the way back.
Numeric customization values stay JSON numbers so they read back as numbers.
"""

from datetime import date, datetime, UTC
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, TypeVar

from dateutil import parser as date_parser

from cafebooks.domain import entities as domain

E = TypeVar("E", bound=Enum)

# Persian labels used by blobs written by the web app
_LABELS: dict[type, dict[str, Enum]] = {
    domain.AccountType: {
        "دارایی": domain.AccountType.ASSET,
        "بدهی": domain.AccountType.LIABILITY,
        "حقوق صاحبان سهام": domain.AccountType.EQUITY,
        "درآمد": domain.AccountType.REVENUE,
        "هزینه": domain.AccountType.EXPENSE,
        "بهای تمام شده": domain.AccountType.COGS,
    },
    domain.ItemStatus: {
        "PENDING": domain.ItemStatus.PENDING,
        "BOUGHT": domain.ItemStatus.BOUGHT,
    },
    domain.PaymentStatus: {
        "پرداخت شده": domain.PaymentStatus.PAID,
        "پرداخت نشده": domain.PaymentStatus.DUE,
    },
    domain.PaymentMethod: {
        "نقد": domain.PaymentMethod.CASH,
        "کارت": domain.PaymentMethod.CARD,
        "انتقال بانکی": domain.PaymentMethod.TRANSFER,
        "پرسنل": domain.PaymentMethod.STAFF,
    },
    domain.InvoiceType: {
        "فروش": domain.InvoiceType.SALE,
        "خرید": domain.InvoiceType.PURCHASE,
        "هزینه": domain.InvoiceType.EXPENSE,
    },
    domain.InvoiceStatus: {
        "پیش‌نویس": domain.InvoiceStatus.DRAFT,
        "ارسال شده": domain.InvoiceStatus.SENT,
        "پرداخت شده": domain.InvoiceStatus.PAID,
        "پرداخت جزئی": domain.InvoiceStatus.PARTIALLY_PAID,
        "معوق": domain.InvoiceStatus.OVERDUE,
        "لغو شده": domain.InvoiceStatus.CANCELLED,
    },
}


# Scalars


def enum_from_blob(enum_type: type[E], value: Any) -> E:
    """Read an enum from its English value or its Persian label.

    Raises:
        ValueError: If the value matches neither
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        label = _LABELS.get(enum_type, {}).get(value)
        if label is None:
            raise ValueError(f"Unknown {enum_type.__name__} value: {value!r}") from None
        return label


def _optional_enum(enum_type: type[E], value: Any) -> Optional[E]:
    return None if value is None or value == "" else enum_from_blob(enum_type, value)


def decimal_from_blob(value: Any) -> Decimal:
    """Read an amount stored as a number or a string.

    Floats go through ``str`` so 0.1 stays 0.1.

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not an amount: {value!r}") from None


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None or value == "" else decimal_from_blob(value)


def _dump_decimal(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def datetime_from_blob(value: Any) -> datetime:
    """Read an ISO timestamp; naive values are taken as UTC."""
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def date_from_blob(value: Any) -> date:
    """Read an ISO date or the date part of an ISO timestamp."""
    return date_parser.isoparse(value).date()


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None, as the web app omits optional fields."""
    return {key: value for key, value in data.items() if value is not None}


# Customization choices


def choice_from_blob(value: Any) -> domain.CustomizationChoice:
    """Read one customization choice.

    A string or number is a ValueChoice, ``{"optionId"}`` an OptionChoice
    and ``{"optionId", "amount"}`` an AmountChoice.

    Raises:
        ValueError: For any other shape
    """
    if isinstance(value, dict):
        option_id = value.get("optionId")
        if not isinstance(option_id, str):
            raise ValueError(f"Customization choice without an optionId: {value!r}")
        if value.get("amount") is not None:
            return domain.AmountChoice(option_id=option_id, amount=decimal_from_blob(value["amount"]))
        return domain.OptionChoice(option_id=option_id)
    if isinstance(value, bool):
        raise ValueError(f"Unknown customization choice: {value!r}")
    if isinstance(value, (int, float)):
        return domain.ValueChoice(value=decimal_from_blob(value))
    if isinstance(value, str):
        return domain.ValueChoice(value=value)
    raise ValueError(f"Unknown customization choice: {value!r}")


def choice_to_blob(choice: domain.CustomizationChoice) -> Any:
    """Write one customization choice; numeric values stay JSON numbers."""
    if isinstance(choice, domain.AmountChoice):
        return {"optionId": choice.option_id, "amount": _dump_decimal(choice.amount)}
    if isinstance(choice, domain.OptionChoice):
        return {"optionId": choice.option_id}
    if isinstance(choice, domain.ValueChoice):
        if isinstance(choice.value, Decimal):
            if choice.value == choice.value.to_integral_value():
                return int(choice.value)
            return float(choice.value)
        return choice.value
    raise TypeError(f"Unknown customization choice: {choice!r}")


# Entities


def account_from_blob(data: dict[str, Any]) -> domain.Account:
    """Convert a blob account to a domain Account."""
    return domain.Account(
        id=data["id"],
        code=data["code"],
        name=data["name"],
        name_en=data.get("nameEn"),
        type=enum_from_blob(domain.AccountType, data["type"]),
        description=data.get("description"),
        opening_balance=decimal_from_blob(data.get("openingBalance", 0)),
        balance=decimal_from_blob(data.get("balance", 0)),
        is_active=data.get("isActive", True),
        created_at=datetime_from_blob(data["createdAt"]),
    )


def account_to_blob(account: domain.Account) -> dict[str, Any]:
    return _compact(
        {
            "id": account.id,
            "code": account.code,
            "name": account.name,
            "nameEn": account.name_en,
            "type": account.type.value,
            "description": account.description,
            "openingBalance": _dump_decimal(account.opening_balance),
            "balance": _dump_decimal(account.balance),
            "isActive": account.is_active,
            "createdAt": account.created_at.isoformat(),
        }
    )


def vendor_from_blob(data: dict[str, Any]) -> domain.Vendor:
    return domain.Vendor(
        id=data["id"],
        name=data["name"],
        contact_person=data.get("contactPerson"),
        phone=data.get("phone"),
        address=data.get("address"),
        notes=data.get("notes"),
    )


def vendor_to_blob(vendor: domain.Vendor) -> dict[str, Any]:
    return _compact(
        {
            "id": vendor.id,
            "name": vendor.name,
            "contactPerson": vendor.contact_person,
            "phone": vendor.phone,
            "address": vendor.address,
            "notes": vendor.notes,
        }
    )


def shopping_item_from_blob(data: dict[str, Any]) -> domain.ShoppingItem:
    """Convert a blob shopping item; ``amount`` is an old alias of ``quantity``."""
    quantity = data.get("quantity", data.get("amount", 0))
    return domain.ShoppingItem(
        id=data["id"],
        name=data.get("name", ""),
        unit=data.get("unit", ""),
        quantity=decimal_from_blob(quantity),
        category=data.get("category", ""),
        status=enum_from_blob(domain.ItemStatus, data.get("status", domain.ItemStatus.PENDING)),
        payment_status=enum_from_blob(
            domain.PaymentStatus, data.get("paymentStatus", domain.PaymentStatus.DUE)
        ),
        paid_price=_optional_decimal(data.get("paidPrice")),
        estimated_price=_optional_decimal(data.get("estimatedPrice")),
        payment_method=_optional_enum(domain.PaymentMethod, data.get("paymentMethod")),
        vendor_id=data.get("vendorId"),
        notes=data.get("notes"),
        purchased_amount=_optional_decimal(data.get("purchasedAmount")),
    )


def shopping_item_to_blob(item: domain.ShoppingItem) -> dict[str, Any]:
    return _compact(
        {
            "id": item.id,
            "name": item.name,
            "unit": item.unit,
            "quantity": _dump_decimal(item.quantity),
            "category": item.category,
            "status": item.status.value,
            "paymentStatus": item.payment_status.value,
            "paidPrice": _dump_decimal(item.paid_price),
            "estimatedPrice": _dump_decimal(item.estimated_price),
            "paymentMethod": item.payment_method.value if item.payment_method else None,
            "vendorId": item.vendor_id,
            "notes": item.notes,
            "purchasedAmount": _dump_decimal(item.purchased_amount),
        }
    )


def shopping_list_from_blob(data: dict[str, Any]) -> domain.ShoppingList:
    return domain.ShoppingList(
        id=data["id"],
        name=data.get("name", ""),
        created_at=datetime_from_blob(data["createdAt"]),
        items=tuple(shopping_item_from_blob(item) for item in data.get("items", [])),
    )


def shopping_list_to_blob(shopping_list: domain.ShoppingList) -> dict[str, Any]:
    return {
        "id": shopping_list.id,
        "name": shopping_list.name,
        "createdAt": shopping_list.created_at.isoformat(),
        "items": [shopping_item_to_blob(item) for item in shopping_list.items],
    }


def pos_item_from_blob(data: dict[str, Any]) -> domain.POSItem:
    return domain.POSItem(
        id=data["id"],
        name=data["name"],
        category=data.get("category", ""),
        sell_price=decimal_from_blob(data.get("sellPrice", 0)),
        recipe_id=data.get("recipeId"),
        is_taxable=data.get("isTaxable", False),
        tax_rate_id=data.get("taxRateId"),
    )


def pos_item_to_blob(pos_item: domain.POSItem) -> dict[str, Any]:
    return _compact(
        {
            "id": pos_item.id,
            "name": pos_item.name,
            "category": pos_item.category,
            "sellPrice": _dump_decimal(pos_item.sell_price),
            "recipeId": pos_item.recipe_id,
            "isTaxable": pos_item.is_taxable,
            "taxRateId": pos_item.tax_rate_id,
        }
    )


def sell_item_from_blob(data: dict[str, Any]) -> domain.SellTransactionItem:
    choices = data.get("customizationChoices") or {}
    return domain.SellTransactionItem(
        id=data["id"],
        pos_item_id=data.get("posItemId", ""),
        name=data.get("name", ""),
        quantity=decimal_from_blob(data.get("quantity", 0)),
        unit_price=decimal_from_blob(data.get("unitPrice", 0)),
        total_price=decimal_from_blob(data.get("totalPrice", 0)),
        customization_choices={key: choice_from_blob(value) for key, value in choices.items()},
        cost_of_goods=_optional_decimal(data.get("costOfGoods")),
        tax_amount=_optional_decimal(data.get("taxAmount")),
        tax_rate=_optional_decimal(data.get("taxRate")),
        is_taxable=data.get("isTaxable"),
    )


def sell_item_to_blob(item: domain.SellTransactionItem) -> dict[str, Any]:
    return _compact(
        {
            "id": item.id,
            "posItemId": item.pos_item_id,
            "name": item.name,
            "quantity": _dump_decimal(item.quantity),
            "unitPrice": _dump_decimal(item.unit_price),
            "totalPrice": _dump_decimal(item.total_price),
            "customizationChoices": {
                key: choice_to_blob(choice) for key, choice in item.customization_choices.items()
            }
            or None,
            "costOfGoods": _dump_decimal(item.cost_of_goods),
            "taxAmount": _dump_decimal(item.tax_amount),
            "taxRate": _dump_decimal(item.tax_rate),
            "isTaxable": item.is_taxable,
        }
    )


def sell_transaction_from_blob(data: dict[str, Any]) -> domain.SellTransaction:
    """Convert a blob sell transaction to a domain SellTransaction."""
    splits = data.get("splitPayments")
    return domain.SellTransaction(
        id=data["id"],
        date=datetime_from_blob(data["date"]),
        receipt_number=data.get("receiptNumber"),
        items=tuple(sell_item_from_blob(item) for item in data.get("items", [])),
        subtotal=_optional_decimal(data.get("subtotal")),
        tax_amount=_optional_decimal(data.get("taxAmount")),
        total_amount=decimal_from_blob(data.get("totalAmount", 0)),
        payment_method=enum_from_blob(
            domain.PaymentMethod, data.get("paymentMethod", domain.PaymentMethod.CASH)
        ),
        split_payments=(
            tuple(
                domain.SplitPayment(
                    method=enum_from_blob(domain.PaymentMethod, split["method"]),
                    amount=decimal_from_blob(split["amount"]),
                )
                for split in splits
            )
            if splits
            else None
        ),
        notes=data.get("notes"),
        discount_amount=_optional_decimal(data.get("discountAmount")),
        is_refund=data.get("isRefund", False),
        original_transaction_id=data.get("originalTransactionId"),
        status=data.get("status") or "completed",
    )


def sell_transaction_to_blob(txn: domain.SellTransaction) -> dict[str, Any]:
    return _compact(
        {
            "id": txn.id,
            "date": txn.date.isoformat(),
            "receiptNumber": txn.receipt_number,
            "items": [sell_item_to_blob(item) for item in txn.items],
            "subtotal": _dump_decimal(txn.subtotal),
            "taxAmount": _dump_decimal(txn.tax_amount),
            "totalAmount": _dump_decimal(txn.total_amount),
            "paymentMethod": txn.payment_method.value,
            "splitPayments": (
                [
                    {"method": split.method.value, "amount": _dump_decimal(split.amount)}
                    for split in txn.split_payments
                ]
                if txn.split_payments
                else None
            ),
            "notes": txn.notes,
            "discountAmount": _dump_decimal(txn.discount_amount),
            "isRefund": txn.is_refund,
            "originalTransactionId": txn.original_transaction_id,
            "status": txn.status,
        }
    )


def recipe_from_blob(data: dict[str, Any]) -> domain.Recipe:
    return domain.Recipe(
        id=data["id"],
        name=data["name"],
        category=data.get("category", ""),
        base_sell_price=decimal_from_blob(data.get("baseSellPrice", 0)),
        ingredients=tuple(
            domain.RecipeIngredient(
                id=ing["id"],
                item_name=ing["itemName"],
                item_unit=ing["itemUnit"],
                required_quantity=decimal_from_blob(ing.get("requiredQuantity", 0)),
                cost_per_unit=_optional_decimal(ing.get("costPerUnit")),
            )
            for ing in data.get("ingredients", [])
        ),
        prep_notes=data.get("prepNotes"),
        created_at=datetime_from_blob(data["createdAt"]),
    )


def recipe_to_blob(recipe: domain.Recipe) -> dict[str, Any]:
    return _compact(
        {
            "id": recipe.id,
            "name": recipe.name,
            "category": recipe.category,
            "baseSellPrice": _dump_decimal(recipe.base_sell_price),
            "ingredients": [
                _compact(
                    {
                        "id": ing.id,
                        "itemName": ing.item_name,
                        "itemUnit": ing.item_unit,
                        "requiredQuantity": _dump_decimal(ing.required_quantity),
                        "costPerUnit": _dump_decimal(ing.cost_per_unit),
                    }
                )
                for ing in recipe.ingredients
            ],
            "prepNotes": recipe.prep_notes,
            "createdAt": recipe.created_at.isoformat(),
        }
    )


def tax_rate_from_blob(data: dict[str, Any]) -> domain.TaxRate:
    return domain.TaxRate(
        id=data["id"],
        name=data["name"],
        name_en=data.get("nameEn"),
        rate=decimal_from_blob(data["rate"]),
        account_id=data["accountId"],
        is_active=data.get("isActive", True),
        description=data.get("description"),
    )


def tax_rate_to_blob(tax_rate: domain.TaxRate) -> dict[str, Any]:
    return _compact(
        {
            "id": tax_rate.id,
            "name": tax_rate.name,
            "nameEn": tax_rate.name_en,
            "rate": _dump_decimal(tax_rate.rate),
            "accountId": tax_rate.account_id,
            "isActive": tax_rate.is_active,
            "description": tax_rate.description,
        }
    )


def tax_settings_from_blob(data: Optional[dict[str, Any]]) -> domain.TaxSettings:
    data = data or {}
    return domain.TaxSettings(
        enabled=data.get("enabled", False),
        default_tax_rate_id=data.get("defaultTaxRateId"),
        include_tax_in_price=data.get("includeTaxInPrice", False),
        show_tax_on_receipts=data.get("showTaxOnReceipts", True),
    )


def tax_settings_to_blob(settings: domain.TaxSettings) -> dict[str, Any]:
    return _compact(
        {
            "enabled": settings.enabled,
            "defaultTaxRateId": settings.default_tax_rate_id,
            "includeTaxInPrice": settings.include_tax_in_price,
            "showTaxOnReceipts": settings.show_tax_on_receipts,
        }
    )


def customer_from_blob(data: dict[str, Any]) -> domain.Customer:
    return domain.Customer(
        id=data["id"],
        name=data["name"],
        email=data.get("email"),
        phone=data.get("phone"),
        address=data.get("address"),
        tax_id=data.get("taxId"),
        credit_limit=_optional_decimal(data.get("creditLimit")),
        payment_terms=data.get("paymentTerms"),
        balance=decimal_from_blob(data.get("balance", 0)),
        is_active=data.get("isActive", True),
        notes=data.get("notes"),
        created_at=datetime_from_blob(data["createdAt"]),
    )


def customer_to_blob(customer: domain.Customer) -> dict[str, Any]:
    return _compact(
        {
            "id": customer.id,
            "name": customer.name,
            "email": customer.email,
            "phone": customer.phone,
            "address": customer.address,
            "taxId": customer.tax_id,
            "creditLimit": _dump_decimal(customer.credit_limit),
            "paymentTerms": customer.payment_terms,
            "balance": _dump_decimal(customer.balance),
            "isActive": customer.is_active,
            "notes": customer.notes,
            "createdAt": customer.created_at.isoformat(),
        }
    )


def invoice_from_blob(data: dict[str, Any]) -> domain.Invoice:
    """Convert a blob invoice to a domain Invoice."""
    return domain.Invoice(
        id=data["id"],
        invoice_number=data["invoiceNumber"],
        type=enum_from_blob(domain.InvoiceType, data["type"]),
        customer_id=data.get("customerId"),
        vendor_id=data.get("vendorId"),
        issue_date=date_from_blob(data["issueDate"]),
        due_date=date_from_blob(data["dueDate"]),
        items=tuple(
            domain.InvoiceLineItem(
                id=line["id"],
                description=line.get("description", ""),
                quantity=decimal_from_blob(line.get("quantity", 0)),
                unit_price=decimal_from_blob(line.get("unitPrice", 0)),
                total=decimal_from_blob(line.get("total", 0)),
                tax_amount=_optional_decimal(line.get("taxAmount")),
            )
            for line in data.get("items", [])
        ),
        subtotal=decimal_from_blob(data.get("subtotal", 0)),
        tax_amount=decimal_from_blob(data.get("taxAmount", 0)),
        total_amount=decimal_from_blob(data.get("totalAmount", 0)),
        paid_amount=decimal_from_blob(data.get("paidAmount", 0)),
        status=enum_from_blob(domain.InvoiceStatus, data.get("status", domain.InvoiceStatus.DRAFT)),
        payment_method=_optional_enum(domain.PaymentMethod, data.get("paymentMethod")),
        notes=data.get("notes"),
        reference=data.get("reference"),
    )


def invoice_to_blob(invoice: domain.Invoice) -> dict[str, Any]:
    return _compact(
        {
            "id": invoice.id,
            "invoiceNumber": invoice.invoice_number,
            "type": invoice.type.value,
            "customerId": invoice.customer_id,
            "vendorId": invoice.vendor_id,
            "issueDate": invoice.issue_date.isoformat(),
            "dueDate": invoice.due_date.isoformat(),
            "items": [
                _compact(
                    {
                        "id": line.id,
                        "description": line.description,
                        "quantity": _dump_decimal(line.quantity),
                        "unitPrice": _dump_decimal(line.unit_price),
                        "total": _dump_decimal(line.total),
                        "taxAmount": _dump_decimal(line.tax_amount),
                    }
                )
                for line in invoice.items
            ],
            "subtotal": _dump_decimal(invoice.subtotal),
            "taxAmount": _dump_decimal(invoice.tax_amount),
            "totalAmount": _dump_decimal(invoice.total_amount),
            "paidAmount": _dump_decimal(invoice.paid_amount),
            "status": invoice.status.value,
            "paymentMethod": invoice.payment_method.value if invoice.payment_method else None,
            "notes": invoice.notes,
            "reference": invoice.reference,
        }
    )


# Whole store


def state_from_blob(blob: Optional[dict[str, Any]]) -> domain.StoreState:
    """Convert a stored blob to a StoreState; missing keys become empty."""
    blob = blob or {}
    return domain.StoreState(
        accounts=[account_from_blob(item) for item in blob.get("accounts", [])],
        lists=[shopping_list_from_blob(item) for item in blob.get("lists", [])],
        vendors=[vendor_from_blob(item) for item in blob.get("vendors", [])],
        pos_items=[pos_item_from_blob(item) for item in blob.get("posItems", [])],
        sell_transactions=[sell_transaction_from_blob(item) for item in blob.get("sellTransactions", [])],
        recipes=[recipe_from_blob(item) for item in blob.get("recipes", [])],
        tax_rates=[tax_rate_from_blob(item) for item in blob.get("taxRates", [])],
        tax_settings=tax_settings_from_blob(blob.get("taxSettings")),
        customers=[customer_from_blob(item) for item in blob.get("customers", [])],
        invoices=[invoice_from_blob(item) for item in blob.get("invoices", [])],
        custom_categories=list(blob.get("customCategories", [])),
    )


def state_to_blob(state: domain.StoreState) -> dict[str, Any]:
    """Convert a StoreState to the blob layout."""
    return {
        "accounts": [account_to_blob(item) for item in state.accounts],
        "lists": [shopping_list_to_blob(item) for item in state.lists],
        "vendors": [vendor_to_blob(item) for item in state.vendors],
        "posItems": [pos_item_to_blob(item) for item in state.pos_items],
        "sellTransactions": [sell_transaction_to_blob(item) for item in state.sell_transactions],
        "recipes": [recipe_to_blob(item) for item in state.recipes],
        "taxRates": [tax_rate_to_blob(item) for item in state.tax_rates],
        "taxSettings": tax_settings_to_blob(state.tax_settings),
        "customers": [customer_to_blob(item) for item in state.customers],
        "invoices": [invoice_to_blob(item) for item in state.invoices],
        "customCategories": list(state.custom_categories),
    }
