"""Tests for blob mappers."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from cafebooks.database.mappers import (
    account_from_blob,
    choice_from_blob,
    choice_to_blob,
    datetime_from_blob,
    decimal_from_blob,
    enum_from_blob,
    sell_transaction_from_blob,
    sell_transaction_to_blob,
    shopping_item_from_blob,
    shopping_item_to_blob,
    state_from_blob,
    state_to_blob,
)
from cafebooks.domain.entities import (
    AccountType,
    AmountChoice,
    InvoiceStatus,
    InvoiceType,
    ItemStatus,
    OptionChoice,
    PaymentMethod,
    PaymentStatus,
    ValueChoice,
)


class TestScalars:
    """Tests for scalar conversions."""

    def test_enum_from_english_value(self):
        assert enum_from_blob(AccountType, "Asset") == AccountType.ASSET
        assert enum_from_blob(PaymentMethod, "Card") == PaymentMethod.CARD

    def test_enum_from_persian_label(self):
        assert enum_from_blob(AccountType, "دارایی") == AccountType.ASSET
        assert enum_from_blob(PaymentStatus, "پرداخت نشده") == PaymentStatus.DUE
        assert enum_from_blob(PaymentMethod, "پرسنل") == PaymentMethod.STAFF
        assert enum_from_blob(InvoiceStatus, "پرداخت جزئی") == InvoiceStatus.PARTIALLY_PAID

    def test_enum_from_upper_case_status(self):
        assert enum_from_blob(ItemStatus, "BOUGHT") == ItemStatus.BOUGHT

    def test_unknown_enum_value(self):
        with pytest.raises(ValueError, match="Unknown AccountType"):
            enum_from_blob(AccountType, "Gold")

    def test_decimal_from_blob(self):
        assert decimal_from_blob(0.1) == Decimal("0.1")
        assert decimal_from_blob(1500000) == Decimal("1500000")
        assert decimal_from_blob("12.50") == Decimal("12.50")

    @pytest.mark.parametrize("value", [True, None, "abc", [1]])
    def test_decimal_from_blob_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            decimal_from_blob(value)

    def test_naive_timestamp_is_utc(self):
        assert datetime_from_blob("2024-01-15T10:30:00") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        assert datetime_from_blob("2024-01-15T10:30:00.000Z") == datetime(
            2024, 1, 15, 10, 30, tzinfo=UTC
        )


class TestCustomizationChoices:
    """Tests for customization choice variants."""

    def test_choice_variants(self):
        assert choice_from_blob("extra hot") == ValueChoice("extra hot")
        assert choice_from_blob(2) == ValueChoice(Decimal("2"))
        assert choice_from_blob({"optionId": "oat"}) == OptionChoice("oat")
        assert choice_from_blob({"optionId": "syrup", "amount": 15}) == AmountChoice(
            "syrup", Decimal("15")
        )

    def test_choice_to_blob(self):
        assert choice_to_blob(ValueChoice("extra hot")) == "extra hot"
        assert choice_to_blob(OptionChoice("oat")) == {"optionId": "oat"}
        assert choice_to_blob(AmountChoice("syrup", Decimal("15"))) == {
            "optionId": "syrup",
            "amount": "15",
        }

    def test_unknown_choice(self):
        with pytest.raises(TypeError):
            choice_to_blob("not a choice")

    @pytest.mark.parametrize("value", [Decimal("2"), Decimal("2.5"), "2"])
    def test_value_choice_keeps_its_type(self, value):
        """A numeric value reads back as a number, text as text."""
        blob = choice_to_blob(ValueChoice(value))

        assert choice_from_blob(blob) == ValueChoice(value)
        assert type(choice_from_blob(blob).value) is type(value)

    def test_numeric_value_is_a_json_number(self):
        assert choice_to_blob(ValueChoice(Decimal("2"))) == 2
        assert choice_to_blob(ValueChoice(Decimal("2.5"))) == 2.5

    @pytest.mark.parametrize(
        "value",
        [[1, 2], None, True, {"amount": 3}, {"optionId": 5}],
    )
    def test_unknown_shapes_are_rejected(self, value):
        with pytest.raises(ValueError):
            choice_from_blob(value)


class TestEntityMappers:
    """Tests for entity conversions."""

    def test_account_from_web_app_blob(self):
        """Accounts written by the web app use numbers and Persian types."""
        account = account_from_blob(
            {
                "id": "acc-1",
                "code": "1-101",
                "name": "صندوق",
                "type": "دارایی",
                "balance": 1250000,
                "isActive": True,
                "createdAt": "2024-01-01T00:00:00.000Z",
            }
        )

        assert account.type == AccountType.ASSET
        assert account.balance == Decimal("1250000")
        assert account.opening_balance == Decimal("0")
        assert account.name_en is None

    def test_shopping_item_amount_alias(self):
        """Older blobs store the quantity as ``amount``."""
        item = shopping_item_from_blob(
            {"id": "i1", "name": "Milk", "unit": "لیتر", "amount": 3, "category": "dairy"}
        )

        assert item.quantity == Decimal("3")
        assert item.status == ItemStatus.PENDING
        assert item.payment_status == PaymentStatus.DUE
        assert item.paid_price is None

    def test_shopping_item_omits_missing_fields(self, state, cafe):
        blob = shopping_item_to_blob(state.lists[1].items[0])

        assert blob["paymentStatus"] == "Due"
        assert "paymentMethod" not in blob
        assert blob["paidPrice"] == "150000"

    def test_sell_transaction_with_split_payments(self):
        txn = sell_transaction_from_blob(
            {
                "id": "t1",
                "date": "2024-01-15T12:00:00Z",
                "receiptNumber": 7,
                "items": [
                    {
                        "id": "l1",
                        "posItemId": "p1",
                        "name": "Latte",
                        "quantity": 1,
                        "unitPrice": 100000,
                        "totalPrice": 100000,
                        "customizationChoices": {"milk": {"optionId": "oat"}},
                    }
                ],
                "totalAmount": 100000,
                "paymentMethod": "نقد",
                "splitPayments": [
                    {"method": "نقد", "amount": 60000},
                    {"method": "Card", "amount": 40000},
                ],
            }
        )

        assert txn.payment_method == PaymentMethod.CASH
        assert [s.method for s in txn.split_payments] == [PaymentMethod.CASH, PaymentMethod.CARD]
        assert txn.items[0].customization_choices == {"milk": OptionChoice("oat")}
        assert txn.status == "completed"
        assert not txn.is_refund

        blob = sell_transaction_to_blob(txn)
        assert blob["splitPayments"] == [
            {"method": "Cash", "amount": "60000"},
            {"method": "Card", "amount": "40000"},
        ]
        assert "discountAmount" not in blob


class TestStoreMapping:
    """Tests for whole-store conversion."""

    def test_empty_blob(self):
        state = state_from_blob({})

        assert state.accounts == []
        assert not state.tax_settings.enabled

    def test_state_survives_round_trip(self, state, cafe, events, customer_service):
        """Every record comes back unchanged."""
        events.record_refund(cafe.sale_id)
        customer = customer_service.add_customer("Office", payment_terms=30)
        customer_service.add_invoice(
            "INV-1", InvoiceType.SALE, date(2024, 1, 1), Decimal("1000"), customer_id=customer.id
        )
        state.custom_categories.append("cleaning")

        blob = state_to_blob(state)

        assert set(blob) == {
            "accounts",
            "lists",
            "vendors",
            "posItems",
            "sellTransactions",
            "recipes",
            "taxRates",
            "taxSettings",
            "customers",
            "invoices",
            "customCategories",
        }
        assert state_from_blob(blob) == state
