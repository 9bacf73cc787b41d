"""Tests for recording purchases, sales and refunds."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from cafebooks.domain.entities import ItemStatus, PaymentMethod, PaymentStatus
from cafebooks.domain.errors import ConflictError, ValidationError
from cafebooks.domain.recipe import RecipeCostService
from tests.conftest import at


class TestPurchases:
    """Tests for EventService.record_purchase."""

    def test_purchase_lands_on_daily_list(self, state, events):
        """Purchases of one day share a shopping list."""
        first = events.record_purchase(
            date(2024, 3, 1), "Milk", "لیتر", Decimal("5"), "dairy", Decimal("500000")
        )
        events.record_purchase(
            date(2024, 3, 1), "Sugar", "کیلوگرم", Decimal("1"), "dry goods", Decimal("90000")
        )
        events.record_purchase(
            date(2024, 3, 2), "Cups", "بسته", Decimal("1"), "other", Decimal("70000")
        )

        assert [sl.id for sl in state.lists] == ["2024-03-01", "2024-03-02"]
        assert state.lists[0].created_at == datetime(2024, 3, 1, tzinfo=UTC)
        assert len(state.lists[0].items) == 2
        assert first.status == ItemStatus.BOUGHT
        assert first.purchased_amount == Decimal("5")
        assert first.payment_method == PaymentMethod.CASH

    def test_due_purchase_has_no_payment_method(self, events):
        item = events.record_purchase(
            date(2024, 3, 1), "Soap", "عدد", Decimal("1"), "cleaning", Decimal("40000"),
            payment_status=PaymentStatus.DUE,
        )

        assert item.payment_status == PaymentStatus.DUE
        assert item.payment_method is None

    @pytest.mark.parametrize(
        "name,unit,quantity,price",
        [
            ("", "عدد", "1", "100"),
            ("Soap", " ", "1", "100"),
            ("Soap", "عدد", "0", "100"),
            ("Soap", "عدد", "1", "-1"),
        ],
    )
    def test_invalid_purchase(self, state, events, name, unit, quantity, price):
        """Rejected purchases leave the state untouched."""
        with pytest.raises(ValidationError):
            events.record_purchase(
                date(2024, 3, 1), name, unit, Decimal(quantity), "cleaning", Decimal(price)
            )
        assert state.lists == []

    def test_unknown_vendor(self, events):
        with pytest.raises(ValidationError, match="Vendor"):
            events.record_purchase(
                date(2024, 3, 1), "Soap", "عدد", Decimal("1"), "cleaning", Decimal("1"),
                vendor_id="vendor-missing",
            )

    def test_duplicate_vendor(self, events):
        events.add_vendor("Pak Co")
        with pytest.raises(ConflictError):
            events.add_vendor("Pak Co")


class TestRecipesAndMenu:
    """Tests for recipes and menu items."""

    def test_recipe_needs_positive_quantities(self, events):
        with pytest.raises(ValidationError):
            events.add_recipe("Latte", "coffee", Decimal("1"), [("Milk", "لیتر", Decimal("0"))])

    def test_recipe_needs_ingredients(self, events):
        with pytest.raises(ValidationError):
            events.add_recipe("Latte", "coffee", Decimal("1"), [])

    def test_menu_item_with_unknown_recipe(self, events):
        with pytest.raises(ValidationError, match="Recipe"):
            events.add_pos_item("Latte", "coffee", Decimal("1"), recipe_id="recipe-missing")

    def test_recipe_cost_uses_latest_price(self, state, cafe, events):
        """A newer purchase changes the cost of later sales only."""
        events.record_purchase(
            date(2024, 2, 1), "Milk", "لیتر", Decimal("10"), "dairy", Decimal("1500000")
        )
        costing = RecipeCostService(state)
        recipe = costing.get_recipe(cafe.recipe_id)

        assert costing.get_recipe_cost(recipe, date(2024, 1, 31)) == Decimal("40000")
        assert costing.get_recipe_cost(recipe, date(2024, 2, 1)) == Decimal("50000")


class TestSales:
    """Tests for EventService.record_sale."""

    def test_sale_captures_cost_of_goods(self, state, cafe):
        txn = next(t for t in state.sell_transactions if t.id == cafe.sale_id)

        assert txn.receipt_number == 1
        assert txn.total_amount == Decimal("200000")
        assert txn.items[0].cost_of_goods == Decimal("80000")
        assert txn.tax_amount is None
        assert txn.discount_amount is None

    def test_receipt_numbers_increase(self, cafe, events):
        txn = events.record_sale([(cafe.cookie_id, Decimal("1"))], sold_at=at(2024, 1, 16))

        assert txn.receipt_number == 2
        assert txn.items[0].cost_of_goods is None

    def test_split_payments_must_match_total(self, state, cafe, events):
        with pytest.raises(ValidationError, match="Split payments"):
            events.record_sale(
                [(cafe.cookie_id, Decimal("1"))],
                split_payments=[(PaymentMethod.CASH, Decimal("10000"))],
            )
        assert len(state.sell_transactions) == 1

    def test_discount_cannot_exceed_subtotal(self, cafe, events):
        with pytest.raises(ValidationError, match="Discount"):
            events.record_sale([(cafe.cookie_id, Decimal("1"))], discount_amount=Decimal("30001"))

    def test_unknown_menu_item(self, events):
        with pytest.raises(ValidationError, match="POS item"):
            events.record_sale([("pos-missing", Decimal("1"))])

    def test_empty_sale(self, events):
        with pytest.raises(ValidationError):
            events.record_sale([])


class TestRefunds:
    """Tests for EventService.record_refund."""

    def test_refund_negates_total(self, state, cafe, events):
        refund = events.record_refund(cafe.sale_id, refunded_at=at(2024, 1, 16))

        assert refund.is_refund
        assert refund.total_amount == Decimal("-200000")
        assert refund.original_transaction_id == cafe.sale_id
        assert refund.id != cafe.sale_id
        assert refund.receipt_number == 2

    def test_refund_only_once(self, cafe, events):
        events.record_refund(cafe.sale_id)

        with pytest.raises(ValidationError, match="already refunded"):
            events.record_refund(cafe.sale_id)

    def test_refund_of_refund(self, cafe, events):
        refund = events.record_refund(cafe.sale_id)

        with pytest.raises(ValidationError):
            events.record_refund(refund.id)

    def test_refund_unknown_transaction(self, events):
        with pytest.raises(ValidationError, match="not found"):
            events.record_refund("txn-missing")
