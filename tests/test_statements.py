"""Tests for financial statements."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from cafebooks.domain.entities import Account, AccountType
from cafebooks.domain.statements import StatementService, code_group, is_cash, is_current, margin
from tests.conftest import at


def _account(code: str, account_type: AccountType) -> Account:
    return Account(
        id=f"acc-{code}",
        code=code,
        name=code,
        type=account_type,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


class TestHelpers:
    """Tests for account classification helpers."""

    def test_code_group(self):
        assert code_group("1-201") == 2
        assert code_group("6-401") == 4
        assert code_group("CASH") is None

    def test_is_current(self):
        assert is_current(_account("1-301", AccountType.ASSET))
        assert not is_current(_account("1-401", AccountType.ASSET))
        assert is_current(_account("2-201", AccountType.LIABILITY))
        assert not is_current(_account("2-301", AccountType.LIABILITY))

    def test_is_cash(self):
        assert is_cash(_account("1-102", AccountType.ASSET))
        assert not is_cash(_account("1-201", AccountType.ASSET))
        assert not is_cash(_account("2-101", AccountType.LIABILITY))

    def test_margin(self):
        assert margin(Decimal("30000"), Decimal("50000")) == Decimal("60.00")
        assert margin(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert margin(Decimal("100"), Decimal("0")) == Decimal("0")


class TestBalanceSheet:
    """Tests for the balance sheet."""

    def test_balance_sheet_balances(self, state, cafe, statement_service):
        """Assets equal liabilities plus equity including current earnings."""
        sheet = statement_service.get_balance_sheet(date(2024, 1, 31))

        assert sheet.balanced
        assert sheet.assets.total == Decimal("120000")
        assert sheet.liabilities.total == Decimal("150000")
        assert sheet.equity.retained_earnings == Decimal("-30000")
        assert sheet.equity.total == Decimal("-30000")
        assert sheet.skipped_events == 0

    def test_opening_balance_is_non_current_asset(self, state, account_service):
        """Equipment opened with a balance is offset by opening equity."""
        account_service.add_account(
            "1-402",
            "Espresso machine",
            AccountType.ASSET,
            opening_balance=Decimal("5000000"),
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        sheet = StatementService(state).get_balance_sheet(date(2024, 1, 31))

        assert sheet.balanced
        non_current = {line.account.code: line.amount for line in sheet.assets.non_current}
        assert non_current["1-402"] == Decimal("5000000")
        equity = {line.account.code: line.amount for line in sheet.equity.lines}
        assert equity["3-301"] == Decimal("5000000")

    def test_empty_store_balances(self, state, statement_service):
        """A store without activity balances at zero."""
        sheet = statement_service.get_balance_sheet(date(2024, 1, 31))

        assert sheet.balanced
        assert sheet.assets.total == Decimal("0")


class TestIncomeStatement:
    """Tests for the income statement."""

    def test_income_statement(self, state, cafe, statement_service):
        """Revenue, cost of goods and expenses for the month."""
        income = statement_service.get_income_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert income.revenue.total == Decimal("200000")
        assert income.cogs.total == Decimal("80000")
        assert income.gross_profit == Decimal("120000")
        assert income.gross_margin == Decimal("60.00")
        assert income.expenses.total == Decimal("150000")
        assert income.net_income == Decimal("-30000")
        assert income.net_margin == Decimal("-15.00")

    def test_gross_margin_of_recipe_sale(self, state, events):
        """A 50,000 sale costing 20,000 leaves 30,000 gross profit at 60%."""
        events.record_purchase(
            date(2024, 2, 1), "Tea leaves", "کیلوگرم", Decimal("1"), "beverages", Decimal("2000000")
        )
        recipe = events.add_recipe(
            "Tea", "tea", Decimal("50000"), [("Tea leaves", "کیلوگرم", Decimal("0.01"))]
        )
        tea = events.add_pos_item("Tea", "tea", Decimal("50000"), recipe_id=recipe.id)
        events.record_sale([(tea.id, Decimal("1"))], sold_at=at(2024, 2, 2))

        income = StatementService(state).get_income_statement(date(2024, 2, 1), date(2024, 2, 29))

        assert income.revenue.total == Decimal("50000")
        assert income.cogs.total == Decimal("20000")
        assert income.gross_profit == Decimal("30000")
        assert income.gross_margin == Decimal("60.00")

    def test_refund_cancels_sale(self, state, cafe, events):
        """A sale and its refund in the same period net to zero."""
        events.record_refund(cafe.sale_id, refunded_at=at(2024, 1, 16))

        income = StatementService(state).get_income_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert income.revenue.total == Decimal("0")
        assert income.cogs.total == Decimal("0")
        assert income.gross_margin == Decimal("0")
        assert income.net_income == Decimal("-150000")

    def test_discount_reduces_revenue(self, state, cafe, events):
        """Sales discounts are a contra revenue line."""
        events.record_sale(
            [(cafe.cookie_id, Decimal("1"))], sold_at=at(2024, 1, 20), discount_amount=Decimal("5000")
        )

        income = StatementService(state).get_income_statement(date(2024, 1, 1), date(2024, 1, 31))

        lines = {line.account.code: line.amount for line in income.revenue.lines}
        assert lines["4-101"] == Decimal("230000")
        assert lines["4-901"] == Decimal("-5000")
        assert income.revenue.total == Decimal("225000")

    def test_statements_are_repeatable(self, state, cafe):
        """Computing a statement twice from the same state gives the same result."""
        first = StatementService(state).get_income_statement(date(2024, 1, 1), date(2024, 1, 31))
        second = StatementService(state).get_income_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert first == second


class TestCashFlow:
    """Tests for the cash-flow statement."""

    def test_cash_flow_reconciles(self, state, cafe, statement_service):
        """Operating cash flow explains the change in cash."""
        flow = statement_service.get_cash_flow_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert flow.net_income == Decimal("-30000")
        assert flow.operating.total == Decimal("-2800000")
        assert [item.amount for item in flow.operating.items] == [
            Decimal("-2920000"),
            Decimal("150000"),
        ]
        assert flow.investing.total == Decimal("0")
        assert flow.financing.total == Decimal("0")
        assert flow.beginning_cash == Decimal("0")
        assert flow.ending_cash == Decimal("-2800000")
        assert flow.reconciled

    def test_cash_flow_later_period_starts_from_prior_cash(self, state, cafe, events):
        """Beginning cash is the balance on the day before the period."""
        events.record_sale([(cafe.cookie_id, Decimal("2"))], sold_at=at(2024, 2, 5))

        flow = StatementService(state).get_cash_flow_statement(date(2024, 2, 1), date(2024, 2, 29))

        assert flow.beginning_cash == Decimal("-2800000")
        assert flow.net_cash_flow == Decimal("60000")
        assert flow.ending_cash == Decimal("-2740000")
        assert flow.reconciled

    def test_investing_and_financing(self, state, account_service):
        """Non-current assets are investing, equity is financing."""
        account_service.add_account(
            "1-402",
            "Espresso machine",
            AccountType.ASSET,
            opening_balance=Decimal("5000000"),
            created_at=datetime(2024, 2, 1, tzinfo=UTC),
        )

        flow = StatementService(state).get_cash_flow_statement(date(2024, 2, 1), date(2024, 2, 29))

        assert flow.investing.total == Decimal("-5000000")
        assert flow.financing.total == Decimal("5000000")
        assert flow.net_cash_flow == Decimal("0")
        assert flow.reconciled
