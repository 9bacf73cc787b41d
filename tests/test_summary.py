"""Tests for spending, sales and vendor summaries."""

from datetime import date
from decimal import Decimal

import pytest

from cafebooks.cli.main import cli
from cafebooks.domain.errors import NotFoundError, ValidationError
from cafebooks.domain.summary import SummaryService
from tests.conftest import at

JANUARY = (date(2024, 1, 1), date(2024, 1, 31))


class TestSpendingSummary:
    """Tests for the spending summary."""

    def test_by_category(self, state, cafe):
        summary = SummaryService(state).build_spending_summary(*JANUARY)

        assert [(g.name, g.amount) for g in summary.groups] == [
            ("dry goods", Decimal("2000000")),
            ("dairy", Decimal("1000000")),
            ("cleaning", Decimal("150000")),
        ]
        assert summary.total_spend == Decimal("3150000")
        assert summary.distinct_items == 3
        assert summary.avg_daily_spend == Decimal("101612.90")
        assert summary.top_category.name == "dry goods"

    def test_by_vendor(self, state, cafe):
        """Items bought without a vendor are grouped but never the top vendor."""
        summary = SummaryService(state).build_spending_summary(*JANUARY, group_by="vendor")

        assert [(g.name, g.amount, g.count) for g in summary.groups] == [
            ("No vendor", Decimal("3000000"), 2),
            ("Pak Co", Decimal("150000"), 1),
        ]
        assert summary.top_vendor.name == "Pak Co"

    def test_daily_spend_covers_every_day(self, state, cafe):
        summary = SummaryService(state).build_spending_summary(*JANUARY)

        daily = dict(summary.daily_spend)
        assert len(daily) == 31
        assert daily[date(2024, 1, 10)] == Decimal("3000000")
        assert daily[date(2024, 1, 1)] == Decimal("0")

    def test_split_by_month(self, state, cafe, events):
        events.record_purchase(date(2024, 2, 3), "Milk", "لیتر", Decimal("5"), "dairy", Decimal("500000"))

        summary = SummaryService(state).build_spending_summary(
            date(2024, 1, 1), date(2024, 2, 29), by_period="month"
        )

        assert summary.period_keys == ("2024-01", "2024-02")
        assert [(g.name, g.amount) for g in summary.period_groups["2024-02"]] == [
            ("dairy", Decimal("500000"))
        ]

    def test_empty_period(self, state, cafe):
        summary = SummaryService(state).build_spending_summary(date(2023, 1, 1), date(2023, 1, 31))

        assert summary.groups == ()
        assert summary.total_spend == Decimal("0")
        assert summary.top_category is None
        assert summary.top_vendor is None

    @pytest.mark.parametrize(
        "kwargs",
        [{"group_by": "item"}, {"by_period": "week"}],
    )
    def test_rejects_unknown_grouping(self, state, kwargs):
        with pytest.raises(ValidationError):
            SummaryService(state).build_spending_summary(*JANUARY, **kwargs)


class TestSalesSummary:
    """Tests for the sales summary."""

    def test_top_selling_items(self, state, cafe, events):
        events.record_sale([(cafe.cookie_id, Decimal("3"))], sold_at=at(2024, 1, 20))
        events.record_sale([(cafe.cookie_id, Decimal("1"))], sold_at=at(2024, 1, 21))

        summary = SummaryService(state).build_sales_summary(*JANUARY)

        assert [(g.name, g.quantity, g.amount) for g in summary.items] == [
            ("Cookie", Decimal("4"), Decimal("120000")),
            ("Latte", Decimal("2"), Decimal("200000")),
        ]
        assert summary.top_item.name == "Cookie"
        assert summary.top_category.name == "coffee"
        assert summary.total_revenue == Decimal("320000")
        assert summary.transaction_count == 3
        assert summary.avg_transaction_value == Decimal("106666.67")

    def test_refunds_count_against_sales(self, state, cafe, events):
        events.record_sale([(cafe.cookie_id, Decimal("3"))], sold_at=at(2024, 1, 20))
        events.record_refund(cafe.sale_id, refunded_at=at(2024, 1, 16))

        summary = SummaryService(state).build_sales_summary(*JANUARY)

        latte = next(g for g in summary.items if g.name == "Latte")
        assert latte.quantity == Decimal("0")
        assert latte.amount == Decimal("0")
        assert summary.total_revenue == Decimal("90000")
        assert summary.transaction_count == 2
        assert summary.refund_count == 1
        assert summary.avg_transaction_value == Decimal("45000.00")

    def test_no_sales(self, state):
        summary = SummaryService(state).build_sales_summary(*JANUARY)

        assert summary.items == ()
        assert summary.top_item is None
        assert summary.avg_transaction_value == Decimal("0")


class TestVendorHistory:
    """Tests for vendor purchase history."""

    def test_history_by_name(self, state, cafe, events):
        vendor = SummaryService(state).find_vendor("pak co")
        events.record_purchase(
            date(2024, 2, 1), "Sponges", "عدد", Decimal("10"), "cleaning", Decimal("50000"), vendor_id=vendor.id
        )

        history = SummaryService(state).get_vendor_history("Pak Co")

        assert [p.name for p in history.purchases] == ["Soap", "Sponges"]
        assert history.purchase_count == 2
        assert history.total_spent == Decimal("200000")
        assert history.outstanding == Decimal("150000")
        assert history.last_purchase == date(2024, 2, 1)

    def test_history_in_period(self, state, cafe):
        history = SummaryService(state).get_vendor_history("Pak Co", date(2024, 2, 1), date(2024, 2, 29))

        assert history.purchases == ()
        assert history.last_purchase is None

    def test_unknown_vendor(self, state):
        with pytest.raises(NotFoundError):
            SummaryService(state).get_vendor_history("Nobody")


def test_summary_commands(cli_runner, db_path):
    """Spending, sales and vendor summaries are shown from the CLI."""

    def invoke(*args):
        result = cli_runner.invoke(cli, ["--db-path", db_path, *args])
        assert result.exit_code == 0, result.output
        return result

    invoke("init")
    invoke("vendor", "add", "Pak Co")
    invoke(
        "purchase", "add", "Soap", "150000", "--category", "cleaning",
        "--vendor", "Pak Co", "--due", "--date", "2024-01-12",
    )
    invoke("purchase", "add", "Milk", "1,000,000", "--category", "dairy", "--date", "2024-01-10")
    invoke("menu", "add", "Cookie", "30000", "--category", "bakery")
    invoke("sale", "add", "Cookie:3", "--date", "2024-01-20")

    january = ["--start-date", "2024-01-01", "--end-date", "2024-01-31"]
    result = invoke("report", "summary", "--by", "vendor", *january)
    assert "Pak Co (1)" in result.output
    assert "Total spend" in result.output
    assert "1,150,000" in result.output
    assert "Top vendor: Pak Co" in result.output

    result = invoke("report", "sales", *january)
    assert "Top item: Cookie (3 sold)" in result.output
    assert "90,000" in result.output

    result = invoke("vendor", "history", "Pak Co")
    assert "Soap" in result.output
    assert "Outstanding: 150,000" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "vendor", "history", "Nobody"])
    assert result.exit_code == 1
    assert "Vendor Nobody not found" in result.output
