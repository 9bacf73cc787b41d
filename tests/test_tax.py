"""Tests for tax resolution, tax reporting and tax commands."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from cafebooks.cli.main import cli
from cafebooks.domain.entities import SellTransactionItem
from cafebooks.domain.errors import ValidationError
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.tax import TaxService
from tests.conftest import at


@pytest.fixture
def vat(events):
    """A 9% default rate with tax enabled."""
    rate = events.add_tax_rate("VAT", Decimal("0.09"))
    events.update_tax_settings(enabled=True, default_tax_rate_id=rate.id)
    return rate


def _item(pos_item_id: str, total: str, **kwargs) -> SellTransactionItem:
    return SellTransactionItem(
        id="line",
        pos_item_id=pos_item_id,
        name="Item",
        quantity=Decimal("1"),
        unit_price=Decimal(total),
        total_price=Decimal(total),
        **kwargs,
    )


class TestTaxResolution:
    """Tests for per-item tax."""

    def test_default_rate_credits_tax_payable(self, state, vat):
        assert vat.account_id == "acc-2-201"
        assert TaxService(state).get_default_rate() == vat

    def test_exclusive_tax(self, state, events, vat):
        cake = events.add_pos_item("Cake", "bakery", Decimal("100000"), is_taxable=True)

        assert TaxService(state).item_tax(_item(cake.id, "100000")) == Decimal("9000.00")

    def test_inclusive_tax(self, state, events, vat):
        """With tax-inclusive prices the tax is carved out of the price."""
        events.update_tax_settings(include_tax_in_price=True)
        cake = events.add_pos_item("Cake", "bakery", Decimal("109000"), is_taxable=True)

        assert TaxService(state).item_tax(_item(cake.id, "109000")) == Decimal("9000.00")

    def test_non_taxable_item(self, state, events, vat):
        water = events.add_pos_item("Water", "drinks", Decimal("20000"))

        assert TaxService(state).item_tax(_item(water.id, "20000")) == Decimal("0")

    def test_item_rate_overrides_default(self, state, events, vat):
        """A menu item's own rate wins over the default rate."""
        reduced = events.add_tax_rate("Reduced", Decimal("0.05"))
        bread = events.add_pos_item("Bread", "bakery", Decimal("40000"), is_taxable=True, tax_rate_id=reduced.id)

        rate, account_id = TaxService(state).resolve_rate(_item(bread.id, "40000"))

        assert rate == Decimal("0.05")
        assert account_id == reduced.account_id

    def test_recorded_values_win(self, state, events, vat):
        """Tax recorded on the sold item is used as is."""
        cake = events.add_pos_item("Cake", "bakery", Decimal("100000"))
        item = _item(cake.id, "100000", is_taxable=True, tax_rate=Decimal("0.10"), tax_amount=Decimal("10000"))

        service = TaxService(state)
        assert service.is_item_taxable(item)
        assert service.item_tax(item) == Decimal("10000")

    def test_rate_out_of_range(self, events):
        with pytest.raises(ValidationError):
            events.add_tax_rate("Broken", Decimal("1.5"))


class TestTaxReport:
    """Tests for the tax report."""

    def test_tax_report(self, state, events, vat):
        cake = events.add_pos_item("Cake", "bakery", Decimal("100000"), is_taxable=True)
        water = events.add_pos_item("Water", "drinks", Decimal("20000"))
        sale = events.record_sale(
            [(cake.id, Decimal("2")), (water.id, Decimal("1"))], sold_at=at(2024, 3, 1)
        )
        events.record_sale([(cake.id, Decimal("1"))], sold_at=at(2024, 4, 1))

        report = TaxService(state).get_tax_report(date(2024, 3, 1), date(2024, 3, 31))

        assert sale.total_amount == Decimal("238000")
        assert report.taxable_revenue == Decimal("200000")
        assert report.non_taxable_revenue == Decimal("20000")
        assert report.total_revenue == Decimal("220000")
        assert report.tax_collected == Decimal("18000")
        assert report.tax_rate == Decimal("0.09")
        assert len(report.transactions) == 1
        assert report.transactions[0].tax_rate == Decimal("0.0900")

    def test_refunds_reduce_collected_tax(self, state, events, vat):
        cake = events.add_pos_item("Cake", "bakery", Decimal("100000"), is_taxable=True)
        sale = events.record_sale([(cake.id, Decimal("1"))], sold_at=at(2024, 3, 1))
        events.record_refund(sale.id, refunded_at=at(2024, 3, 2))

        report = TaxService(state).get_tax_report(date(2024, 3, 1), date(2024, 3, 31))

        assert report.taxable_revenue == Decimal("0")
        assert report.tax_collected == Decimal("0")
        assert [row.amount for row in report.transactions] == [Decimal("109000"), Decimal("-109000")]

    def test_disabled_tax_collects_nothing(self, state, events, vat):
        """With tax switched off the report matches the empty Tax Payable ledger."""
        events.update_tax_settings(enabled=False)
        cookie = events.add_pos_item("Cookie", "bakery", Decimal("30000"), is_taxable=True)
        events.record_sale([(cookie.id, Decimal("1"))], sold_at=at(2024, 3, 1))

        report = TaxService(state).get_tax_report(date(2024, 3, 1), date(2024, 3, 31))

        assert not report.enabled
        assert report.tax_collected == Decimal("0")
        assert report.taxable_revenue == Decimal("0")
        assert report.non_taxable_revenue == Decimal("30000")
        assert report.tax_collected == LedgerService(state).account_balances()["acc-2-201"]

    def test_recorded_transaction_tax_matches_ledger(self, state, events, vat):
        """A tax amount stored on the transaction wins over the item taxes."""
        cake = events.add_pos_item("Cake", "bakery", Decimal("100000"), is_taxable=True)
        sale = events.record_sale([(cake.id, Decimal("1"))], sold_at=at(2024, 3, 1))
        index = state.sell_transactions.index(sale)
        state.sell_transactions[index] = replace(sale, tax_amount=Decimal("5000"))

        report = TaxService(state).get_tax_report(date(2024, 3, 1), date(2024, 3, 31))

        assert report.tax_collected == Decimal("5000")
        assert report.tax_collected == LedgerService(state).account_balances()["acc-2-201"]


def test_tax_commands(cli_runner, db_path):
    """Tax rates and settings can be managed from the CLI."""
    assert cli_runner.invoke(cli, ["--db-path", db_path, "init"]).exit_code == 0

    result = cli_runner.invoke(cli, ["--db-path", db_path, "tax", "rate-add", "VAT", "9%", "--default"])
    assert result.exit_code == 0
    assert "Created tax rate 'VAT' at 9%" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "tax", "settings", "--enable"])
    assert result.exit_code == 0
    assert "yes" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "tax", "settings", "--enable", "--disable"])
    assert result.exit_code == 1


def test_tax_report_notes_disabled_tax(cli_runner, db_path):
    assert cli_runner.invoke(cli, ["--db-path", db_path, "init"]).exit_code == 0

    result = cli_runner.invoke(cli, ["--db-path", db_path, "report", "tax", "--this-month"])

    assert result.exit_code == 0
    assert "Tax is disabled" in result.output
