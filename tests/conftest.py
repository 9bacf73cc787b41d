"""Shared pytest fixtures for cafebooks tests."""

import tempfile
import os
from dataclasses import dataclass
from datetime import date, datetime, UTC
from decimal import Decimal
import pytest

from cafebooks.database.factories import create_sqlite_store
from cafebooks.domain.account import AccountService
from cafebooks.domain.customer import CustomerService
from cafebooks.domain.entities import PaymentMethod, PaymentStatus, StoreState
from cafebooks.domain.events import EventService
from cafebooks.domain.journal import JournalService
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.statements import StatementService


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Return a UTC timestamp for a sale."""
    return datetime(year, month, day, hour, tzinfo=UTC)


@pytest.fixture
def temp_store():
    """Create a temporary SQLite blob store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def empty_state():
    """Store state without any accounts."""
    return StoreState()


@pytest.fixture
def state():
    """Store state seeded with the default chart of accounts."""
    state = StoreState()
    AccountService(state).initialize_default_accounts()
    return state


@pytest.fixture
def account_service(state):
    return AccountService(state)


@pytest.fixture
def events(state):
    """EventService over the seeded state."""
    return EventService(state)


@pytest.fixture
def journal_service(state):
    return JournalService(state)


@pytest.fixture
def ledger_service(state):
    return LedgerService(state)


@pytest.fixture
def statement_service(state):
    return StatementService(state)


@pytest.fixture
def customer_service(state):
    return CustomerService(state)


@dataclass
class Cafe:
    """Ids of the records created by the ``cafe`` fixture."""

    milk_id: str
    beans_id: str
    soap_id: str
    recipe_id: str
    latte_id: str
    cookie_id: str
    sale_id: str


@pytest.fixture
def cafe(state, events):
    """A small month of cafe activity.

    - 2024-01-10: 10 liters of milk for 1,000,000 (cash) and 1 kg of coffee
      beans for 2,000,000 (card), both stocked as inventory.
    - 2024-01-12: soap for 150,000 still due, expensed.
    - A latte recipe using 0.2 l milk (20,000) and 0.01 kg beans (20,000).
    - 2024-01-15: sale of two lattes at 100,000 each, paid cash.
    """
    milk = events.record_purchase(
        date(2024, 1, 10), "Milk", "لیتر", Decimal("10"), "dairy", Decimal("1000000"),
    )
    beans = events.record_purchase(
        date(2024, 1, 10), "Coffee beans", "کیلوگرم", Decimal("1"), "dry goods", Decimal("2000000"),
        payment_method=PaymentMethod.CARD,
    )
    vendor = events.add_vendor("Pak Co")
    soap = events.record_purchase(
        date(2024, 1, 12), "Soap", "عدد", Decimal("3"), "cleaning", Decimal("150000"),
        payment_status=PaymentStatus.DUE, vendor_id=vendor.id,
    )
    recipe = events.add_recipe(
        "Latte", "coffee", Decimal("100000"),
        [("Milk", "لیتر", Decimal("0.2")), ("Coffee beans", "کیلوگرم", Decimal("0.01"))],
    )
    latte = events.add_pos_item("Latte", "coffee", Decimal("100000"), recipe_id=recipe.id)
    cookie = events.add_pos_item("Cookie", "bakery", Decimal("30000"))
    sale = events.record_sale([(latte.id, Decimal("2"))], sold_at=at(2024, 1, 15))
    return Cafe(
        milk_id=milk.id,
        beans_id=beans.id,
        soap_id=soap.id,
        recipe_id=recipe.id,
        latte_id=latte.id,
        cookie_id=cookie.id,
        sale_id=sale.id,
    )


@pytest.fixture
def db_path():
    """Path of a fresh database file for CLI tests."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
