"""Domain layer for cafebooks application."""

from cafebooks.domain.account import AccountService
from cafebooks.domain.aging import AgingService
from cafebooks.domain.customer import CustomerService
from cafebooks.domain.events import EventService
from cafebooks.domain.journal import JournalService, PostingLog
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.recipe import RecipeCostService
from cafebooks.domain.statements import StatementService
from cafebooks.domain.tax import TaxService
from cafebooks.domain.validation import ValidationService

__all__ = [
    "AccountService",
    "AgingService",
    "CustomerService",
    "EventService",
    "JournalService",
    "PostingLog",
    "LedgerService",
    "RecipeCostService",
    "StatementService",
    "TaxService",
    "ValidationService",
]
