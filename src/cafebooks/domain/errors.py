"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DerivationGapError(DomainError):
    """A source event could not be mapped to a balanced posting set.

    Raised inside the journal derivation only; it is turned into a
    DerivationGap record and never reaches report callers.
    """

    def __init__(self, event_id: str, event_type: str, reason: str):
        super().__init__(f"{event_type} {event_id}: {reason}")
        self.event_id = event_id
        self.event_type = event_type
        self.reason = reason


class ExternalServiceError(Exception):
    """Blob store or AI service failure."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def duplicate_account_code(code: str) -> str:
    """Return message for duplicate account code."""
    return f"Account with code '{code}' already exists"


def immutable_account_field(field: str, account_id: str) -> str:
    """Return message when a patch touches code or type."""
    return f"Cannot change {field} of account {account_id}: postings are keyed by it"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing sell transaction."""
    return f"Transaction {transaction_id} not found"


def vendor_not_found(vendor_id: str) -> str:
    """Return message for missing vendor."""
    return f"Vendor {vendor_id} not found"


def customer_not_found(customer_id: str) -> str:
    """Return message for missing customer."""
    return f"Customer {customer_id} not found"
