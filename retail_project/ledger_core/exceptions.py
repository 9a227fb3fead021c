class LedgerError(Exception):
    """Base for domain errors surfaced to callers with a stable kind."""

    kind = "ledger_error"
    http_status = 400


class NotFoundError(LedgerError):
    """A referenced entity (invoice, item, cart, payment...) is absent."""

    kind = "not_found"
    http_status = 404


class TaxRateNotFound(NotFoundError):
    kind = "tax_rate_not_found"


class InsufficientStock(LedgerError):
    """Raised when a SALE movement would take on-hand stock below zero."""

    kind = "insufficient_stock"
    http_status = 409

    def __init__(self, message, *, available=None, required=None):
        super().__init__(message)
        self.available = available
        self.required = required


class AccountNotFound(LedgerError):
    """Chart of accounts is missing a well-known account (onboarding gap)."""

    kind = "account_not_found"
    http_status = 500


class ConflictError(LedgerError):
    """Unique constraint violated where no idempotent meaning exists."""

    kind = "conflict"
    http_status = 409


class UnbalancedJournalError(Exception):
    """Raised when a JournalEntry fails double-entry balance check."""
    pass


class AlreadyPostedDifferentPayload(Exception):
    """Raised when a JournalEntry already posted with different payload """
    pass
