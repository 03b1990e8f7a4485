"""
Domain exceptions for ledger app.

Kept free of Django and DRF imports so the balance engine can raise
them without pulling in the framework. Views catch them and convert
them to HTTP responses.
"""


class LedgerServiceError(Exception):
    """Base exception for ledger errors."""
    pass


class InvalidInputError(LedgerServiceError):
    """Raised when amounts, users or ledger rows are malformed."""
    pass


class InvalidSplitError(InvalidInputError):
    """Raised when expense shares do not add up to the expense amount."""
    pass


class ExpenseNotFoundError(LedgerServiceError):
    """Raised when an expense does not exist."""
    pass


class SettlementNotFoundError(LedgerServiceError):
    """Raised when a settlement does not exist."""
    pass


class InsufficientPermissionsError(LedgerServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass
