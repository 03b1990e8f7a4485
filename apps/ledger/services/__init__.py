"""
Ledger app services layer.

Expense and settlement writes run in a transaction; balance reads feed
the stored rows through the balance engine in ``apps.ledger.balances``.
"""

from apps.ledger.exceptions import (
    LedgerServiceError,
    InvalidInputError,
    InvalidSplitError,
    ExpenseNotFoundError,
    SettlementNotFoundError,
    InsufficientPermissionsError,
)

from .expense_management import (
    create_expense,
    update_expense,
    delete_expense,
    get_expense,
    list_expenses,
    list_user_expenses,
)

from .settlement_management import (
    record_settlement,
    get_settlement,
    list_settlements,
    list_user_settlements,
)

from .balance_service import (
    compute_apartment_balances,
    get_apartment_balances,
    get_user_balance,
)


__all__ = [
    # Exceptions
    'LedgerServiceError',
    'InvalidInputError',
    'InvalidSplitError',
    'ExpenseNotFoundError',
    'SettlementNotFoundError',
    'InsufficientPermissionsError',

    # Expenses
    'create_expense',
    'update_expense',
    'delete_expense',
    'get_expense',
    'list_expenses',
    'list_user_expenses',

    # Settlements
    'record_settlement',
    'get_settlement',
    'list_settlements',
    'list_user_settlements',

    # Balances
    'compute_apartment_balances',
    'get_apartment_balances',
    'get_user_balance',
]
