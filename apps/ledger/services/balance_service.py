"""
Balance service.

Loads an apartment's ledger rows and hands them to the balance engine.
"""

from decimal import Decimal
from typing import Dict
from uuid import UUID

from apps.accounts.models import User
from apps.apartments.models import Apartment
from apps.apartments.services import get_apartment
from apps.ledger.balances import (
    SettlementEntry,
    build_expense_entries,
    compute_balances,
    suggest_settlements,
)
from apps.ledger.models import Expense, ExpenseSplit, Settlement


def compute_apartment_balances(*, apartment: Apartment) -> Dict[UUID, Decimal]:
    """
    Net balance of everyone in the apartment's ledger.

    Current members come first in join order, followed by former
    members who still appear on expenses, splits or settlements.
    No access check; callers are expected to have done it.
    """
    expense_rows = list(
        Expense.objects
        .filter(apartment=apartment)
        .order_by('date', 'created_at')
        .values_list('id', 'paid_by_id', 'amount')
    )
    split_rows = list(
        ExpenseSplit.objects
        .filter(expense__apartment=apartment)
        .values_list('expense_id', 'user_id', 'amount')
    )
    settlements = [
        SettlementEntry(from_user=from_user, to_user=to_user, amount=amount)
        for from_user, to_user, amount in (
            Settlement.objects
            .filter(apartment=apartment)
            .order_by('created_at')
            .values_list('from_user_id', 'to_user_id', 'amount')
        )
    ]
    expenses = build_expense_entries(expense_rows, split_rows)

    participants = apartment.member_ids()
    known = set(participants)
    referenced = (
        [payer for _, payer, _ in expense_rows]
        + [user_id for _, user_id, _ in split_rows]
        + [s.from_user for s in settlements]
        + [s.to_user for s in settlements]
    )
    for user_id in referenced:
        if user_id not in known:
            known.add(user_id)
            participants.append(user_id)

    return compute_balances(expenses, settlements, participants)


def get_apartment_balances(*, apartment_id: UUID, user: User) -> dict:
    """
    Balances and suggested payments for an apartment the user belongs to.

    Returns:
        Dict with ``apartment``, ``balances`` (rows of user, balance and
        is_member) and ``suggested_settlements`` (rows of from_user,
        to_user and amount)

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If user is not a member
    """
    apartment = get_apartment(apartment_id=apartment_id, user=user)
    balances = compute_apartment_balances(apartment=apartment)

    users = User.objects.in_bulk(list(balances.keys()))
    member_ids = set(apartment.member_ids())

    return {
        'apartment': apartment,
        'balances': [
            {
                'user': users[user_id],
                'balance': balance,
                'is_member': user_id in member_ids,
            }
            for user_id, balance in balances.items()
        ],
        'suggested_settlements': [
            {
                'from_user': users[from_user],
                'to_user': users[to_user],
                'amount': amount,
            }
            for from_user, to_user, amount in suggest_settlements(balances)
        ],
    }


def get_user_balance(*, apartment_id: UUID, user: User) -> Decimal:
    """
    The user's own net balance in an apartment.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If user is not a member
    """
    apartment = get_apartment(apartment_id=apartment_id, user=user)
    return compute_apartment_balances(apartment=apartment)[user.id]
