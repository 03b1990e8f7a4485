"""
Expense management service.

Expenses are created by any member and can only be changed or removed
by the member who created them. Shares are stored per member and must
add up to the expense amount.
"""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from django.db import transaction
from django.db.models import Prefetch, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.apartments.models import Apartment
from apps.apartments.services import ensure_member, get_apartment
from apps.ledger.balances import parse_amount, split_evenly, validate_split_total
from apps.ledger.exceptions import (
    ExpenseNotFoundError,
    InsufficientPermissionsError,
    InvalidInputError,
    InvalidSplitError,
)
from apps.ledger.models import Expense, ExpenseSplit

logger = logging.getLogger(__name__)


def _clean_title(title: str) -> str:
    title = (title or '').strip()
    if not title:
        raise InvalidInputError("Expense title is required")
    return title


def _resolve_splits(
    *,
    apartment: Apartment,
    amount: Decimal,
    splits: Optional[Iterable[Tuple[UUID, Decimal]]] = None,
    split_between: Optional[Sequence[UUID]] = None
) -> List[Tuple[UUID, Decimal]]:
    """
    Turn explicit shares or a participant list into (user_id, amount) pairs.

    Without either, the amount is split evenly among all current members
    in join order.

    Raises:
        InvalidSplitError: If shares don't add up or a participant repeats
        InvalidInputError: If a participant is not a member
    """
    member_ids = apartment.member_ids()

    if splits is not None:
        pairs = [(user_id, share) for user_id, share in splits]
        validate_split_total(amount, pairs)
        pairs = [(user_id, parse_amount(share, allow_zero=True)) for user_id, share in pairs]
    else:
        participants = list(split_between) if split_between else member_ids
        if len(set(participants)) != len(participants):
            raise InvalidSplitError("Participants must be unique")
        pairs = split_evenly(amount, participants)

    outsiders = [user_id for user_id, _ in pairs if user_id not in member_ids]
    if outsiders:
        raise InvalidInputError(
            f"Split participants must be apartment members: {', '.join(str(u) for u in outsiders)}"
        )

    return pairs


def _store_splits(expense: Expense, pairs: List[Tuple[UUID, Decimal]]) -> None:
    ExpenseSplit.objects.bulk_create([
        ExpenseSplit(expense=expense, user_id=user_id, amount=share)
        for user_id, share in pairs
    ])


@transaction.atomic
def create_expense(
    *,
    apartment_id: UUID,
    user: User,
    title: str,
    amount: Decimal,
    date: Optional[date_type] = None,
    paid_by: Optional[UUID] = None,
    splits: Optional[Iterable[Tuple[UUID, Decimal]]] = None,
    split_between: Optional[Sequence[UUID]] = None
) -> Expense:
    """
    Record an expense and its shares.

    Args:
        apartment_id: Apartment the expense belongs to
        user: Member recording the expense
        title: Short description
        amount: Positive amount with at most two decimals
        date: Expense date (default today)
        paid_by: Paying member's id (default the caller)
        splits: Explicit (user_id, amount) shares
        split_between: Member ids to split the amount evenly among

    Returns:
        Created Expense instance

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If caller is not a member
        InvalidInputError: On bad amount, title, payer or participants
        InvalidSplitError: If explicit shares don't add up
    """
    apartment = get_apartment(apartment_id=apartment_id, user=user)

    title = _clean_title(title)
    amount = parse_amount(amount, label='Expense amount')

    payer_id = paid_by or user.id
    if not apartment.has_member_id(payer_id):
        raise InvalidInputError("Payer must be a member of the apartment")

    pairs = _resolve_splits(
        apartment=apartment,
        amount=amount,
        splits=splits,
        split_between=split_between
    )

    expense = Expense.objects.create(
        apartment=apartment,
        title=title,
        amount=amount,
        paid_by_id=payer_id,
        created_by=user,
        date=date or timezone.localdate()
    )
    _store_splits(expense, pairs)

    logger.info(
        "Expense %s (%s) created in apartment %s by %s",
        expense.id, amount, apartment.id, user.id
    )
    return expense


def _expense_queryset() -> QuerySet[Expense]:
    return (
        Expense.objects
        .select_related('apartment', 'paid_by', 'created_by')
        .prefetch_related(
            Prefetch('splits', queryset=ExpenseSplit.objects.select_related('user'))
        )
    )


def _get_own_expense_for_update(*, expense_id: UUID, user: User) -> Expense:
    try:
        expense = (
            Expense.objects
            .select_for_update()
            .select_related('apartment')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    ensure_member(apartment=expense.apartment, user=user)

    if expense.created_by_id != user.id:
        raise InsufficientPermissionsError("Only the member who recorded the expense can change it")

    return expense


def _ensure_parties_are_members(expense: Expense, member_ids: Sequence[UUID]) -> None:
    """
    Amount, payer and shares are frozen once the payer or a participant
    has left, since a former member can no longer settle a changed balance.
    """
    parties = set(expense.splits.values_list('user_id', flat=True))
    parties.add(expense.paid_by_id)
    if parties.difference(member_ids):
        raise InvalidInputError(
            "Expense involves a former member; its amount, payer and shares can no longer change"
        )


def get_expense(*, expense_id: UUID, user: User) -> Expense:
    """
    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotMemberError: If user is not a member of the expense's apartment
    """
    try:
        expense = _expense_queryset().get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    ensure_member(apartment=expense.apartment, user=user)
    return expense


def list_expenses(*, apartment_id: UUID, user: User) -> QuerySet[Expense]:
    """Expenses of one apartment, newest first."""
    apartment = get_apartment(apartment_id=apartment_id, user=user)
    return _expense_queryset().filter(apartment=apartment)


def list_user_expenses(*, user: User) -> QuerySet[Expense]:
    """Expenses across every apartment the user belongs to."""
    return _expense_queryset().filter(apartment__memberships__user=user)


@transaction.atomic
def update_expense(
    *,
    expense_id: UUID,
    user: User,
    title: Optional[str] = None,
    amount: Optional[Decimal] = None,
    date: Optional[date_type] = None,
    paid_by: Optional[UUID] = None,
    splits: Optional[Iterable[Tuple[UUID, Decimal]]] = None,
    split_between: Optional[Sequence[UUID]] = None
) -> Expense:
    """
    Update an expense (creator only).

    Shares are rebuilt when the amount or the shares change. A new
    amount without new shares is split evenly among the existing
    participants. Only the title and date may change once the payer or a
    participant has left the apartment.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotMemberError: If user is not a member of the apartment
        InsufficientPermissionsError: If user did not create the expense
        InvalidInputError: On bad amount, title, payer or participants,
            or a money change on an expense involving a former member
        InvalidSplitError: If shares don't add up
    """
    expense = _get_own_expense_for_update(expense_id=expense_id, user=user)
    apartment = expense.apartment

    resplit = amount is not None or splits is not None or split_between is not None
    if resplit or paid_by is not None:
        _ensure_parties_are_members(expense, apartment.member_ids())

    update_fields = ['updated_at']

    if title is not None:
        expense.title = _clean_title(title)
        update_fields.append('title')

    if date is not None:
        expense.date = date
        update_fields.append('date')

    if paid_by is not None:
        if not apartment.has_member_id(paid_by):
            raise InvalidInputError("Payer must be a member of the apartment")
        expense.paid_by_id = paid_by
        update_fields.append('paid_by')

    if amount is not None:
        expense.amount = parse_amount(amount, label='Expense amount')
        update_fields.append('amount')

    if resplit:
        if splits is None and split_between is None:
            # Current participants, in join order
            current = set(expense.splits.values_list('user_id', flat=True))
            split_between = [m for m in apartment.member_ids() if m in current]
            if not split_between:
                raise InvalidSplitError("Expense has no participants to split among")
        pairs = _resolve_splits(
            apartment=apartment,
            amount=expense.amount,
            splits=splits,
            split_between=split_between
        )
        expense.splits.all().delete()
        _store_splits(expense, pairs)

    expense.save(update_fields=update_fields)

    logger.info("Expense %s updated by %s", expense.id, user.id)
    return expense


@transaction.atomic
def delete_expense(*, expense_id: UUID, user: User) -> None:
    """
    Delete an expense (creator only). Shares cascade.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotMemberError: If user is not a member of the apartment
        InsufficientPermissionsError: If user did not create the expense
        InvalidInputError: If the payer or a participant has left
    """
    expense = _get_own_expense_for_update(expense_id=expense_id, user=user)
    _ensure_parties_are_members(expense, expense.apartment.member_ids())
    expense.delete()
    logger.info("Expense %s deleted by %s", expense_id, user.id)
