"""
Settlement service.

A settlement records money the caller handed to another member. Once
stored it is never edited or removed; a mistake is corrected with a
settlement in the opposite direction.
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.apartments.services import ensure_member, get_apartment
from apps.ledger.balances import parse_amount
from apps.ledger.exceptions import InvalidInputError, SettlementNotFoundError
from apps.ledger.models import Settlement

logger = logging.getLogger(__name__)


@transaction.atomic
def record_settlement(
    *,
    apartment_id: UUID,
    user: User,
    to_user_id: UUID,
    amount: Decimal,
    note: str = ''
) -> Settlement:
    """
    Record that user paid to_user.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If caller is not a member
        InvalidInputError: If the receiver is the caller or not a member,
            or the amount is not positive
    """
    apartment = get_apartment(apartment_id=apartment_id, user=user)

    if to_user_id == user.id:
        raise InvalidInputError("Cannot record a settlement with yourself")

    if not apartment.has_member_id(to_user_id):
        raise InvalidInputError("Receiver must be a member of the apartment")

    amount = parse_amount(amount, label='Settlement amount')

    settlement = Settlement.objects.create(
        apartment=apartment,
        from_user=user,
        to_user_id=to_user_id,
        amount=amount,
        note=(note or '').strip()
    )

    logger.info(
        "Settlement %s of %s recorded in apartment %s from %s to %s",
        settlement.id, amount, apartment.id, user.id, to_user_id
    )
    return settlement


def _settlement_queryset() -> QuerySet[Settlement]:
    return Settlement.objects.select_related('apartment', 'from_user', 'to_user')


def get_settlement(*, settlement_id: UUID, user: User) -> Settlement:
    """
    Raises:
        SettlementNotFoundError: If settlement doesn't exist
        NotMemberError: If user is not a member of the apartment
    """
    try:
        settlement = _settlement_queryset().get(id=settlement_id)
    except Settlement.DoesNotExist:
        raise SettlementNotFoundError(f"Settlement with ID {settlement_id} not found")

    ensure_member(apartment=settlement.apartment, user=user)
    return settlement


def list_settlements(*, apartment_id: UUID, user: User) -> QuerySet[Settlement]:
    """Settlements of one apartment, newest first."""
    apartment = get_apartment(apartment_id=apartment_id, user=user)
    return _settlement_queryset().filter(apartment=apartment)


def list_user_settlements(*, user: User) -> QuerySet[Settlement]:
    """Settlements across every apartment the user belongs to."""
    return _settlement_queryset().filter(apartment__memberships__user=user)
