"""
Membership management service.

Handles joining by code, leaving and member listings.
"""

import logging
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.apartments.models import Apartment, ApartmentMembership

from .apartment_management import get_apartment
from .exceptions import (
    ApartmentNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    OwnerCannotLeaveError,
    OutstandingBalanceError,
)
from .join_codes import is_valid_join_code, normalize_join_code

logger = logging.getLogger(__name__)


@transaction.atomic
def join_apartment(*, code: str, user: User) -> ApartmentMembership:
    """
    Join an apartment using its join code.

    The code is trimmed and upper-cased before lookup, so ``' ab12c3 '``
    matches ``AB12C3``.

    Args:
        code: Join code as typed by the user
        user: User joining the apartment

    Returns:
        Created ApartmentMembership instance

    Raises:
        ApartmentNotFoundError: If no apartment has this code
        AlreadyMemberError: If user is already a member
    """
    normalized = normalize_join_code(code)
    if not is_valid_join_code(normalized):
        raise ApartmentNotFoundError("No apartment found with this join code")

    # Lock the apartment to serialize concurrent joins
    try:
        apartment = (
            Apartment.objects
            .select_for_update()
            .get(code=normalized)
        )
    except Apartment.DoesNotExist:
        raise ApartmentNotFoundError("No apartment found with this join code")

    if apartment.has_member(user):
        raise AlreadyMemberError(f"User is already a member of {apartment.name}")

    try:
        membership = ApartmentMembership.objects.create(
            apartment=apartment,
            user=user
        )
    except IntegrityError:
        raise AlreadyMemberError(f"User is already a member of {apartment.name}")

    logger.info("User %s joined apartment %s", user.id, apartment.id)
    return membership


@transaction.atomic
def leave_apartment(*, apartment_id: UUID, user: User) -> None:
    """
    Leave an apartment.

    The creator cannot leave; they have to delete the apartment instead.
    Members who still owe or are owed money cannot leave until their
    balance is settled to zero.

    Expenses the member recorded stay in the ledger but become read-only,
    as only their creator may change them and the creator must be a
    member. Expenses they paid for or share in keep their amounts.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If user is not a member
        OwnerCannotLeaveError: If user is the creator
        OutstandingBalanceError: If user's balance is not zero
    """
    from apps.ledger.services.balance_service import compute_apartment_balances

    try:
        apartment = Apartment.objects.get(id=apartment_id)
    except Apartment.DoesNotExist:
        raise ApartmentNotFoundError(f"Apartment with ID {apartment_id} not found")

    if apartment.is_creator(user):
        raise OwnerCannotLeaveError(
            "Apartment creator cannot leave. Delete the apartment instead."
        )

    try:
        membership = (
            ApartmentMembership.objects
            .select_for_update()
            .get(apartment=apartment, user=user)
        )
    except ApartmentMembership.DoesNotExist:
        raise NotMemberError(f"User is not a member of {apartment.name}")

    balance = compute_apartment_balances(apartment=apartment)[user.id]
    if balance:
        raise OutstandingBalanceError(
            f"Cannot leave with an outstanding balance of {balance}"
        )

    membership.delete()
    logger.info("User %s left apartment %s", user.id, apartment.id)


def get_apartment_members(*, apartment_id: UUID, user: User) -> QuerySet[ApartmentMembership]:
    """
    Members of an apartment the user belongs to, in join order.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If user is not a member
    """
    apartment = get_apartment(apartment_id=apartment_id, user=user)

    return (
        ApartmentMembership.objects
        .filter(apartment=apartment)
        .select_related('user')
        .order_by('joined_at')
    )
