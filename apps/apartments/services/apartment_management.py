"""
Apartment management service.

Handles apartment CRUD operations with proper transaction safety.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models import Count, OuterRef, QuerySet, Subquery, Sum

from apps.accounts.models import User
from apps.apartments.models import Apartment, ApartmentMembership

from .exceptions import (
    ApartmentNotFoundError,
    InsufficientPermissionsError,
    JoinCodeGenerationError,
    NotMemberError,
)
from .join_codes import unused_join_codes

logger = logging.getLogger(__name__)


def _code_taken(code: str) -> bool:
    return Apartment.objects.filter(code=code).exists()


def create_apartment(
    *,
    name: str,
    user: User,
    max_attempts: Optional[int] = None
) -> Apartment:
    """
    Create a new apartment and add the creator as its first member.

    Each candidate is a code that is not yet in the store; apartment and
    membership are then inserted in one transaction. A concurrent insert
    that grabs the same code in between surfaces as IntegrityError and the
    next candidate is tried. Every draw, whether skipped or raced, counts
    against one budget of max_attempts.

    Args:
        name: Apartment name
        user: User creating the apartment
        max_attempts: Join code attempt limit (default APARTMENT_CODE_MAX_ATTEMPTS)

    Returns:
        Created Apartment instance

    Raises:
        JoinCodeGenerationError: If no unused join code could be found
        IntegrityError: If the insert fails for a reason other than the code
    """
    if max_attempts is None:
        max_attempts = settings.APARTMENT_CODE_MAX_ATTEMPTS

    for code in unused_join_codes(code_exists=_code_taken, max_attempts=max_attempts):
        try:
            with transaction.atomic():
                apartment = Apartment.objects.create(
                    name=name,
                    code=code,
                    created_by=user
                )
                ApartmentMembership.objects.create(
                    apartment=apartment,
                    user=user
                )
        except IntegrityError:
            if not _code_taken(code):
                raise
            # Code was taken between the check and the insert
            logger.warning("Join code %s taken concurrently, retrying", code)
            continue

        logger.info("Apartment %s created by %s", apartment.id, user.id)
        return apartment

    raise JoinCodeGenerationError(
        f"Failed to generate unique join code after {max_attempts} attempts"
    )


def ensure_member(*, apartment: Apartment, user: User) -> None:
    """
    Raises:
        NotMemberError: If user is not a member of the apartment
    """
    if not apartment.has_member(user):
        raise NotMemberError(f"User is not a member of {apartment.name}")


def get_apartment(*, apartment_id: UUID, user: User) -> Apartment:
    """
    Get an apartment the user belongs to.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        NotMemberError: If user is not a member
    """
    try:
        apartment = (
            Apartment.objects
            .select_related('created_by')
            .get(id=apartment_id)
        )
    except Apartment.DoesNotExist:
        raise ApartmentNotFoundError(f"Apartment with ID {apartment_id} not found")

    ensure_member(apartment=apartment, user=user)
    return apartment


def list_apartments(*, user: User) -> QuerySet[Apartment]:
    """Apartments the user is a member of, newest first."""
    return (
        Apartment.objects
        .filter(id__in=ApartmentMembership.objects.filter(user=user).values('apartment_id'))
        .select_related('created_by')
        .annotate(member_count=Count('memberships', distinct=True))
        .order_by('-created_at')
    )


@transaction.atomic
def update_apartment(
    *,
    apartment_id: UUID,
    user: User,
    name: Optional[str] = None
) -> Apartment:
    """
    Rename an apartment (creator only).

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    try:
        apartment = (
            Apartment.objects
            .select_for_update()
            .get(id=apartment_id)
        )
    except Apartment.DoesNotExist:
        raise ApartmentNotFoundError(f"Apartment with ID {apartment_id} not found")

    if not apartment.is_creator(user):
        raise InsufficientPermissionsError("Only the apartment creator can update the apartment")

    update_fields = ['updated_at']

    if name is not None:
        apartment.name = name
        update_fields.append('name')

    apartment.save(update_fields=update_fields)

    return apartment


@transaction.atomic
def delete_apartment(*, apartment_id: UUID, user: User) -> None:
    """
    Delete an apartment (creator only).

    Cascading deletes remove memberships, expenses with their splits,
    and settlements.

    Raises:
        ApartmentNotFoundError: If apartment doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    try:
        apartment = (
            Apartment.objects
            .select_for_update()
            .get(id=apartment_id)
        )
    except Apartment.DoesNotExist:
        raise ApartmentNotFoundError(f"Apartment with ID {apartment_id} not found")

    if not apartment.is_creator(user):
        raise InsufficientPermissionsError("Only the apartment creator can delete the apartment")

    apartment.delete()
    logger.info("Apartment %s deleted by %s", apartment_id, user.id)


def get_apartment_overview(*, user: User) -> List[dict]:
    """
    Dashboard rows for every apartment the user belongs to.

    Each row holds the apartment, its member count, the sum of all
    expense amounts and the user's own net balance.
    """
    from apps.ledger.models import Expense
    from apps.ledger.services.balance_service import compute_apartment_balances

    expense_totals = (
        Expense.objects
        .filter(apartment=OuterRef('pk'))
        .order_by()
        .values('apartment')
        .annotate(total=Sum('amount'))
        .values('total')
    )
    apartments = list_apartments(user=user).annotate(
        total_expenses=Subquery(expense_totals)
    )

    rows = []
    for apartment in apartments:
        balances = compute_apartment_balances(apartment=apartment)
        rows.append({
            'apartment': apartment,
            'member_count': apartment.member_count,
            'total_expenses': apartment.total_expenses or Decimal('0.00'),
            'balance': balances[user.id],
        })
    return rows
