"""
Service layer unit tests for apartments app.

Tests cover:
- Join code collision handling
- Joining by code
- Leaving rules
- Creator-only operations
"""

import re
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import IntegrityError

from apps.apartments.models import Apartment, ApartmentMembership
from apps.apartments.services import (
    create_apartment,
    get_apartment,
    list_apartments,
    update_apartment,
    delete_apartment,
    join_apartment,
    leave_apartment,
    get_apartment_members,
    get_apartment_overview,
)
from apps.apartments.services.exceptions import (
    ApartmentNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    OwnerCannotLeaveError,
    OutstandingBalanceError,
    InsufficientPermissionsError,
    JoinCodeGenerationError,
)
from apps.ledger.models import Expense
from apps.ledger.services import create_expense, record_settlement


# =============================================================================
# Apartment Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestCreateApartment:
    """Tests for create_apartment."""

    def test_create_apartment_success(self, creator):
        """Creating an apartment also makes the creator a member."""
        apartment = create_apartment(name='Flat 4', user=creator)

        assert apartment.name == 'Flat 4'
        assert apartment.created_by == creator
        assert re.match(r'^[A-Z]{2}[0-9]{2}[A-Z][0-9]$', apartment.code)
        assert ApartmentMembership.objects.filter(apartment=apartment, user=creator).exists()

    def test_codes_are_unique(self, creator):
        codes = {create_apartment(name=f'Flat {i}', user=creator).code for i in range(10)}
        assert len(codes) == 10

    def test_retries_until_unused_code(self, creator, apartment):
        """Two taken candidates are skipped, the third distinct one is used."""
        Apartment.objects.create(name='Other', code='BB22B2', created_by=creator)

        with patch(
            'apps.apartments.services.join_codes.random_join_code',
            side_effect=['AB12C3', 'BB22B2', 'CC33C3'],
        ) as mock_code:
            new_apartment = create_apartment(name='Third', user=creator)

        assert new_apartment.code == 'CC33C3'
        assert mock_code.call_count == 3

    def test_gives_up_when_every_code_is_taken(self, creator, apartment):
        with patch(
            'apps.apartments.services.join_codes.random_join_code',
            return_value='AB12C3',
        ):
            with pytest.raises(JoinCodeGenerationError):
                create_apartment(name='Unlucky', user=creator, max_attempts=3)

        assert Apartment.objects.count() == 1

    def test_retries_after_concurrent_insert(self, creator, apartment):
        """A code that passes the check but collides on insert is retried."""
        # Free on the first check, taken when rechecked after the insert fails
        with patch(
            'apps.apartments.services.apartment_management._code_taken',
            side_effect=[False, True, False],
        ), patch(
            'apps.apartments.services.join_codes.random_join_code',
            side_effect=['AB12C3', 'DD44D4'],
        ):
            new_apartment = create_apartment(name='Raced', user=creator)

        assert new_apartment.code == 'DD44D4'
        assert ApartmentMembership.objects.filter(apartment=new_apartment).count() == 1

    def test_raced_inserts_share_the_attempt_budget(self, creator, apartment):
        with patch(
            'apps.apartments.services.apartment_management._code_taken',
            side_effect=[False, True] * 10,
        ), patch(
            'apps.apartments.services.join_codes.random_join_code',
            return_value='AB12C3',
        ) as mock_code:
            with pytest.raises(JoinCodeGenerationError):
                create_apartment(name='Raced', user=creator, max_attempts=3)

        assert mock_code.call_count == 3
        assert Apartment.objects.count() == 1

    def test_unrelated_integrity_error_is_raised(self, creator):
        with patch.object(
            ApartmentMembership.objects,
            'create',
            side_effect=IntegrityError('membership insert failed'),
        ), patch(
            'apps.apartments.services.join_codes.random_join_code',
            return_value='EE55E5',
        ) as mock_code:
            with pytest.raises(IntegrityError):
                create_apartment(name='Broken', user=creator)

        assert mock_code.call_count == 1
        assert not Apartment.objects.exists()


@pytest.mark.django_db
class TestGetApartment:

    def test_member_can_get(self, shared_apartment, member_user):
        assert get_apartment(apartment_id=shared_apartment.id, user=member_user) == shared_apartment

    def test_non_member_rejected(self, apartment, outsider):
        with pytest.raises(NotMemberError):
            get_apartment(apartment_id=apartment.id, user=outsider)

    def test_missing_apartment(self, creator):
        with pytest.raises(ApartmentNotFoundError):
            get_apartment(apartment_id=uuid4(), user=creator)

    def test_list_only_own_apartments(self, apartment, creator, outsider):
        other = create_apartment(name='Elsewhere', user=outsider)

        apartments = list(list_apartments(user=creator))

        assert apartments == [apartment]
        assert other not in apartments

    def test_list_annotates_full_member_count(self, shared_apartment, creator):
        apartment = list_apartments(user=creator).get()
        assert apartment.member_count == 2


@pytest.mark.django_db
class TestUpdateDeleteApartment:

    def test_creator_can_rename(self, apartment, creator):
        updated = update_apartment(apartment_id=apartment.id, user=creator, name='New Name')

        assert updated.name == 'New Name'
        apartment.refresh_from_db()
        assert apartment.name == 'New Name'

    def test_member_cannot_rename(self, shared_apartment, member_user):
        with pytest.raises(InsufficientPermissionsError):
            update_apartment(apartment_id=shared_apartment.id, user=member_user, name='Mine now')

    def test_creator_can_delete(self, shared_apartment, creator):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Rent',
            amount=Decimal('100.00'),
        )

        delete_apartment(apartment_id=shared_apartment.id, user=creator)

        assert not Apartment.objects.filter(id=shared_apartment.id).exists()
        assert not ApartmentMembership.objects.exists()
        assert not Expense.objects.exists()

    def test_member_cannot_delete(self, shared_apartment, member_user):
        with pytest.raises(InsufficientPermissionsError):
            delete_apartment(apartment_id=shared_apartment.id, user=member_user)

    def test_delete_missing(self, creator):
        with pytest.raises(ApartmentNotFoundError):
            delete_apartment(apartment_id=uuid4(), user=creator)


# =============================================================================
# Membership Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestJoinApartment:

    def test_join_with_code(self, apartment, member_user):
        membership = join_apartment(code='AB12C3', user=member_user)

        assert membership.apartment == apartment
        assert apartment.has_member(member_user)

    def test_join_code_is_normalized(self, apartment, member_user):
        membership = join_apartment(code='  ab12c3 ', user=member_user)
        assert membership.apartment == apartment

    def test_unknown_code(self, apartment, member_user):
        with pytest.raises(ApartmentNotFoundError):
            join_apartment(code='ZZ99Z9', user=member_user)

    def test_join_twice(self, apartment, member_user):
        join_apartment(code='AB12C3', user=member_user)

        with pytest.raises(AlreadyMemberError):
            join_apartment(code='AB12C3', user=member_user)

        assert ApartmentMembership.objects.filter(user=member_user).count() == 1

    def test_creator_cannot_join_again(self, apartment, creator):
        with pytest.raises(AlreadyMemberError):
            join_apartment(code=apartment.code, user=creator)


@pytest.mark.django_db
class TestLeaveApartment:

    def test_member_can_leave(self, shared_apartment, member_user):
        leave_apartment(apartment_id=shared_apartment.id, user=member_user)
        assert not shared_apartment.has_member(member_user)

    def test_creator_cannot_leave(self, apartment, creator):
        with pytest.raises(OwnerCannotLeaveError):
            leave_apartment(apartment_id=apartment.id, user=creator)

    def test_non_member_cannot_leave(self, apartment, outsider):
        with pytest.raises(NotMemberError):
            leave_apartment(apartment_id=apartment.id, user=outsider)

    def test_outstanding_balance_blocks_leaving(self, shared_apartment, creator, member_user):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Groceries',
            amount=Decimal('30.00'),
        )

        with pytest.raises(OutstandingBalanceError):
            leave_apartment(apartment_id=shared_apartment.id, user=member_user)

        assert shared_apartment.has_member(member_user)

    def test_can_leave_after_settling(self, shared_apartment, creator, member_user):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Groceries',
            amount=Decimal('30.00'),
        )
        record_settlement(
            apartment_id=shared_apartment.id,
            user=member_user,
            to_user_id=creator.id,
            amount=Decimal('15.00'),
        )

        leave_apartment(apartment_id=shared_apartment.id, user=member_user)

        assert not shared_apartment.has_member(member_user)


@pytest.mark.django_db
class TestMembersAndOverview:

    def test_members_in_join_order(self, shared_apartment, creator, member_user):
        members = list(get_apartment_members(apartment_id=shared_apartment.id, user=member_user))
        assert [m.user for m in members] == [creator, member_user]

    def test_members_requires_membership(self, apartment, outsider):
        with pytest.raises(NotMemberError):
            get_apartment_members(apartment_id=apartment.id, user=outsider)

    def test_overview(self, shared_apartment, creator, member_user):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Internet',
            amount=Decimal('40.00'),
        )
        create_expense(
            apartment_id=shared_apartment.id,
            user=member_user,
            title='Soap',
            amount=Decimal('5.00'),
        )

        rows = get_apartment_overview(user=member_user)

        assert len(rows) == 1
        row = rows[0]
        assert row['apartment'] == shared_apartment
        assert row['member_count'] == 2
        assert row['total_expenses'] == Decimal('45.00')
        # Paid 5.00, owes 20.00 + 2.50
        assert row['balance'] == Decimal('-17.50')

    def test_overview_without_expenses(self, apartment, creator):
        rows = get_apartment_overview(user=creator)

        assert rows[0]['total_expenses'] == Decimal('0.00')
        assert rows[0]['balance'] == Decimal('0.00')
