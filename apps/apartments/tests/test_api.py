import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.apartments.models import Apartment, ApartmentMembership
from apps.ledger.services import create_expense


# =============================================================================
# Apartment CRUD Tests
# =============================================================================

@pytest.mark.django_db
class TestApartmentList:
    """Tests for GET /api/apartments/"""

    def test_list_returns_user_apartments(self, creator_client, apartment):
        url = reverse('apartments:apartment-list')
        response = creator_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['results']) == 1
        assert response.data['results'][0]['name'] == apartment.name
        assert response.data['results'][0]['code'] == 'AB12C3'
        assert response.data['results'][0]['is_creator'] is True

    def test_list_excludes_other_apartments(self, outsider_client, apartment):
        url = reverse('apartments:apartment-list')
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['results']) == 0

    def test_list_unauthenticated(self, api_client):
        url = reverse('apartments:apartment-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestApartmentCreate:
    """Tests for POST /api/apartments/"""

    def test_create_apartment(self, creator_client, creator):
        url = reverse('apartments:apartment-list')
        response = creator_client.post(url, {'name': 'New Flat'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['code']) == 6
        assert response.data['member_count'] == 1

        apartment = Apartment.objects.get(name='New Flat')
        assert apartment.created_by == creator
        assert apartment.has_member(creator)

    def test_create_requires_name(self, creator_client):
        url = reverse('apartments:apartment-list')
        response = creator_client.post(url, {'name': ''}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestApartmentDetail:
    """Tests for GET/PATCH/DELETE /api/apartments/{id}/"""

    def test_retrieve_as_member(self, member_client, shared_apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': shared_apartment.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['member_count'] == 2
        assert response.data['is_creator'] is False

    def test_retrieve_as_outsider(self, outsider_client, apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': apartment.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_rename_as_creator(self, creator_client, apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': apartment.id})
        response = creator_client.patch(url, {'name': 'Renamed'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Renamed'

    def test_rename_as_member(self, member_client, shared_apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': shared_apartment.id})
        response = member_client.patch(url, {'name': 'Hijacked'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        shared_apartment.refresh_from_db()
        assert shared_apartment.name == 'Baker Street 221B'

    def test_put_not_allowed(self, creator_client, apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': apartment.id})
        response = creator_client.put(url, {'name': 'Replaced'}, format='json')

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_delete_as_creator(self, creator_client, apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': apartment.id})
        response = creator_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Apartment.objects.filter(id=apartment.id).exists()

    def test_delete_as_member(self, member_client, shared_apartment):
        url = reverse('apartments:apartment-detail', kwargs={'pk': shared_apartment.id})
        response = member_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Apartment.objects.filter(id=shared_apartment.id).exists()


# =============================================================================
# Membership Tests
# =============================================================================

@pytest.mark.django_db
class TestApartmentMembers:
    """Tests for GET /api/apartments/{id}/members/"""

    def test_list_members(self, member_client, shared_apartment, creator, member_user):
        url = reverse('apartments:apartment-members', kwargs={'pk': shared_apartment.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        emails = [m['user']['email'] for m in response.data]
        assert emails == [creator.email, member_user.email]

    def test_outsider_forbidden(self, outsider_client, apartment):
        url = reverse('apartments:apartment-members', kwargs={'pk': apartment.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestJoinApartment:
    """Tests for POST /api/apartments/join/"""

    def test_join_with_code(self, member_client, apartment, member_user):
        url = reverse('apartments:apartment-join')
        response = member_client.post(url, {'code': 'AB12C3'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['email'] == member_user.email
        assert apartment.has_member(member_user)

    def test_join_lowercase_with_spaces(self, member_client, apartment, member_user):
        url = reverse('apartments:apartment-join')
        response = member_client.post(url, {'code': ' ab12c3 '}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert apartment.has_member(member_user)

    def test_join_unknown_code(self, member_client, apartment):
        url = reverse('apartments:apartment-join')
        response = member_client.post(url, {'code': 'ZZ99Z9'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert 'error' in response.data

    def test_join_twice(self, member_client, shared_apartment):
        url = reverse('apartments:apartment-join')
        response = member_client.post(url, {'code': 'AB12C3'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_join_malformed_code(self, member_client, apartment):
        url = reverse('apartments:apartment-join')
        response = member_client.post(url, {'code': 'AB12'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestLeaveApartment:
    """Tests for POST /api/apartments/{id}/leave/"""

    def test_member_leaves(self, member_client, shared_apartment, member_user):
        url = reverse('apartments:apartment-leave', kwargs={'pk': shared_apartment.id})
        response = member_client.post(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not ApartmentMembership.objects.filter(
            apartment=shared_apartment, user=member_user
        ).exists()

    def test_creator_cannot_leave(self, creator_client, apartment):
        url = reverse('apartments:apartment-leave', kwargs={'pk': apartment.id})
        response = creator_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_outstanding_balance(self, member_client, shared_apartment, creator):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Electricity',
            amount=Decimal('60.00'),
        )
        url = reverse('apartments:apartment-leave', kwargs={'pk': shared_apartment.id})
        response = member_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert '-30.00' in response.data['error']


@pytest.mark.django_db
class TestOverview:
    """Tests for GET /api/apartments/overview/"""

    def test_overview(self, creator_client, shared_apartment, creator):
        create_expense(
            apartment_id=shared_apartment.id,
            user=creator,
            title='Electricity',
            amount=Decimal('60.00'),
        )
        url = reverse('apartments:apartment-overview')
        response = creator_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        row = response.data[0]
        assert row['apartment']['id'] == str(shared_apartment.id)
        assert row['member_count'] == 2
        assert row['total_expenses'] == '60.00'
        assert row['balance'] == '30.00'
        assert row['currency'] == 'USD'
