import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.apartments.models import Apartment, ApartmentMembership


def client_for(user):
    """Return an API client authenticated as user."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    """Apartment creator."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        full_name='Alice',
    )


@pytest.fixture
def bob(db):
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        full_name='Bob',
    )


@pytest.fixture
def carol(db):
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
        full_name='Carol',
    )


@pytest.fixture
def outsider(db):
    """User not in the apartment."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        full_name='Out Sider',
    )


@pytest.fixture
def apartment(db, alice, bob):
    """Apartment shared by alice and bob."""
    apartment = Apartment.objects.create(
        name='Canal Street 5',
        code='CS05T5',
        created_by=alice,
    )
    ApartmentMembership.objects.create(apartment=apartment, user=alice)
    ApartmentMembership.objects.create(apartment=apartment, user=bob)
    return apartment


@pytest.fixture
def three_person_apartment(apartment, carol):
    ApartmentMembership.objects.create(apartment=apartment, user=carol)
    return apartment


@pytest.fixture
def alice_client(alice):
    return client_for(alice)


@pytest.fixture
def bob_client(bob):
    return client_for(bob)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)
