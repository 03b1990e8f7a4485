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
def creator(db):
    """Create and return the user who created the apartment."""
    return User.objects.create_user(
        email='creator@example.com',
        password='TestPass123!',
        full_name='Apartment Creator',
    )


@pytest.fixture
def member_user(db):
    """Create and return a flatmate."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        full_name='Flat Mate',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user not in any apartment."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        full_name='Out Sider',
    )


@pytest.fixture
def creator_client(creator):
    return client_for(creator)


@pytest.fixture
def member_client(member_user):
    return client_for(member_user)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)


@pytest.fixture
def apartment(db, creator):
    """Create and return an apartment with the creator as its only member."""
    apartment = Apartment.objects.create(
        name='Baker Street 221B',
        code='AB12C3',
        created_by=creator,
    )
    ApartmentMembership.objects.create(apartment=apartment, user=creator)
    return apartment


@pytest.fixture
def shared_apartment(apartment, member_user):
    """Apartment with creator and one more member."""
    ApartmentMembership.objects.create(apartment=apartment, user=member_user)
    return apartment
