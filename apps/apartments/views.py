from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .serializers import (
    ApartmentSerializer,
    ApartmentCreateSerializer,
    ApartmentMemberSerializer,
    ApartmentOverviewSerializer,
    JoinApartmentSerializer,
)
from .permissions import IsApartmentCreator

from apps.apartments.services import (
    create_apartment,
    list_apartments,
    update_apartment,
    delete_apartment,
    join_apartment,
    leave_apartment,
    get_apartment_members,
    get_apartment_overview,
    # Exceptions
    ApartmentNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    OwnerCannotLeaveError,
    OutstandingBalanceError,
    InsufficientPermissionsError,
    JoinCodeGenerationError,
)


class ApartmentPagination(PageNumberPagination):
    """Custom pagination for apartments."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ApartmentViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Apartment CRUD operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Apartments the user is a member of
    create: Create an apartment (creator becomes first member)
    retrieve: Get a specific apartment
    partial_update: Rename an apartment (creator only)
    destroy: Delete an apartment (creator only)
    """

    serializer_class = ApartmentSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = ApartmentPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        """Return only apartments where user is a member."""
        return list_apartments(user=self.request.user)

    def get_serializer_class(self):
        if self.action in ['create', 'partial_update']:
            return ApartmentCreateSerializer
        return ApartmentSerializer

    def get_permissions(self):
        if self.action in ['partial_update', 'destroy']:
            return [IsAuthenticated(), IsApartmentCreator()]
        return [IsAuthenticated()]

    def create(self, request, *args, **kwargs):
        """Create a new apartment."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            apartment = create_apartment(
                name=serializer.validated_data['name'],
                user=request.user
            )
        except JoinCodeGenerationError as e:
            return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        output_serializer = ApartmentSerializer(apartment, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """Rename an apartment."""
        apartment = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            apartment = update_apartment(
                apartment_id=apartment.id,
                user=request.user,
                name=serializer.validated_data['name']
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        output_serializer = ApartmentSerializer(apartment, context={'request': request})
        return Response(output_serializer.data)

    def destroy(self, request, *args, **kwargs):
        """Delete an apartment."""
        apartment = self.get_object()
        try:
            delete_apartment(apartment_id=apartment.id, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    @extend_schema(responses=ApartmentMemberSerializer(many=True))
    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Get all members of the apartment."""
        try:
            memberships = get_apartment_members(apartment_id=pk, user=request.user)
        except ApartmentNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = ApartmentMemberSerializer(memberships, many=True)
        return Response(serializer.data)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        """Leave an apartment."""
        try:
            leave_apartment(apartment_id=pk, user=request.user)
        except ApartmentNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (OwnerCannotLeaveError, OutstandingBalanceError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=JoinApartmentSerializer, responses=ApartmentMemberSerializer)
    @action(detail=False, methods=['post'])
    def join(self, request):
        """Join an apartment using its join code."""
        serializer = JoinApartmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = join_apartment(
                code=serializer.validated_data['code'],
                user=request.user
            )
        except ApartmentNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AlreadyMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        output_serializer = ApartmentMemberSerializer(membership)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(responses=ApartmentOverviewSerializer(many=True))
    @action(detail=False, methods=['get'])
    def overview(self, request):
        """Dashboard: member count, total spend and own balance per apartment."""
        rows = get_apartment_overview(user=request.user)
        serializer = ApartmentOverviewSerializer(rows, many=True, context={'request': request})
        return Response(serializer.data)
