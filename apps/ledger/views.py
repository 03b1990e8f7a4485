from rest_framework import mixins, viewsets, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import OpenApiParameter, extend_schema

from .models import Expense, Settlement
from .serializers import (
    ApartmentBalancesSerializer,
    ExpenseCreateSerializer,
    ExpenseSerializer,
    ExpenseUpdateSerializer,
    LedgerFilterSerializer,
    SettlementCreateSerializer,
    SettlementSerializer,
)

from apps.apartments.services import ApartmentNotFoundError, NotMemberError
from apps.ledger.services import (
    create_expense,
    update_expense,
    delete_expense,
    get_expense,
    list_expenses,
    list_user_expenses,
    record_settlement,
    get_settlement,
    list_settlements,
    list_user_settlements,
    get_apartment_balances,
    # Exceptions
    ExpenseNotFoundError,
    SettlementNotFoundError,
    InsufficientPermissionsError,
    InvalidInputError,
)

NOT_FOUND_ERRORS = (ApartmentNotFoundError, ExpenseNotFoundError, SettlementNotFoundError)
FORBIDDEN_ERRORS = (NotMemberError, InsufficientPermissionsError)

APARTMENT_FILTER = OpenApiParameter(
    name='apartment',
    type=str,
    required=False,
    description='Apartment UUID; omit to list across all your apartments',
)


class LedgerPagination(PageNumberPagination):
    """Custom pagination for ledger lists."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ExpenseViewSet(viewsets.ModelViewSet):
    """
    ViewSet for expenses.

    list: Expenses of one apartment (?apartment=) or of all your apartments
    create: Record an expense, split evenly or by explicit shares
    retrieve: Get an expense with its shares
    partial_update: Change an expense (creator only)
    destroy: Delete an expense (creator only)
    """

    queryset = Expense.objects.none()
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LedgerPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        return list_user_expenses(user=self.request.user)

    def get_serializer_class(self):
        if self.action == 'create':
            return ExpenseCreateSerializer
        elif self.action == 'partial_update':
            return ExpenseUpdateSerializer
        return ExpenseSerializer

    @extend_schema(parameters=[APARTMENT_FILTER])
    def list(self, request, *args, **kwargs):
        filter_serializer = LedgerFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        apartment_id = filter_serializer.validated_data.get('apartment')

        try:
            if apartment_id:
                queryset = list_expenses(apartment_id=apartment_id, user=request.user)
            else:
                queryset = self.get_queryset()
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        page = self.paginate_queryset(queryset)
        serializer = ExpenseSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request, *args, **kwargs):
        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.to_service_kwargs()
        apartment_id = params.pop('apartment')

        try:
            expense = create_expense(
                apartment_id=apartment_id,
                user=request.user,
                **params
            )
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidInputError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        expense = get_expense(expense_id=expense.id, user=request.user)
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        try:
            expense = get_expense(expense_id=kwargs['pk'], user=request.user)
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(ExpenseSerializer(expense).data)

    @extend_schema(request=ExpenseUpdateSerializer, responses=ExpenseSerializer)
    def partial_update(self, request, *args, **kwargs):
        serializer = ExpenseUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            expense = update_expense(
                expense_id=kwargs['pk'],
                user=request.user,
                **serializer.to_service_kwargs()
            )
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidInputError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        expense = get_expense(expense_id=expense.id, user=request.user)
        return Response(ExpenseSerializer(expense).data)

    def destroy(self, request, *args, **kwargs):
        try:
            delete_expense(expense_id=kwargs['pk'], user=request.user)
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidInputError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)


class SettlementViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for settlements. Settlements are never edited or deleted.

    list: Settlements of one apartment (?apartment=) or of all your apartments
    create: Record a payment from you to another member
    retrieve: Get a settlement
    """

    queryset = Settlement.objects.none()
    serializer_class = SettlementSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LedgerPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        return list_user_settlements(user=self.request.user)

    def get_serializer_class(self):
        if self.action == 'create':
            return SettlementCreateSerializer
        return SettlementSerializer

    @extend_schema(parameters=[APARTMENT_FILTER])
    def list(self, request, *args, **kwargs):
        filter_serializer = LedgerFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        apartment_id = filter_serializer.validated_data.get('apartment')

        try:
            if apartment_id:
                queryset = list_settlements(apartment_id=apartment_id, user=request.user)
            else:
                queryset = self.get_queryset()
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        page = self.paginate_queryset(queryset)
        serializer = SettlementSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(request=SettlementCreateSerializer, responses={201: SettlementSerializer})
    def create(self, request, *args, **kwargs):
        serializer = SettlementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            settlement = record_settlement(
                apartment_id=data['apartment'],
                user=request.user,
                to_user_id=data['to_user'],
                amount=data['amount'],
                note=data['note']
            )
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidInputError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(SettlementSerializer(settlement).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        try:
            settlement = get_settlement(settlement_id=kwargs['pk'], user=request.user)
        except NOT_FOUND_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except FORBIDDEN_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(SettlementSerializer(settlement).data)


@extend_schema(responses=ApartmentBalancesSerializer)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def apartment_balances(request, apartment_id):
    """
    Net balance of every member plus suggested payments.

    GET /api/ledger/apartments/{apartment_id}/balances/
    """
    try:
        result = get_apartment_balances(apartment_id=apartment_id, user=request.user)
    except ApartmentNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except NotMemberError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(ApartmentBalancesSerializer(result).data)
