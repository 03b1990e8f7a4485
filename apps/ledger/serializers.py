from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import Expense, ExpenseSplit, Settlement
from apps.accounts.serializers import UserMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class LedgerFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense and settlement lists.

    Query Parameters:
        apartment (UUID): Limit to one apartment
    """

    apartment = serializers.UUIDField(required=False)


class SplitInputSerializer(serializers.Serializer):
    """One explicit share of an expense."""

    user = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.00')
    )


class ExpenseUpdateSerializer(serializers.Serializer):
    """
    Fields of an expense that can change.

    ``splits`` gives explicit shares; ``split_between`` lists members to
    split the amount evenly among. At most one of them may be sent.
    """

    title = serializers.CharField(max_length=200, required=False)
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False
    )
    date = serializers.DateField(required=False)
    paid_by = serializers.UUIDField(required=False)
    splits = SplitInputSerializer(many=True, required=False, allow_empty=False)
    split_between = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=False
    )

    def validate(self, attrs):
        if 'splits' in attrs and 'split_between' in attrs:
            raise serializers.ValidationError(
                'Send either splits or split_between, not both'
            )
        return attrs

    def to_service_kwargs(self):
        """Flatten validated data into keyword arguments for the services."""
        data = dict(self.validated_data)
        if 'splits' in data:
            data['splits'] = [(s['user'], s['amount']) for s in data['splits']]
        return data


class ExpenseCreateSerializer(ExpenseUpdateSerializer):
    """Input for recording an expense."""

    apartment = serializers.UUIDField()
    title = serializers.CharField(max_length=200)
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01')
    )


class SettlementCreateSerializer(serializers.Serializer):
    """Input for recording a payment from the caller to another member."""

    apartment = serializers.UUIDField()
    to_user = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01')
    )
    note = serializers.CharField(required=False, allow_blank=True, default='')


# =============================================================================
# Output Serializers
# =============================================================================

class ExpenseSplitSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = ExpenseSplit
        fields = ['id', 'user', 'amount']
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Expense with its shares."""

    paid_by = UserMinimalSerializer(read_only=True)
    created_by = UserMinimalSerializer(read_only=True)
    splits = ExpenseSplitSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'apartment',
            'title',
            'amount',
            'date',
            'paid_by',
            'created_by',
            'splits',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.ModelSerializer):
    from_user = UserMinimalSerializer(read_only=True)
    to_user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Settlement
        fields = ['id', 'apartment', 'from_user', 'to_user', 'amount', 'note', 'created_at']
        read_only_fields = fields


class BalanceRowSerializer(serializers.Serializer):
    user = UserMinimalSerializer(read_only=True)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    is_member = serializers.BooleanField(read_only=True)


class SuggestedSettlementSerializer(serializers.Serializer):
    from_user = UserMinimalSerializer(read_only=True)
    to_user = UserMinimalSerializer(read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class ApartmentBalancesSerializer(serializers.Serializer):
    """Net balances of an apartment plus payments that would clear them."""

    apartment = serializers.UUIDField(source='apartment.id', read_only=True)
    currency = serializers.SerializerMethodField()
    balances = BalanceRowSerializer(many=True, read_only=True)
    suggested_settlements = SuggestedSettlementSerializer(many=True, read_only=True)

    def get_currency(self, obj):
        return settings.LEDGER_CURRENCY
