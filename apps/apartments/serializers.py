from rest_framework import serializers
from django.conf import settings

from .models import Apartment, ApartmentMembership
from apps.accounts.serializers import UserMinimalSerializer


class ApartmentSerializer(serializers.ModelSerializer):
    """Main serializer for apartments."""
    
    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    is_creator = serializers.SerializerMethodField()
    
    class Meta:
        model = Apartment
        fields = [
            'id',
            'name',
            'code',
            'created_by',
            'member_count',
            'is_creator',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'code', 'created_by', 'created_at', 'updated_at']
    
    def get_member_count(self, obj):
        """Use the annotated count when the queryset provides one."""
        count = getattr(obj, 'member_count', None)
        if count is None:
            count = obj.memberships.count()
        return count
    
    def get_is_creator(self, obj):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.is_creator(request.user)
        return False


class ApartmentCreateSerializer(serializers.Serializer):
    """Input for creating or renaming an apartment."""
    
    name = serializers.CharField(max_length=200)


class ApartmentMemberSerializer(serializers.ModelSerializer):
    """Member information."""
    
    user = UserMinimalSerializer(read_only=True)
    
    class Meta:
        model = ApartmentMembership
        fields = ['id', 'user', 'joined_at']
        read_only_fields = fields


class JoinApartmentSerializer(serializers.Serializer):
    """Join code as typed; surrounding whitespace is trimmed."""
    
    code = serializers.CharField(min_length=6, max_length=6)


class ApartmentOverviewSerializer(serializers.Serializer):
    """Dashboard row for one apartment."""
    
    apartment = ApartmentSerializer(read_only=True)
    member_count = serializers.IntegerField(read_only=True)
    total_expenses = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.SerializerMethodField()
    
    def get_currency(self, obj):
        return settings.LEDGER_CURRENCY
