# ==========================================
# apps/apartments/admin.py
# ==========================================

from django.contrib import admin
from apps.apartments.models import Apartment, ApartmentMembership


class ApartmentMembershipInline(admin.TabularInline):
    """Inline admin for apartment memberships."""
    model = ApartmentMembership
    extra = 0
    fields = ['user', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Apartment)
class ApartmentAdmin(admin.ModelAdmin):
    """Admin interface for Apartments."""
    
    list_display = ['name', 'code', 'created_by', 'member_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'code', 'created_by__email']
    readonly_fields = ['code', 'created_at', 'updated_at']
    inlines = [ApartmentMembershipInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    
    def member_count(self, obj):
        return obj.memberships.count()
    member_count.short_description = 'Members'


@admin.register(ApartmentMembership)
class ApartmentMembershipAdmin(admin.ModelAdmin):
    list_display = ['user', 'apartment', 'joined_at']
    search_fields = ['user__email', 'apartment__name', 'apartment__code']
    raw_id_fields = ['user', 'apartment']
