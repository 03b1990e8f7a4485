# ==========================================
# apps/ledger/admin.py
# ==========================================

from django.contrib import admin
from apps.ledger.models import Expense, ExpenseSplit, Settlement


class ExpenseSplitInline(admin.TabularInline):
    """Inline admin for expense shares."""
    model = ExpenseSplit
    extra = 0
    fields = ['user', 'amount']
    raw_id_fields = ['user']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """Admin interface for Expenses."""
    
    list_display = ['title', 'apartment', 'amount', 'paid_by', 'date', 'created_at']
    list_filter = ['date', 'created_at']
    search_fields = ['title', 'apartment__name', 'paid_by__email']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['apartment', 'paid_by', 'created_by']
    inlines = [ExpenseSplitInline]
    date_hierarchy = 'date'
    ordering = ['-date']


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    """Settlements are read-only once recorded."""
    
    list_display = ['apartment', 'from_user', 'to_user', 'amount', 'created_at']
    list_filter = ['created_at']
    search_fields = ['apartment__name', 'from_user__email', 'to_user__email', 'note']
    readonly_fields = ['apartment', 'from_user', 'to_user', 'amount', 'note', 'created_at']
    date_hierarchy = 'created_at'
    
    def has_change_permission(self, request, obj=None):
        return False
