from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'ledger'

router = DefaultRouter()
router.register(r'expenses', views.ExpenseViewSet, basename='expense')
router.register(r'settlements', views.SettlementViewSet, basename='settlement')

urlpatterns = [
    # GET    /api/ledger/expenses/?apartment=      - List expenses
    # POST   /api/ledger/expenses/                 - Record expense
    # GET    /api/ledger/expenses/{id}/            - Expense with shares
    # PATCH  /api/ledger/expenses/{id}/            - Change expense (creator)
    # DELETE /api/ledger/expenses/{id}/            - Delete expense (creator)
    # GET    /api/ledger/settlements/?apartment=   - List settlements
    # POST   /api/ledger/settlements/              - Record settlement
    # GET    /api/ledger/settlements/{id}/         - Settlement detail
    path(
        'apartments/<uuid:apartment_id>/balances/',
        views.apartment_balances,
        name='apartment-balances'
    ),

    path('', include(router.urls)),
]
