from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'apartments'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ApartmentViewSet, basename='apartment')

urlpatterns = [
    # GET    /api/apartments/               - List user's apartments
    # POST   /api/apartments/               - Create apartment
    # GET    /api/apartments/{id}/          - Get apartment details
    # PATCH  /api/apartments/{id}/          - Rename apartment (creator)
    # DELETE /api/apartments/{id}/          - Delete apartment (creator)
    # GET    /api/apartments/{id}/members/  - List members
    # POST   /api/apartments/{id}/leave/    - Leave apartment
    # POST   /api/apartments/join/          - Join with code
    # GET    /api/apartments/overview/      - Dashboard rows
    path('', include(router.urls)),
]
