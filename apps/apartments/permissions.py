from rest_framework import permissions


class IsApartmentCreator(permissions.BasePermission):
    """
    Permission: User must have created the apartment.
    """
    
    message = 'Only the apartment creator can perform this action.'
    
    def has_object_permission(self, request, view, obj):
        # obj is an Apartment instance
        return obj.is_creator(request.user)
