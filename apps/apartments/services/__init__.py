"""
Apartments app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    ApartmentsServiceError,
    ApartmentNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    OwnerCannotLeaveError,
    OutstandingBalanceError,
    InsufficientPermissionsError,
    JoinCodeGenerationError,
)

from .apartment_management import (
    create_apartment,
    ensure_member,
    get_apartment,
    list_apartments,
    update_apartment,
    delete_apartment,
    get_apartment_overview,
)

from .membership_management import (
    join_apartment,
    leave_apartment,
    get_apartment_members,
)


__all__ = [
    # Exceptions
    'ApartmentsServiceError',
    'ApartmentNotFoundError',
    'AlreadyMemberError',
    'NotMemberError',
    'OwnerCannotLeaveError',
    'OutstandingBalanceError',
    'InsufficientPermissionsError',
    'JoinCodeGenerationError',

    # Apartment Management
    'create_apartment',
    'ensure_member',
    'get_apartment',
    'list_apartments',
    'update_apartment',
    'delete_apartment',
    'get_apartment_overview',

    # Membership Management
    'join_apartment',
    'leave_apartment',
    'get_apartment_members',
]
