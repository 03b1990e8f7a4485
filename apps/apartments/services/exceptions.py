"""
Domain-specific exceptions for apartments app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class ApartmentsServiceError(Exception):
    """Base exception for all apartments service errors."""
    pass


class ApartmentNotFoundError(ApartmentsServiceError):
    """Raised when an apartment does not exist or no apartment matches a join code."""
    pass


class AlreadyMemberError(ApartmentsServiceError):
    """Raised when a user tries to join an apartment they're already in."""
    pass


class NotMemberError(ApartmentsServiceError):
    """Raised when a user tries to perform an action requiring membership."""
    pass


class OwnerCannotLeaveError(ApartmentsServiceError):
    """Raised when the apartment creator tries to leave their apartment."""
    pass


class OutstandingBalanceError(ApartmentsServiceError):
    """Raised when a member with a non-zero balance tries to leave."""
    pass


class InsufficientPermissionsError(ApartmentsServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass


class JoinCodeGenerationError(ApartmentsServiceError):
    """Raised when no unused join code could be drawn within the attempt limit."""
    pass
