import logging

from django.db import DatabaseError, InterfaceError, OperationalError, connection
from django.http import JsonResponse
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BackendUnavailableError(APIException):
    """The database could not be reached."""
    status_code = 503
    default_detail = 'Service temporarily unavailable, please retry later.'
    default_code = 'backend_unavailable'


def api_exception_handler(exc, context):
    """
    DRF exception handler that reports lost database connections as 503.

    Everything else goes through DRF's default handling.
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        view = context.get('view')
        logger.error(
            "Database unavailable in %s: %s",
            view.__class__.__name__ if view else 'unknown view',
            exc
        )
        exc = BackendUnavailableError()

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, BackendUnavailableError):
        response.data = {'error': str(exc.detail), 'status': 503}
    return response


def health_check(request):
    """Liveness probe that also pings the database."""
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        logger.error("Health check failed: %s", e)
        return JsonResponse({'status': 'unavailable', 'database': 'error'}, status=503)

    return JsonResponse({'status': 'ok', 'database': 'ok'})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
