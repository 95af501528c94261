"""
Error Responses for MediCRM Backend

Every error leaves the API as {"error", "message", "details"?}. Report
payloads carry client PHI, so unexpected failures are logged by exception
class and view only.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class APIException(Exception):
    """
    Base class for errors raised by selectors, services and views.

    Usage:
        raise ConflictError('Member is already removed')
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Bad request'

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(APIException):
    """Malformed mutation input (unknown role, bad ids, missing body fields)."""
    default_message = 'Invalid request'


class AuthenticationError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Authentication required'


class PermissionDeniedError(APIException):
    """The agent lacks dashboard or management rights on the organization."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'Permission denied'


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Resource not found'


class ConflictError(APIException):
    """The membership is not in a state that allows the change."""
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Resource conflict'


def _error_body(name: str, message: str, details=None) -> dict:
    body = {'error': name, 'message': message}
    if details:
        body['details'] = details
    return body


def _flatten_detail(detail) -> str:
    """Collapse DRF field errors into one readable line."""
    if isinstance(detail, dict):
        parts = []
        for field, errors in detail.items():
            if isinstance(errors, list):
                errors = ', '.join(str(error) for error in errors)
            parts.append(f'{field}: {errors}')
        return '; '.join(parts)
    if isinstance(detail, list):
        return ', '.join(str(error) for error in detail)
    return str(detail)


def internal_error_body() -> dict:
    """Body for unexpected failures; never carries exception text."""
    return _error_body('InternalServerError', 'An unexpected error occurred')


def custom_exception_handler(exc, context):
    """
    DRF exception handler producing the MediCRM error body.

    Our own APIException subclasses map directly. DRF's exceptions
    (authentication, throttling, parse errors) keep their status code with a
    flattened message. Anything else is a 500.
    """
    if isinstance(exc, APIException):
        return Response(
            _error_body(exc.__class__.__name__, exc.message, exc.details),
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is not None:
        detail = getattr(exc, 'detail', str(exc))
        response.data = _error_body(
            exc.__class__.__name__,
            _flatten_detail(detail),
            detail if isinstance(detail, dict) else None,
        )
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'
    logger.error(f'Unhandled {exc.__class__.__name__} in {view_name}')
    return Response(internal_error_body(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
