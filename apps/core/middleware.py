"""
Authentication Middleware for MediCRM Backend

Rejects unauthenticated API calls before any view runs, so no report query
is ever issued for an anonymous caller.
"""
import logging
import re
from collections.abc import Callable

from django.db import DatabaseError
from django.http import JsonResponse
from rest_framework.exceptions import AuthenticationFailed

from .authentication import SupabaseJWTAuthentication
from .exceptions import internal_error_body

logger = logging.getLogger(__name__)


def _unauthorized(message: str) -> JsonResponse:
    return JsonResponse({'error': 'Unauthorized', 'message': message}, status=401)


class SupabaseAuthMiddleware:
    """
    Verify the Supabase bearer token on every non-public route.

    On success the agent is attached as request.user and the raw token as
    request.auth_token; otherwise the request ends here with a 401 body in
    the API's error format. A failed profile lookup is a 500, not a 401.
    """

    PUBLIC_ROUTES: list[str] = [
        r'^/api/health$',
    ]

    def __init__(self, get_response: Callable):
        self.get_response = get_response
        self.authenticator = SupabaseJWTAuthentication()
        self._public = re.compile('|'.join(f'(?:{route})' for route in self.PUBLIC_ROUTES))

    def __call__(self, request):
        if self._public.match(request.path):
            request.user = None
            return self.get_response(request)

        try:
            result = self.authenticator.authenticate(request)
        except AuthenticationFailed as e:
            logger.warning(f'Authentication failed on {request.path}: {e.detail}')
            return _unauthorized(str(e.detail))
        except DatabaseError as e:
            logger.error(f'Unhandled {e.__class__.__name__} authenticating {request.path}')
            return JsonResponse(internal_error_body(), status=500)

        if result is None:
            return _unauthorized('Authentication required')

        request.user, request.auth_token = result
        logger.debug(f'Authenticated agent {request.user.id} accessing {request.path}')
        return self.get_response(request)
