"""
Core View Mixins

Shared helpers for MediCRM API views: the authenticated agent, path id
parsing and plain success responses. Errors are raised, not returned;
custom_exception_handler turns them into the API error body.
"""
from uuid import UUID

from rest_framework.response import Response

from .authentication import AuthenticatedUser, get_user_context
from .exceptions import AuthenticationError, ValidationError


class AuthenticatedAPIView:
    """
    Mixin for APIView subclasses that act on behalf of an agent.

    Usage:
        class MemberRemoveView(AuthenticatedAPIView, APIView):
            def post(self, request, org_id, user_id):
                agent = self.get_user(request)
                org_uuid = self.parse_uuid(org_id, 'org_id')
    """

    def get_user(self, request) -> AuthenticatedUser:
        """The agent behind the request; AuthenticationError (401) otherwise."""
        user = get_user_context(request)
        if user is None:
            raise AuthenticationError()
        return user

    def parse_uuid(self, value, field_name: str = "id") -> UUID:
        """
        Strict UUID parsing for path segments and mutation bodies.

        Report query params are normalized leniently in apps.reports.params
        instead; ids that identify what to change must be valid.

        Raises:
            ValidationError: Missing or malformed value
        """
        if isinstance(value, UUID):
            return value
        if not value:
            raise ValidationError(f"{field_name} is required")
        try:
            return UUID(str(value))
        except ValueError as err:
            raise ValidationError(f"Invalid {field_name} format") from err

    def success_response(self, data=None, status_code: int = 200) -> Response:
        return Response({"success": True} if data is None else data, status=status_code)
