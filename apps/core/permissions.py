"""
Permission Classes for MediCRM Backend

Organization access is derived from organization_members on every request;
nothing about it is cached on the authenticated user.
"""
import logging

from rest_framework import permissions

from .authentication import AuthenticatedUser
from .models import OrganizationMember

logger = logging.getLogger(__name__)


class IsAuthenticated(permissions.BasePermission):
    """
    Allows access only to requests carrying a verified Supabase JWT.
    """
    message = 'Authentication required'

    def has_permission(self, request, view):
        return isinstance(getattr(request, 'user', None), AuthenticatedUser)


class HasDashboardAccess(permissions.BasePermission):
    """
    Allows access only to agents with dashboard access to at least one
    active organization. Which organization a report covers is decided
    later by the effective-org gate.
    """
    message = 'Dashboard access required'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if not isinstance(user, AuthenticatedUser):
            return False
        allowed = OrganizationMember.objects.filter(
            user_id=user.id,
            has_dashboard_access=True,
            status='active',
        ).exists()
        if not allowed:
            logger.info(f'Agent {user.id} has no dashboard organizations')
        return allowed
