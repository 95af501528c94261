"""
Organization API Views

Endpoints:
- GET /api/organizations/mine - Caller's dashboard, agency-book and member orgs
- GET /api/organizations/hierarchy - Downline tree and parent picker
- GET /api/organizations/overview - Agency headline metrics
- GET /api/organizations/members - Members of the agency (downline for a top-level agency)
- PATCH /api/organizations/{org_id}/members/{user_id} - Change role or dashboard access
- POST /api/organizations/{org_id}/members/{user_id}/remove - Remove member
- POST /api/organizations/{org_id}/members/{user_id}/reactivate - Reactivate member
- POST /api/organizations/{org_id}/members/{user_id}/transfer - Move member to a sub-agency
"""
import logging

from django.utils import timezone
from rest_framework.views import APIView

from apps.core.constants import MEMBER_STATUSES
from apps.core.exceptions import ValidationError
from apps.core.hierarchy import get_hierarchy_tree, get_orgs_with_depth
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import HasDashboardAccess, IsAuthenticated
from apps.reports.params import normalize_uuid
from apps.reports.selectors import get_agency_overview

from .selectors import (
    get_agency_members,
    get_user_agency_book_orgs,
    get_user_dashboard_orgs,
    get_user_member_orgs_with_roles,
    resolve_effective_org_id,
)
from .services import (
    change_member_role,
    reactivate_member,
    remove_member,
    set_dashboard_access,
    transfer_member,
)

logger = logging.getLogger(__name__)


def _member_payload(member) -> dict:
    return {
        'organization_id': member.organization_id,
        'user_id': member.user_id,
        'role': member.role,
        'has_dashboard_access': member.has_dashboard_access,
        'can_view_agency_book': member.can_view_agency_book,
        'is_producing': member.is_producing,
        'status': member.status,
    }


class MyOrganizationsView(AuthenticatedAPIView, APIView):
    """
    GET /api/organizations/mine
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        return self.success_response({
            'dashboard_orgs': get_user_dashboard_orgs(user.id),
            'agency_book_orgs': get_user_agency_book_orgs(user.id),
            'member_orgs': get_user_member_orgs_with_roles(user.id),
        })


class OrganizationHierarchyView(AuthenticatedAPIView, APIView):
    """
    GET /api/organizations/hierarchy?org=
    """
    permission_classes = [IsAuthenticated, HasDashboardAccess]

    def get(self, request):
        user = self.get_user(request)
        org_id = resolve_effective_org_id(user.id, normalize_uuid(request.query_params.get('org')))
        return self.success_response({
            'organization_id': org_id,
            'tree': get_hierarchy_tree(org_id),
            'orgs': get_orgs_with_depth(org_id),
        })


class AgencyOverviewView(AuthenticatedAPIView, APIView):
    """
    GET /api/organizations/overview?org=
    """
    permission_classes = [IsAuthenticated, HasDashboardAccess]

    def get(self, request):
        user = self.get_user(request)
        org_id = resolve_effective_org_id(user.id, normalize_uuid(request.query_params.get('org')))
        return self.success_response(get_agency_overview(org_id, timezone.localdate()))


class AgencyMembersView(AuthenticatedAPIView, APIView):
    """
    GET /api/organizations/members?org=&status=

    Unknown status values are ignored.
    """
    permission_classes = [IsAuthenticated, HasDashboardAccess]

    def get(self, request):
        user = self.get_user(request)
        org_id = resolve_effective_org_id(user.id, normalize_uuid(request.query_params.get('org')))
        status = (request.query_params.get('status') or '').strip().lower()
        status = status if status in MEMBER_STATUSES else None
        return self.success_response({
            'organization_id': org_id,
            'members': get_agency_members(org_id, status=status),
            'filters': {'status': status},
        })


class MemberDetailView(AuthenticatedAPIView, APIView):
    """
    PATCH /api/organizations/{org_id}/members/{user_id}

    Body: {"role": "..."} or {"has_dashboard_access": true|false}
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, org_id: str, user_id: str):
        user = self.get_user(request)
        org_uuid = self.parse_uuid(org_id, 'org_id')
        member_uuid = self.parse_uuid(user_id, 'user_id')
        data = request.data

        if 'role' in data:
            member = change_member_role(
                actor_id=user.id,
                org_id=org_uuid,
                user_id=member_uuid,
                new_role=str(data.get('role') or ''),
            )
        elif 'has_dashboard_access' in data:
            access = data.get('has_dashboard_access')
            if not isinstance(access, bool):
                raise ValidationError('has_dashboard_access must be a boolean')
            member = set_dashboard_access(
                actor_id=user.id,
                org_id=org_uuid,
                user_id=member_uuid,
                has_dashboard_access=access,
            )
        else:
            raise ValidationError('Provide role or has_dashboard_access')

        return self.success_response(_member_payload(member))


class MemberRemoveView(AuthenticatedAPIView, APIView):
    """
    POST /api/organizations/{org_id}/members/{user_id}/remove
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, org_id: str, user_id: str):
        user = self.get_user(request)
        member = remove_member(
            actor_id=user.id,
            org_id=self.parse_uuid(org_id, 'org_id'),
            user_id=self.parse_uuid(user_id, 'user_id'),
        )
        return self.success_response(_member_payload(member))


class MemberReactivateView(AuthenticatedAPIView, APIView):
    """
    POST /api/organizations/{org_id}/members/{user_id}/reactivate
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, org_id: str, user_id: str):
        user = self.get_user(request)
        member = reactivate_member(
            actor_id=user.id,
            org_id=self.parse_uuid(org_id, 'org_id'),
            user_id=self.parse_uuid(user_id, 'user_id'),
        )
        return self.success_response(_member_payload(member))


class MemberTransferView(AuthenticatedAPIView, APIView):
    """
    POST /api/organizations/{org_id}/members/{user_id}/transfer

    Body: {"target_org_id": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, org_id: str, user_id: str):
        user = self.get_user(request)
        member = transfer_member(
            actor_id=user.id,
            org_id=self.parse_uuid(org_id, 'org_id'),
            user_id=self.parse_uuid(user_id, 'user_id'),
            target_org_id=self.parse_uuid(request.data.get('target_org_id'), 'target_org_id'),
        )
        return self.success_response(_member_payload(member), status_code=201)
