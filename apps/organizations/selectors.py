"""
Organization Selectors

Membership index and the organization access gate. Which organizations an
agent may report on is read from organization_members on every call.
"""
import logging
from uuid import UUID

from apps.core.exceptions import PermissionDeniedError
from apps.core.hierarchy import get_root_org_id, get_upline_org_ids, resolve_downline_org_ids
from apps.core.models import Organization, OrganizationMember, Profile
from apps.core.utils import display_name_for

logger = logging.getLogger(__name__)


def _member_orgs(agent_id: UUID, **flags) -> list[dict]:
    rows = (
        OrganizationMember.objects
        .filter(user_id=agent_id, status='active', **flags)
        .select_related('organization')
        .order_by('organization__name', 'organization_id')
    )
    return [{'id': row.organization_id, 'name': row.organization.name} for row in rows]


def get_user_dashboard_orgs(agent_id: UUID) -> list[dict]:
    """Organizations where the agent has dashboard access, as {id, name}."""
    return _member_orgs(agent_id, has_dashboard_access=True)


def get_user_agency_book_orgs(agent_id: UUID) -> list[dict]:
    """Organizations whose shared agency book the agent may view, as {id, name}."""
    return _member_orgs(agent_id, can_view_agency_book=True)


def get_user_member_orgs_with_roles(agent_id: UUID) -> list[dict]:
    """Every active membership of the agent as {id, name, role}."""
    rows = (
        OrganizationMember.objects
        .filter(user_id=agent_id, status='active')
        .select_related('organization')
        .order_by('organization__name', 'organization_id')
    )
    return [
        {'id': row.organization_id, 'name': row.organization.name, 'role': row.role}
        for row in rows
    ]


def resolve_effective_org_id(agent_id: UUID, requested_org_id: UUID | None) -> UUID:
    """
    Decide which organization a report request runs against.

    The requested org is used only when the agent has dashboard access to it.
    Any other requested id is ignored in favor of the agent's first dashboard
    org.

    Raises:
        PermissionDeniedError: The agent has no dashboard organizations
    """
    dashboard_orgs = get_user_dashboard_orgs(agent_id)
    if not dashboard_orgs:
        logger.info(f'Agent {agent_id} requested reports without dashboard access')
        raise PermissionDeniedError('You do not have dashboard access to any organization')

    allowed_ids = [org['id'] for org in dashboard_orgs]
    if requested_org_id is not None and requested_org_id in allowed_ids:
        return requested_org_id

    if requested_org_id is not None:
        logger.warning(
            f'Agent {agent_id} requested organization {requested_org_id} '
            f'without dashboard access; using {allowed_ids[0]}'
        )
    return allowed_ids[0]


def can_manage_organization(agent_id: UUID, org_id: UUID) -> bool:
    """
    Check whether an agent may manage an organization's members.

    Owners with dashboard access manage their own org. Dashboard users of
    any ancestor org manage the whole downline beneath it.
    """
    is_owner = OrganizationMember.objects.filter(
        organization_id=org_id,
        user_id=agent_id,
        role='owner',
        has_dashboard_access=True,
        status='active',
    ).exists()
    if is_owner:
        return True

    ancestor_ids = get_upline_org_ids(org_id)
    if not ancestor_ids:
        return False
    return OrganizationMember.objects.filter(
        organization_id__in=ancestor_ids,
        user_id=agent_id,
        has_dashboard_access=True,
        status='active',
    ).exists()


def get_member(org_id: UUID, user_id: UUID) -> OrganizationMember | None:
    return (
        OrganizationMember.objects
        .filter(organization_id=org_id, user_id=user_id)
        .first()
    )


def _member_row(user_id, org_id, org_name: str, **fields) -> dict:
    return {
        'user_id': user_id,
        'role': fields.get('role', 'agency'),
        'has_dashboard_access': fields.get('has_dashboard_access', True),
        'status': fields.get('status', 'active'),
        'accepted_at': fields.get('accepted_at'),
        'organization_id': org_id,
        'organization_name': org_name,
        'is_sub_agency_owner': False,
        'sub_agency_name': None,
    }


def get_agency_members(org_id: UUID, status: str | None = None) -> list[dict]:
    """
    List the members an agency dashboard shows for an organization.

    A top-level agency sees every membership in its downline; members who
    own the nested org they belong to are flagged as sub-agency owners. A
    sub-agency sees its direct members plus the owners of its direct child
    orgs, added as active 'agency' members when they hold no membership of
    their own. Sorted by display name; the status filter is applied last.
    """
    is_top_level = get_root_org_id(org_id) == org_id
    org_ids = resolve_downline_org_ids(org_id) if is_top_level else [org_id]
    orgs = {
        row['id']: row
        for row in Organization.objects.filter(id__in=org_ids).values('id', 'name', 'owner_id')
    }
    if not orgs:
        return []

    memberships = (
        OrganizationMember.objects
        .filter(organization_id__in=org_ids)
        .values('user_id', 'organization_id', 'role', 'has_dashboard_access', 'status', 'accepted_at')
    )
    rows = []
    for membership in memberships:
        org = orgs.get(membership['organization_id'], {})
        row = _member_row(
            membership['user_id'],
            membership['organization_id'],
            org.get('name', ''),
            role=membership['role'],
            has_dashboard_access=membership['has_dashboard_access'],
            status=membership['status'],
            accepted_at=membership['accepted_at'],
        )
        if is_top_level and org.get('id') != org_id and org.get('owner_id') == membership['user_id']:
            row['is_sub_agency_owner'] = True
            row['sub_agency_name'] = org['name']
        rows.append(row)

    if not is_top_level:
        child_owners = {
            child['owner_id']: child['name']
            for child in (
                Organization.objects
                .filter(parent_organization_id=org_id, owner_id__isnull=False)
                # An owner of several children keeps the first by name
                .order_by('-name')
                .values('owner_id', 'name')
            )
        }
        listed = set()
        for row in rows:
            listed.add(row['user_id'])
            if row['user_id'] in child_owners:
                row['is_sub_agency_owner'] = True
                row['sub_agency_name'] = child_owners[row['user_id']]
        for owner_id, child_name in child_owners.items():
            if owner_id in listed:
                continue
            row = _member_row(owner_id, org_id, orgs[org_id]['name'])
            row['is_sub_agency_owner'] = True
            row['sub_agency_name'] = child_name
            rows.append(row)

    profiles = {
        profile['id']: profile
        for profile in Profile.objects.filter(id__in={row['user_id'] for row in rows}).values(
            'id', 'display_name', 'first_name', 'last_name', 'email'
        )
    }
    for row in rows:
        profile = profiles.get(row['user_id'])
        row['display_name'] = display_name_for(profile)
        row['email'] = (profile or {}).get('email') or ''

    if status:
        rows = [row for row in rows if row['status'] == status]
    return sorted(
        rows,
        key=lambda row: (row['display_name'].casefold(), str(row['user_id']), str(row['organization_id'])),
    )
