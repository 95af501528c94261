"""
Organization Services

Membership mutations. Every change writes its organization_audit_log entry
in the same transaction.
"""
import logging
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.core.constants import ASSIGNABLE_ROLES, ROLE_PERMISSIONS
from apps.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from apps.core.hierarchy import resolve_downline_org_ids
from apps.core.models import OrganizationAuditLog, OrganizationMember

from .selectors import can_manage_organization

logger = logging.getLogger(__name__)


def _require_can_manage(actor_id: UUID, org_id: UUID) -> None:
    if not can_manage_organization(actor_id, org_id):
        logger.info(f'Agent {actor_id} denied member management on {org_id}')
        raise PermissionDeniedError('You do not have permission to manage this agency')


def _get_member_for_update(org_id: UUID, user_id: UUID) -> OrganizationMember:
    member = (
        OrganizationMember.objects
        .select_for_update()
        .filter(organization_id=org_id, user_id=user_id)
        .first()
    )
    if not member:
        raise NotFoundError('Member not found')
    return member


def record_audit_entry(
    *,
    org_id: UUID,
    action: str,
    performed_by: UUID | None,
    target_user_id: UUID | None = None,
    details: dict | None = None,
) -> OrganizationAuditLog:
    """Append one entry to an organization's audit log."""
    return OrganizationAuditLog.objects.create(
        organization_id=org_id,
        action=action,
        performed_by=performed_by,
        target_user_id=target_user_id,
        details=details,
    )


@transaction.atomic
def remove_member(*, actor_id: UUID, org_id: UUID, user_id: UUID) -> OrganizationMember:
    """
    Mark a membership as removed.

    Raises:
        PermissionDeniedError: Actor cannot manage the organization
        NotFoundError: No such membership
        ConflictError: Member already removed, or is the organization owner
    """
    _require_can_manage(actor_id, org_id)
    member = _get_member_for_update(org_id, user_id)

    if member.role == 'owner':
        raise ConflictError('The organization owner cannot be removed')
    if member.status == 'removed':
        raise ConflictError('Member is already removed')

    member.status = 'removed'
    member.save(update_fields=['status'])

    record_audit_entry(
        org_id=org_id,
        action='member_removed',
        performed_by=actor_id,
        target_user_id=user_id,
    )
    logger.info(f'Member {user_id} removed from {org_id} by {actor_id}')
    return member


@transaction.atomic
def reactivate_member(*, actor_id: UUID, org_id: UUID, user_id: UUID) -> OrganizationMember:
    """Restore a removed or inactive membership to active."""
    _require_can_manage(actor_id, org_id)
    member = _get_member_for_update(org_id, user_id)

    if member.status == 'active':
        raise ConflictError('Member is already active')

    member.status = 'active'
    member.save(update_fields=['status'])

    record_audit_entry(
        org_id=org_id,
        action='member_reactivated',
        performed_by=actor_id,
        target_user_id=user_id,
    )
    logger.info(f'Member {user_id} reactivated in {org_id} by {actor_id}')
    return member


@transaction.atomic
def set_dashboard_access(
    *,
    actor_id: UUID,
    org_id: UUID,
    user_id: UUID,
    has_dashboard_access: bool,
) -> OrganizationMember:
    """Grant or revoke dashboard access for a member."""
    _require_can_manage(actor_id, org_id)
    member = _get_member_for_update(org_id, user_id)

    if member.role == 'owner' and not has_dashboard_access:
        raise ConflictError('Dashboard access cannot be revoked from the owner')

    member.has_dashboard_access = has_dashboard_access
    member.save(update_fields=['has_dashboard_access'])

    record_audit_entry(
        org_id=org_id,
        action='dashboard_access_granted' if has_dashboard_access else 'dashboard_access_revoked',
        performed_by=actor_id,
        target_user_id=user_id,
    )
    return member


@transaction.atomic
def change_member_role(
    *,
    actor_id: UUID,
    org_id: UUID,
    user_id: UUID,
    new_role: str,
) -> OrganizationMember:
    """
    Assign a new role and the membership flags that come with it.

    Raises:
        ValidationError: new_role is not assignable
    """
    if new_role not in ASSIGNABLE_ROLES:
        raise ValidationError('Invalid role', details={'role': new_role})

    _require_can_manage(actor_id, org_id)
    member = _get_member_for_update(org_id, user_id)

    if member.role == 'owner':
        raise ConflictError("The organization owner's role cannot be changed")

    old_role = member.role
    member.role = new_role
    for flag, value in ROLE_PERMISSIONS[new_role].items():
        setattr(member, flag, value)
    member.save(update_fields=['role', *ROLE_PERMISSIONS[new_role].keys()])

    record_audit_entry(
        org_id=org_id,
        action='member_role_changed',
        performed_by=actor_id,
        target_user_id=user_id,
        details={'old_role': old_role, 'new_role': new_role},
    )
    return member


@transaction.atomic
def transfer_member(
    *,
    actor_id: UUID,
    org_id: UUID,
    user_id: UUID,
    target_org_id: UUID,
) -> OrganizationMember:
    """
    Move a member from an organization into one of its sub-agencies.

    The source membership becomes inactive; the new membership copies role
    and flags. Both organizations get an audit entry.
    """
    _require_can_manage(actor_id, org_id)

    downline = resolve_downline_org_ids(org_id)
    if target_org_id == org_id or target_org_id not in downline:
        raise ValidationError('Invalid target organization')

    source = _get_member_for_update(org_id, user_id)
    if source.role == 'owner':
        raise ConflictError('The organization owner cannot be transferred')
    if OrganizationMember.objects.filter(organization_id=target_org_id, user_id=user_id).exists():
        raise ConflictError('Member already belongs to the target organization')

    source.status = 'inactive'
    source.save(update_fields=['status'])

    moved = OrganizationMember.objects.create(
        organization_id=target_org_id,
        user_id=user_id,
        role=source.role,
        has_dashboard_access=source.has_dashboard_access,
        can_view_agency_book=source.can_view_agency_book,
        is_producing=source.is_producing,
        status='active',
        accepted_at=timezone.now(),
    )

    record_audit_entry(
        org_id=org_id,
        action='member_transferred',
        performed_by=actor_id,
        target_user_id=user_id,
        details={'from_org': str(org_id), 'to_org': str(target_org_id)},
    )
    record_audit_entry(
        org_id=target_org_id,
        action='member_transferred_in',
        performed_by=actor_id,
        target_user_id=user_id,
        details={'from_org': str(org_id)},
    )
    logger.info(f'Member {user_id} transferred from {org_id} to {target_org_id}')
    return moved
