"""
Membership Service Tests

Tests for member removal, reactivation, role and access changes and
transfers, including the audit entries each one writes.
"""
import uuid

import pytest

from apps.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from apps.core.models import OrganizationAuditLog, OrganizationMember
from apps.organizations.services import (
    change_member_role,
    reactivate_member,
    record_audit_entry,
    remove_member,
    set_dashboard_access,
    transfer_member,
)
from tests.factories import OrganizationFactory, OrganizationMemberFactory


@pytest.fixture
def agency(db):
    root = OrganizationFactory(name='Root Agency')
    child = OrganizationFactory(name='Child Agency', parent_organization=root, sub_agency=True)
    owner = OrganizationMemberFactory(organization=root, owner=True)
    agent = OrganizationMemberFactory(organization=root)
    child_agent = OrganizationMemberFactory(organization=child)
    return {
        'root': root,
        'child': child,
        'owner': owner.user,
        'agent': agent.user,
        'child_agent': child_agent.user,
    }


def audit_actions(org):
    return list(
        OrganizationAuditLog.objects
        .filter(organization=org)
        .order_by('created_at')
        .values_list('action', flat=True)
    )


class TestRecordAuditEntry:

    def test_writes_entry(self, agency):
        entry = record_audit_entry(
            org_id=agency['root'].id,
            action='member_invited',
            performed_by=agency['owner'].id,
            details={'email': 'new@example.com'},
        )

        stored = OrganizationAuditLog.objects.get(id=entry.id)
        assert stored.details == {'email': 'new@example.com'}
        assert stored.target_user_id is None


class TestRemoveAndReactivate:

    def test_remove_marks_member_removed(self, agency):
        member = remove_member(
            actor_id=agency['owner'].id, org_id=agency['root'].id, user_id=agency['agent'].id,
        )

        assert member.status == 'removed'
        assert OrganizationMember.objects.get(id=member.id).status == 'removed'
        entry = OrganizationAuditLog.objects.get(organization=agency['root'])
        assert entry.action == 'member_removed'
        assert entry.performed_by == agency['owner'].id
        assert entry.target_user_id == agency['agent'].id

    def test_remove_twice_conflicts(self, agency):
        kwargs = {'actor_id': agency['owner'].id, 'org_id': agency['root'].id, 'user_id': agency['agent'].id}
        remove_member(**kwargs)

        with pytest.raises(ConflictError):
            remove_member(**kwargs)

    def test_owner_cannot_be_removed(self, agency):
        with pytest.raises(ConflictError):
            remove_member(
                actor_id=agency['owner'].id, org_id=agency['root'].id, user_id=agency['owner'].id,
            )

    def test_non_manager_denied_and_nothing_written(self, agency):
        with pytest.raises(PermissionDeniedError):
            remove_member(
                actor_id=agency['agent'].id, org_id=agency['root'].id, user_id=agency['owner'].id,
            )
        assert audit_actions(agency['root']) == []

    def test_missing_member(self, agency):
        with pytest.raises(NotFoundError):
            remove_member(actor_id=agency['owner'].id, org_id=agency['root'].id, user_id=uuid.uuid4())

    def test_upline_owner_manages_child_members(self, agency):
        remove_member(
            actor_id=agency['owner'].id, org_id=agency['child'].id, user_id=agency['child_agent'].id,
        )

        assert audit_actions(agency['child']) == ['member_removed']

    def test_reactivate_restores_active(self, agency):
        kwargs = {'actor_id': agency['owner'].id, 'org_id': agency['root'].id, 'user_id': agency['agent'].id}
        remove_member(**kwargs)

        member = reactivate_member(**kwargs)

        assert member.status == 'active'
        assert audit_actions(agency['root']) == ['member_removed', 'member_reactivated']

    def test_reactivate_active_member_conflicts(self, agency):
        with pytest.raises(ConflictError):
            reactivate_member(
                actor_id=agency['owner'].id, org_id=agency['root'].id, user_id=agency['agent'].id,
            )


class TestRoleAndAccess:

    def test_change_role_applies_flags(self, agency):
        member = change_member_role(
            actor_id=agency['owner'].id,
            org_id=agency['root'].id,
            user_id=agency['agent'].id,
            new_role='staff',
        )

        assert member.role == 'staff'
        assert member.has_dashboard_access is True
        assert member.can_view_agency_book is True
        assert member.is_producing is False
        entry = OrganizationAuditLog.objects.get(organization=agency['root'])
        assert entry.details == {'old_role': 'agent', 'new_role': 'staff'}

    def test_invalid_role_rejected(self, agency):
        with pytest.raises(ValidationError) as exc_info:
            change_member_role(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['agent'].id,
                new_role='owner',
            )
        assert exc_info.value.details == {'role': 'owner'}

    def test_owner_role_is_fixed(self, agency):
        with pytest.raises(ConflictError):
            change_member_role(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['owner'].id,
                new_role='agent',
            )

    def test_grant_and_revoke_dashboard_access(self, agency):
        kwargs = {'actor_id': agency['owner'].id, 'org_id': agency['root'].id, 'user_id': agency['agent'].id}

        assert set_dashboard_access(has_dashboard_access=True, **kwargs).has_dashboard_access is True
        assert set_dashboard_access(has_dashboard_access=False, **kwargs).has_dashboard_access is False
        assert audit_actions(agency['root']) == ['dashboard_access_granted', 'dashboard_access_revoked']

    def test_owner_dashboard_access_cannot_be_revoked(self, agency):
        with pytest.raises(ConflictError):
            set_dashboard_access(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['owner'].id,
                has_dashboard_access=False,
            )


class TestTransferMember:

    def test_transfer_moves_membership_into_sub_agency(self, agency):
        moved = transfer_member(
            actor_id=agency['owner'].id,
            org_id=agency['root'].id,
            user_id=agency['agent'].id,
            target_org_id=agency['child'].id,
        )

        assert moved.organization_id == agency['child'].id
        assert moved.status == 'active'
        source = OrganizationMember.objects.get(organization=agency['root'], user=agency['agent'])
        assert source.status == 'inactive'
        assert audit_actions(agency['root']) == ['member_transferred']
        assert audit_actions(agency['child']) == ['member_transferred_in']
        entry = OrganizationAuditLog.objects.get(organization=agency['root'])
        assert entry.details == {'from_org': str(agency['root'].id), 'to_org': str(agency['child'].id)}

    def test_transfer_outside_downline_rejected(self, agency):
        elsewhere = OrganizationFactory()

        with pytest.raises(ValidationError):
            transfer_member(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['agent'].id,
                target_org_id=elsewhere.id,
            )

    def test_transfer_to_same_org_rejected(self, agency):
        with pytest.raises(ValidationError):
            transfer_member(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['agent'].id,
                target_org_id=agency['root'].id,
            )

    def test_transfer_into_existing_membership_conflicts(self, agency):
        OrganizationMemberFactory(organization=agency['child'], user=agency['agent'])

        with pytest.raises(ConflictError):
            transfer_member(
                actor_id=agency['owner'].id,
                org_id=agency['root'].id,
                user_id=agency['agent'].id,
                target_org_id=agency['child'].id,
            )
