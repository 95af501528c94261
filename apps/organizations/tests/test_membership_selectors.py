"""
Membership Selector Tests

Tests for the membership index and the effective-organization gate.
"""
import uuid

import pytest

from apps.core.exceptions import PermissionDeniedError
from apps.organizations.selectors import (
    can_manage_organization,
    get_agency_members,
    get_member,
    get_user_agency_book_orgs,
    get_user_dashboard_orgs,
    get_user_member_orgs_with_roles,
    resolve_effective_org_id,
)
from tests.factories import OrganizationFactory, OrganizationMemberFactory, ProfileFactory


@pytest.mark.django_db
class TestMembershipIndex:

    def setup_method(self):
        self.agent = ProfileFactory()
        self.zeta = OrganizationFactory(name='Zeta Benefits')
        self.alpha = OrganizationFactory(name='Alpha Health')
        self.book_only = OrganizationFactory(name='Book Only')
        OrganizationMemberFactory(organization=self.zeta, user=self.agent, owner=True)
        OrganizationMemberFactory(organization=self.alpha, user=self.agent, staff=True)
        OrganizationMemberFactory(
            organization=self.book_only, user=self.agent, role='community_agent', can_view_agency_book=True,
        )
        OrganizationMemberFactory(
            organization=OrganizationFactory(name='Former'), user=self.agent, owner=True, status='removed',
        )

    def test_dashboard_orgs_sorted_by_name(self):
        assert get_user_dashboard_orgs(self.agent.id) == [
            {'id': self.alpha.id, 'name': 'Alpha Health'},
            {'id': self.zeta.id, 'name': 'Zeta Benefits'},
        ]

    def test_agency_book_orgs(self):
        names = [org['name'] for org in get_user_agency_book_orgs(self.agent.id)]

        assert names == ['Alpha Health', 'Book Only', 'Zeta Benefits']

    def test_member_orgs_include_roles_and_skip_inactive(self):
        result = get_user_member_orgs_with_roles(self.agent.id)

        assert [(org['name'], org['role']) for org in result] == [
            ('Alpha Health', 'staff'),
            ('Book Only', 'community_agent'),
            ('Zeta Benefits', 'owner'),
        ]

    def test_agent_without_memberships(self):
        stranger = ProfileFactory()

        assert get_user_dashboard_orgs(stranger.id) == []
        assert get_user_member_orgs_with_roles(stranger.id) == []

    def test_get_member(self):
        assert get_member(self.zeta.id, self.agent.id).role == 'owner'
        assert get_member(self.zeta.id, uuid.uuid4()) is None


@pytest.mark.django_db
class TestResolveEffectiveOrgId:

    def setup_method(self):
        self.agent = ProfileFactory()
        self.first = OrganizationFactory(name='A First')
        self.second = OrganizationFactory(name='B Second')
        OrganizationMemberFactory(organization=self.first, user=self.agent, owner=True)
        OrganizationMemberFactory(organization=self.second, user=self.agent, staff=True)

    def test_requested_org_with_access_is_used(self):
        assert resolve_effective_org_id(self.agent.id, self.second.id) == self.second.id

    def test_no_request_uses_first_dashboard_org(self):
        assert resolve_effective_org_id(self.agent.id, None) == self.first.id

    def test_foreign_org_falls_back_and_warns(self, mocker):
        mock_logger = mocker.patch('apps.organizations.selectors.logger')
        foreign = OrganizationFactory(name='Somebody Else')

        assert resolve_effective_org_id(self.agent.id, foreign.id) == self.first.id
        mock_logger.warning.assert_called_once()

    def test_member_without_dashboard_access_is_not_granted(self):
        book = OrganizationFactory(name='Aardvark Book')
        OrganizationMemberFactory(organization=book, user=self.agent, can_view_agency_book=True)

        assert resolve_effective_org_id(self.agent.id, book.id) == self.first.id

    def test_no_dashboard_orgs_denied(self):
        agent = ProfileFactory()
        OrganizationMemberFactory(user=agent)

        with pytest.raises(PermissionDeniedError):
            resolve_effective_org_id(agent.id, None)


@pytest.mark.django_db
class TestCanManageOrganization:

    def setup_method(self):
        self.root = OrganizationFactory(name='Root')
        self.child = OrganizationFactory(name='Child', parent_organization=self.root)
        self.owner = OrganizationMemberFactory(organization=self.root, owner=True).user
        self.child_owner = OrganizationMemberFactory(organization=self.child, owner=True).user
        self.agent = OrganizationMemberFactory(organization=self.child).user

    def test_owner_manages_own_org(self):
        assert can_manage_organization(self.owner.id, self.root.id)
        assert can_manage_organization(self.child_owner.id, self.child.id)

    def test_upline_dashboard_user_manages_downline(self):
        assert can_manage_organization(self.owner.id, self.child.id)

    def test_downline_owner_cannot_manage_upline(self):
        assert not can_manage_organization(self.child_owner.id, self.root.id)

    def test_plain_agent_cannot_manage(self):
        assert not can_manage_organization(self.agent.id, self.child.id)


@pytest.mark.django_db
class TestGetAgencyMembers:

    def setup_method(self):
        self.owner = ProfileFactory(display_name='Olivia Owner')
        self.branch_owner = ProfileFactory(display_name='Bea Branch')
        self.root = OrganizationFactory(name='Root Agency', owner=self.owner)
        self.branch = OrganizationFactory(
            name='Branch', owner=self.branch_owner, parent_organization=self.root, sub_agency=True,
        )
        self.outpost = OrganizationFactory(
            name='Outpost', owner=ProfileFactory(display_name='Omar Outpost'),
            parent_organization=self.branch, sub_agency=True,
        )
        OrganizationMemberFactory(organization=self.root, user=self.owner, owner=True)
        self.alice = OrganizationMemberFactory(
            organization=self.root, user=ProfileFactory(display_name='alice Adams'),
        ).user
        OrganizationMemberFactory(organization=self.branch, user=self.branch_owner, owner=True)
        self.carl = OrganizationMemberFactory(
            organization=self.branch, user=ProfileFactory(display_name='Carl Cole'), status='removed',
        ).user
        self.dee = OrganizationMemberFactory(
            organization=self.outpost, user=ProfileFactory(display_name='Dee Dunn'),
        ).user

    def test_top_level_lists_whole_downline_by_name(self):
        result = get_agency_members(self.root.id)

        assert [(row['display_name'], row['organization_name']) for row in result] == [
            ('alice Adams', 'Root Agency'),
            ('Bea Branch', 'Branch'),
            ('Carl Cole', 'Branch'),
            ('Dee Dunn', 'Outpost'),
            ('Olivia Owner', 'Root Agency'),
        ]

    def test_top_level_flags_owners_of_nested_orgs(self):
        rows = {row['user_id']: row for row in get_agency_members(self.root.id)}

        assert rows[self.branch_owner.id]['is_sub_agency_owner'] is True
        assert rows[self.branch_owner.id]['sub_agency_name'] == 'Branch'
        assert rows[self.owner.id]['is_sub_agency_owner'] is False

    def test_sub_agency_lists_direct_members_and_child_owners(self):
        result = get_agency_members(self.branch.id)

        assert [row['display_name'] for row in result] == ['Bea Branch', 'Carl Cole', 'Omar Outpost']
        outpost_owner = result[-1]
        assert outpost_owner['role'] == 'agency'
        assert outpost_owner['status'] == 'active'
        assert outpost_owner['organization_id'] == self.branch.id
        assert outpost_owner['sub_agency_name'] == 'Outpost'
        assert self.dee.id not in {row['user_id'] for row in result}

    def test_status_filter(self):
        result = get_agency_members(self.root.id, status='removed')

        assert [row['user_id'] for row in result] == [self.carl.id]

    def test_rows_carry_email_and_access(self):
        row = next(row for row in get_agency_members(self.root.id) if row['user_id'] == self.owner.id)

        assert row['email'] == self.owner.email
        assert row['role'] == 'owner'
        assert row['has_dashboard_access'] is True

    def test_missing_org_is_empty(self):
        assert get_agency_members(uuid.uuid4()) == []
