"""
Integration Test Fixtures

Provides real database fixtures using Factory Boy: a three-level agency
tree with an owner who has dashboard access at the root.

    root (owner, agent_a)
    ├── east (agent_b)
    │   └── east_north (agent_c)
    └── west (agent_d)

    other_root (outsider) - unrelated agency
"""
import pytest

from tests.factories import (
    OrganizationFactory,
    OrganizationMemberFactory,
    ProfileFactory,
)


@pytest.fixture
def owner(db):
    return ProfileFactory(display_name='Olivia Owner')


@pytest.fixture
def root_org(owner):
    return OrganizationFactory(name='Summit Senior Benefits', owner=owner)


@pytest.fixture
def east_org(root_org, owner):
    return OrganizationFactory(name='East Branch', owner=owner, parent_organization=root_org, sub_agency=True)


@pytest.fixture
def east_north_org(east_org, owner):
    return OrganizationFactory(name='East North', owner=owner, parent_organization=east_org, sub_agency=True)


@pytest.fixture
def west_org(root_org, owner):
    return OrganizationFactory(name='West Branch', owner=owner, parent_organization=root_org, sub_agency=True)


@pytest.fixture
def other_root(db):
    return OrganizationFactory(name='Unrelated Agency')


@pytest.fixture
def agency_tree(root_org, east_org, east_north_org, west_org, owner):
    """Build the tree and its memberships; returns a dict of orgs and agents."""
    OrganizationMemberFactory(organization=root_org, user=owner, owner=True)
    agent_a = OrganizationMemberFactory(
        organization=root_org, user=ProfileFactory(display_name='Alice Adams')
    ).user
    agent_b = OrganizationMemberFactory(
        organization=east_org, user=ProfileFactory(display_name='bob Baker')
    ).user
    agent_c = OrganizationMemberFactory(
        organization=east_north_org, user=ProfileFactory(display_name='Carla Cruz')
    ).user
    agent_d = OrganizationMemberFactory(
        organization=west_org, user=ProfileFactory(display_name='Dan Diaz')
    ).user
    return {
        'root': root_org,
        'east': east_org,
        'east_north': east_north_org,
        'west': west_org,
        'owner': owner,
        'agent_a': agent_a,
        'agent_b': agent_b,
        'agent_c': agent_c,
        'agent_d': agent_d,
    }


@pytest.fixture
def outsider(other_root):
    """An owner of an unrelated agency with dashboard access there only."""
    member = OrganizationMemberFactory(
        organization=other_root,
        user=ProfileFactory(display_name='Oscar Outsider'),
        owner=True,
    )
    return member.user
