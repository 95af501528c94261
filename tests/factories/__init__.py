"""
Factory Boy Factories for MediCRM Models

Import all factories here for easy access in tests.
"""
from tests.factories.core import (
    ClientCoverageFactory,
    ClientFactory,
    OrganizationAuditLogFactory,
    OrganizationFactory,
    OrganizationMemberFactory,
    ProfileFactory,
)

__all__ = [
    'ProfileFactory',
    'OrganizationFactory',
    'OrganizationMemberFactory',
    'OrganizationAuditLogFactory',
    'ClientFactory',
    'ClientCoverageFactory',
]
