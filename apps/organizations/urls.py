"""
Organization API URLs

All routes are relative to /api/organizations/
"""
from django.urls import path

from .views import (
    AgencyMembersView,
    AgencyOverviewView,
    MemberDetailView,
    MemberReactivateView,
    MemberRemoveView,
    MemberTransferView,
    MyOrganizationsView,
    OrganizationHierarchyView,
)

urlpatterns = [
    path('mine', MyOrganizationsView.as_view(), name='organizations_mine'),
    path('hierarchy', OrganizationHierarchyView.as_view(), name='organizations_hierarchy'),
    path('overview', AgencyOverviewView.as_view(), name='organizations_overview'),
    path('members', AgencyMembersView.as_view(), name='organizations_members'),

    # Member management
    path('<str:org_id>/members/<str:user_id>', MemberDetailView.as_view(), name='organization_member'),
    path('<str:org_id>/members/<str:user_id>/remove', MemberRemoveView.as_view(), name='organization_member_remove'),
    path(
        '<str:org_id>/members/<str:user_id>/reactivate',
        MemberReactivateView.as_view(),
        name='organization_member_reactivate',
    ),
    path(
        '<str:org_id>/members/<str:user_id>/transfer',
        MemberTransferView.as_view(),
        name='organization_member_transfer',
    ),
]
