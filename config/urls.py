"""
URL Configuration for MediCRM Backend API

All routes are prefixed with /api/ to match Next.js conventions.
"""
from django.urls import include, path

from apps.core.views import health_check

urlpatterns = [
    # Health check endpoint (public)
    path('api/health', health_check, name='health_check'),

    # Organization membership, hierarchy and member management
    path('api/organizations/', include('apps.organizations.urls')),

    # Agency reports and CSV exports
    path('api/reports/', include('apps.reports.urls')),
]
