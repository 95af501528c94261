"""
Pytest Configuration for MediCRM Backend Tests

Key Features:
- Provides API client fixtures authenticated with real Supabase-style JWTs

Database setup (unmanaged models flipped to managed) and the token_for
fixture live in the root conftest.py.
"""
from datetime import date

import pytest
from django.utils import timezone
from rest_framework.test import APIClient


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Basic API client without authentication."""
    return APIClient()


@pytest.fixture
def client_for(api_client, token_for):
    """
    Return a factory that authenticates the API client as a profile.

    Usage:
        client = client_for(profile)
        client.get('/api/reports/roster')
    """
    def _client_for(profile) -> APIClient:
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token_for(profile.id)}')
        return api_client
    return _client_for


# =============================================================================
# Common Test Data Fixtures
# =============================================================================

@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def sample_dates(today):
    """Common date fixtures for testing."""
    return {
        'today': today,
        'month_start': today.replace(day=1),
        'start_of_year': date(today.year, 1, 1),
        'end_of_year': date(today.year, 12, 31),
    }
