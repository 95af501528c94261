"""
Root pytest configuration.

Shared by the unit tests under apps/ and the integration tests under tests/:

- The core models are unmanaged (their tables belong to Supabase), so the
  test database would otherwise be created without them.
- token_for mints Supabase-style JWTs for the auth and API tests.
"""
import uuid
from datetime import timedelta

import jwt
import pytest
from django.apps import apps
from django.conf import settings
from django.core.management import call_command
from django.utils import timezone


@pytest.fixture(scope='session')
def django_db_setup(django_db_blocker):
    """Create tables for every model, unmanaged ones included, with syncdb."""
    with django_db_blocker.unblock():
        for model in apps.get_models():
            model._meta.managed = True
        call_command('migrate', '--run-syncdb', verbosity=0)


# =============================================================================
# JWT Helpers
# =============================================================================

def make_token(user_id: uuid.UUID, **overrides) -> str:
    """Mint an HS256 token shaped like the ones Supabase Auth issues."""
    payload = {
        'sub': str(user_id),
        'aud': 'authenticated',
        'iss': f'{settings.SUPABASE_URL}/auth/v1',
        'role': 'authenticated',
        'exp': timezone.now() + timedelta(hours=1),
    }
    payload.update(overrides)
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm='HS256')


@pytest.fixture
def token_for():
    return make_token
