"""
Django Test Settings for MediCRM Backend

SQLite in-memory database. The unmanaged models are switched to managed by
the root conftest.py so their tables can be created with syncdb.
"""
from .base import *  # noqa: F401, F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Tokens in tests are minted with this secret and issuer (tests/conftest.py)
SUPABASE_URL = 'http://localhost:54321'
SUPABASE_JWT_SECRET = 'test-jwt-secret-key-for-testing-purposes-only'

CORS_ALLOW_ALL_ORIGINS = True

REPORT_MAX_ORG_DEPTH = 50
AUDIT_LOG_PAGE_SIZE = 25
RENEWAL_WINDOW_DAYS = 90

# Silence logging; tests that assert on log calls patch the module logger
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {'class': 'logging.NullHandler'},
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
