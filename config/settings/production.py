"""
Django Production Settings

Hosted deployment behind a TLS-terminating proxy.
"""
import copy

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F401, F403

DEBUG = False

ALLOWED_HOSTS = config('ALLOWED_HOSTS', cast=Csv())  # noqa: F405
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', cast=Csv())  # noqa: F405

if not SUPABASE_JWT_SECRET:  # noqa: F405
    raise ImproperlyConfigured('SUPABASE_JWT_SECRET must be set in production')

# =============================================================================
# Transport security
# =============================================================================

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)  # noqa: F405
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

DATABASES['default']['OPTIONS']['sslmode'] = 'require'  # noqa: F405
DATABASES['default']['CONN_MAX_AGE'] = config('DB_CONN_MAX_AGE', default=60, cast=int)  # noqa: F405

# Report selectors log ids at INFO; DEBUG stays off in production
LOGGING = copy.deepcopy(LOGGING)  # noqa: F405
LOGGING['loggers']['django']['level'] = 'WARNING'
LOGGING['loggers']['apps']['level'] = 'INFO'
