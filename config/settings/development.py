"""
Django Development Settings

Local development against `supabase start` and the Next.js dev server.
"""
import copy

from .base import *  # noqa: F401, F403

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '0.0.0.0']

CORS_ALLOWED_ORIGINS = ['http://localhost:3000', 'http://127.0.0.1:3000']

# The local Supabase Postgres listens on 54322 without SSL
DATABASES['default']['PORT'] = config('SUPABASE_DB_PORT', default='54322')  # noqa: F405
DATABASES['default']['OPTIONS']['sslmode'] = config('SUPABASE_DB_SSLMODE', default='disable')  # noqa: F405

LOGGING = copy.deepcopy(LOGGING)  # noqa: F405
LOGGING['root']['level'] = 'DEBUG'
