"""
Django Base Settings for MediCRM Backend

Shared by every environment. Values come from the environment through
python-decouple; development.py, production.py and test.py override them.
"""
from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# =============================================================================
# Core Settings
# =============================================================================

SECRET_KEY = config('DJANGO_SECRET_KEY', default='django-insecure-medicrm-local-only')
DEBUG = config('DJANGO_DEBUG', default=True, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'corsheaders',
    'apps.core',           # Unmanaged Supabase models, auth, hierarchy traversal
    'apps.organizations',  # Membership index, hierarchy views, member management
    'apps.reports',        # Production, roster, clients, renewals, audit log
]

# Auth runs after CORS so that preflight requests are answered without a token
MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'apps.core.middleware.SupabaseAuthMiddleware',
]

# =============================================================================
# Database
# The Supabase Postgres schema is owned by Supabase migrations; Django models
# are unmanaged and this project never runs migrate against it.
# =============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'HOST': config('SUPABASE_DB_HOST', default='localhost'),
        'PORT': config('SUPABASE_DB_PORT', default='5432'),
        'NAME': config('SUPABASE_DB_NAME', default='postgres'),
        'USER': config('SUPABASE_DB_USER', default='postgres'),
        'PASSWORD': config('SUPABASE_DB_PASSWORD', default=''),
        'OPTIONS': {
            'sslmode': config('SUPABASE_DB_SSLMODE', default='require'),
        },
    }
}

# =============================================================================
# Supabase Auth
# =============================================================================

SUPABASE_URL = config('NEXT_PUBLIC_SUPABASE_URL', default='')
SUPABASE_JWT_SECRET = config('SUPABASE_JWT_SECRET', default='')

# =============================================================================
# REST Framework
# =============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': ['apps.core.authentication.SupabaseJWTAuthentication'],
    'DEFAULT_PERMISSION_CLASSES': ['apps.core.permissions.IsAuthenticated'],
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'EXCEPTION_HANDLER': 'apps.core.exceptions.custom_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

# =============================================================================
# CORS (Next.js dashboard)
# =============================================================================

CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='http://localhost:3000', cast=Csv())
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_HEADERS = [
    'accept',
    'authorization',
    'content-type',
    'origin',
    'x-requested-with',
]
# CSV downloads read the filename from Content-Disposition
CORS_EXPOSE_HEADERS = ['content-disposition']

# =============================================================================
# Time
# Report windows are computed in UTC.
# =============================================================================

TIME_ZONE = 'UTC'
USE_TZ = True
USE_I18N = False
LANGUAGE_CODE = 'en-us'

# =============================================================================
# Reporting
# =============================================================================

REPORT_MAX_ORG_DEPTH = config('REPORT_MAX_ORG_DEPTH', default=50, cast=int)
AUDIT_LOG_PAGE_SIZE = config('AUDIT_LOG_PAGE_SIZE', default=25, cast=int)
RENEWAL_WINDOW_DAYS = config('RENEWAL_WINDOW_DAYS', default=90, cast=int)

# =============================================================================
# Logging
# Application loggers are named after modules (apps.reports.selectors, ...).
# Log lines carry ids only, never client names or report rows.
# =============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': config('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': config('APP_LOG_LEVEL', default='DEBUG'),
            'propagate': False,
        },
    },
}
