"""
Supabase JWT Authentication for Django REST Framework

Agents sign in through Supabase Auth. The API only verifies the resulting
HS256 token and loads the agent's profile; which organizations the agent may
report on is looked up per request, never carried in the token.
"""
import logging
from dataclasses import dataclass
from uuid import UUID

import jwt
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from rest_framework import authentication, exceptions

from .models import Profile

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '
TOKEN_AUDIENCE = 'authenticated'


@dataclass
class AuthenticatedUser:
    """
    The agent behind a verified token.

    Not a Django user model: a plain container filled from the profiles row
    whose id equals the token's sub claim.
    """
    id: UUID
    email: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    @classmethod
    def from_profile(cls, profile: Profile, fallback_email: str = '') -> 'AuthenticatedUser':
        return cls(
            id=profile.id,
            email=profile.email or fallback_email,
            display_name=profile.display_name,
            first_name=profile.first_name,
            last_name=profile.last_name,
        )


def decode_supabase_token(token: str) -> dict:
    """
    Verify signature, expiry, audience and (when SUPABASE_URL is set) issuer.

    Raises:
        jwt.InvalidTokenError: Any verification failure
        ImproperlyConfigured: No signing secret configured
    """
    secret = getattr(settings, 'SUPABASE_JWT_SECRET', None)
    if not secret:
        raise ImproperlyConfigured('SUPABASE_JWT_SECRET not configured')

    supabase_url = getattr(settings, 'SUPABASE_URL', '')
    issuer = f'{supabase_url}/auth/v1' if supabase_url else None

    return jwt.decode(
        token,
        secret,
        algorithms=['HS256'],
        audience=TOKEN_AUDIENCE,
        issuer=issuer,
        options={'verify_iss': issuer is not None},
    )


def load_agent(sub, fallback_email: str = '') -> AuthenticatedUser | None:
    """
    Resolve a sub claim to the agent's profile; None when there is none.

    Raises:
        DatabaseError: The profile lookup failed (a server error, not a 401)
    """
    try:
        profile_id = UUID(str(sub))
    except ValueError:
        logger.warning('JWT sub claim is not a UUID')
        return None

    try:
        profile = Profile.objects.filter(id=profile_id).first()
    except DatabaseError as e:
        logger.error(f'Database error looking up profile: {e.__class__.__name__}')
        raise

    if profile is None:
        logger.warning(f'No profile found for auth user: {profile_id}')
        return None
    return AuthenticatedUser.from_profile(profile, fallback_email)


class SupabaseJWTAuthentication(authentication.BaseAuthentication):
    """
    DRF authentication class for Supabase-issued bearer tokens.

    Returns None when no bearer token is present so that other
    authenticators (or the 401 from the permission layer) take over.
    """

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not header.startswith(BEARER_PREFIX):
            return None
        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            return None

        try:
            payload = decode_supabase_token(token)
        except jwt.ExpiredSignatureError:
            logger.debug('JWT has expired')
            raise exceptions.AuthenticationFailed('Invalid or expired token')
        except jwt.InvalidTokenError as e:
            logger.debug(f'JWT validation failed: {e.__class__.__name__}')
            raise exceptions.AuthenticationFailed('Invalid or expired token')
        except ImproperlyConfigured as e:
            logger.error(str(e))
            raise exceptions.AuthenticationFailed('Invalid or expired token')

        if not payload.get('sub'):
            logger.warning('JWT missing sub claim')
            raise exceptions.AuthenticationFailed('User not found')

        user = load_agent(payload['sub'], payload.get('email') or '')
        if user is None:
            raise exceptions.AuthenticationFailed('User not found')
        return (user, token)

    def authenticate_header(self, request):
        return 'Bearer realm="api"'


def get_user_context(request) -> AuthenticatedUser | None:
    """The authenticated agent attached to the request, if any."""
    user = getattr(request, 'user', None)
    return user if isinstance(user, AuthenticatedUser) else None
