"""Identity: the hosted identity service client, server-side sessions, and the auth service."""

from pbstats.auth.gotrue import SupabaseIdentityProvider
from pbstats.auth.models import AuthGrant, AuthSession, Caller, CallerSource, Identity
from pbstats.auth.provider import IdentityProvider
from pbstats.auth.service import PASSWORD_MIN_LENGTH, AuthService
from pbstats.auth.session_store import AuthSessionStore

__all__ = [
    "PASSWORD_MIN_LENGTH",
    "AuthGrant",
    "AuthService",
    "AuthSession",
    "AuthSessionStore",
    "Caller",
    "CallerSource",
    "Identity",
    "IdentityProvider",
    "SupabaseIdentityProvider",
]
