"""Identity and session models."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pydantic import BaseModel


class Identity(BaseModel, frozen=True):
    """The authenticated user as reported by the identity service."""

    user_id: str  # opaque owner reference stored on every game row
    email: str | None = None


class Caller(BaseModel, frozen=True):
    """A freshly resolved identity plus the token to act as it against the store."""

    identity: Identity
    access_token: str


# Resolves the current caller at the moment of use; None when signed out or expired.
CallerSource = Callable[[], Awaitable[Caller | None]]


class AuthGrant(BaseModel, frozen=True):
    """Tokens issued by the identity service for one signed-in user."""

    identity: Identity
    access_token: str
    refresh_token: str
    expires_at: float  # access token expiry, time.time() scale


@dataclass
class AuthSession:
    """Server-side session mapping an opaque cookie to identity-service tokens."""

    session_id: str  # UUID, stored in cookie
    user_id: str
    email: str | None
    access_token: str
    refresh_token: str
    token_expires_at: float
    created_at: float
    expires_at: float  # session expiry, independent of token expiry

    def apply_grant(self, grant: AuthGrant) -> None:
        """Swap in refreshed tokens from the identity service."""
        self.access_token = grant.access_token
        self.refresh_token = grant.refresh_token
        self.token_expires_at = grant.expires_at
        self.email = grant.identity.email
