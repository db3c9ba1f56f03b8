"""Auth service coordinating sign-in, sign-up, password reset and caller resolution."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from pbstats.auth.models import Caller
from pbstats.errors import IdentityError, Unauthenticated, ValidationFailure

if TYPE_CHECKING:
    from pbstats.auth.models import AuthSession, CallerSource
    from pbstats.auth.provider import IdentityProvider
    from pbstats.auth.session_store import AuthSessionStore

PASSWORD_MIN_LENGTH = 6

# Refresh a little before the identity service would reject the token.
TOKEN_REFRESH_MARGIN_SECONDS = 30

logger = structlog.get_logger()


class AuthService:
    """Front the identity provider with server-side sessions."""

    def __init__(self, provider: IdentityProvider, session_store: AuthSessionStore) -> None:
        self._provider = provider
        self._session_store = session_store

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Validate credentials with the identity service and open a session."""
        email = _require_email(email)
        if not password:
            raise ValidationFailure("Enter your password")
        grant = await self._provider.sign_in(email, password)
        return self._session_store.create_session(grant)

    async def sign_up(self, email: str, password: str, confirm_password: str | None = None) -> AuthSession | None:
        """Create an account. Returns None when the account must be confirmed by email first."""
        email = _require_email(email)
        _validate_new_password(password, confirm_password)
        grant = await self._provider.sign_up(email, password)
        if grant is None:
            return None
        return self._session_store.create_session(grant)

    async def request_password_reset(self, email: str, redirect_to: str) -> None:
        if not email.strip():
            raise ValidationFailure("Enter your email above, then click “Forgot password?”")
        await self._provider.request_password_reset(email.strip(), redirect_to)
        logger.info("password reset requested")

    async def recover(self, token_hash: str) -> AuthSession:
        """Open a session from a password recovery link."""
        if not token_hash:
            raise ValidationFailure("Recovery link is missing its token")
        grant = await self._provider.verify_recovery(token_hash)
        return self._session_store.create_session(grant)

    async def update_password(self, session_id: str | None, new_password: str, confirm_password: str) -> None:
        _validate_new_password(new_password, confirm_password)
        caller = await self.resolve_caller(session_id)
        if caller is None:
            raise Unauthenticated
        await self._provider.update_password(caller.access_token, new_password)
        logger.info("password updated", user_id=caller.identity.user_id)

    def get_session(self, session_id: str | None) -> AuthSession | None:
        """Return the live session for a cookie value, without contacting the identity service."""
        if session_id is None:
            return None
        return self._session_store.get_session(session_id)

    async def resolve_caller(self, session_id: str | None) -> Caller | None:
        """Re-resolve the signed-in user right now.

        Refreshes an expired access token and asks the identity service who
        the token belongs to. A session the service no longer honours is
        dropped and None is returned.
        """
        session = self.get_session(session_id)
        if session is None:
            return None

        if time.time() >= session.token_expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
            try:
                grant = await self._provider.refresh(session.refresh_token)
            except IdentityError as e:
                logger.info("token refresh rejected, dropping session", user_id=session.user_id, error=str(e))
                self._session_store.delete_session(session.session_id)
                return None
            session.apply_grant(grant)
            logger.debug("access token refreshed", user_id=session.user_id)

        identity = await self._provider.get_user(session.access_token)
        if identity is None or identity.user_id != session.user_id:
            self._session_store.delete_session(session.session_id)
            return None
        return Caller(identity=identity, access_token=session.access_token)

    def caller_source(self, session_id: str | None) -> CallerSource:
        """Bind caller resolution to one session for deferred, per-operation use."""

        async def _resolve() -> Caller | None:
            return await self.resolve_caller(session_id)

        return _resolve

    async def sign_out(self, session_id: str) -> None:
        """Destroy the local session and revoke its tokens at the identity service."""
        session = self._session_store.delete_session(session_id)
        if session is None:
            return
        try:
            await self._provider.sign_out(session.access_token)
        except IdentityError as e:
            # The local session is already gone; the token expires on its own.
            logger.warning("remote sign out failed", user_id=session.user_id, error=str(e))


def _require_email(email: str) -> str:
    email = email.strip()
    if not email:
        raise ValidationFailure("Enter your email")
    return email


def _validate_new_password(password: str, confirm_password: str | None) -> None:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationFailure(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if confirm_password is not None and password != confirm_password:
        raise ValidationFailure("Passwords do not match.")
