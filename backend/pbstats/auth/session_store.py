"""In-memory auth session store with periodic expiry cleanup."""

import asyncio
import contextlib
import time
from collections.abc import Callable
from uuid import uuid4

import structlog

from pbstats.auth.models import AuthGrant, AuthSession

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes
DEFAULT_SESSION_TTL_SECONDS = 7 * 86400  # a week; access tokens are refreshed underneath

logger = structlog.get_logger()


class AuthSessionStore:
    """Map opaque session ids to identity-service tokens.

    Sessions are ephemeral: a server restart means signing in again.
    Call start_cleanup() on app startup and stop_cleanup() on shutdown.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        on_remove: Callable[[str], None] | None = None,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        # Called with the id of every session that ends, whether signed out, rejected or expired.
        self._on_remove = on_remove
        self._sessions: dict[str, AuthSession] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    def create_session(self, grant: AuthGrant, ttl_seconds: int | None = None) -> AuthSession:
        """Create a session holding the tokens of a fresh grant."""
        now = time.time()
        session = AuthSession(
            session_id=str(uuid4()),
            user_id=grant.identity.user_id,
            email=grant.identity.email,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            token_expires_at=grant.expires_at,
            created_at=now,
            expires_at=now + (self._ttl_seconds if ttl_seconds is None else ttl_seconds),
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> AuthSession | None:
        """Return a live (non-expired) session, or None."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if time.time() > session.expires_at:
            self.delete_session(session_id)
            return None
        return session

    def delete_session(self, session_id: str) -> AuthSession | None:
        """Remove a session (sign out) and return it if it existed."""
        session = self._sessions.pop(session_id, None)
        if session is not None and self._on_remove is not None:
            self._on_remove(session_id)
        return session

    def cleanup_expired(self) -> list[str]:
        """Remove all expired sessions and return their ids."""
        now = time.time()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            self.delete_session(sid)
        if expired:
            logger.info("cleaned up expired sessions", count=len(expired))
        return expired

    def start_cleanup(self) -> None:
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()
