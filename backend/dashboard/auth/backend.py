"""Starlette AuthenticationBackend that validates the session cookie."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend

from dashboard.auth.models import AuthenticatedUser

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from pbstats.auth.service import AuthService

SESSION_COOKIE_NAME = "session_id"


class SessionBackend(AuthenticationBackend):
    """Authenticate requests by their ``session_id`` cookie.

    Only the local session is checked here. Operations that touch the store
    re-resolve the caller with the identity service at the moment of use.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self._auth_service = auth_service

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedUser] | None:
        session = self._auth_service.get_session(conn.cookies.get(SESSION_COOKIE_NAME))
        if session is None:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedUser(
            user_id=session.user_id,
            email=session.email,
            session_id=session.session_id,
        )
