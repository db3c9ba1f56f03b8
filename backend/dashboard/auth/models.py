"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from starlette.authentication import BaseUser


class AuthenticatedUser(BaseUser):
    """Signed-in user for Starlette's request.user, built from the session cookie."""

    def __init__(self, user_id: str, email: str | None, session_id: str) -> None:
        self._user_id = user_id
        self._email = email
        self._session_id = session_id

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:
        return self._email or self._user_id

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def email(self) -> str | None:
        return self._email

    @property
    def session_id(self) -> str:
        return self._session_id
