"""Tests for the session cookie authentication backend."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from starlette.authentication import AuthCredentials

from dashboard.auth.backend import SESSION_COOKIE_NAME, SessionBackend
from dashboard.auth.models import AuthenticatedUser
from pbstats.auth.service import AuthService
from pbstats.auth.session_store import AuthSessionStore
from pbstats.tests.fakes import FakeIdentityProvider


@pytest.fixture
def provider() -> FakeIdentityProvider:
    p = FakeIdentityProvider()
    p.add_account("alice@example.com", "secret123", user_id="user-alice")
    return p


@pytest.fixture
def auth_service(provider: FakeIdentityProvider) -> AuthService:
    return AuthService(provider, AuthSessionStore())


@pytest.fixture
def backend(auth_service: AuthService) -> SessionBackend:
    return SessionBackend(auth_service)


def _conn(cookies: dict[str, str]) -> MagicMock:
    conn = MagicMock()
    conn.cookies = cookies
    return conn


class TestSessionBackend:
    async def test_no_cookie_is_anonymous(self, backend: SessionBackend) -> None:
        assert await backend.authenticate(_conn({})) is None

    async def test_unknown_session_is_anonymous(self, backend: SessionBackend) -> None:
        assert await backend.authenticate(_conn({SESSION_COOKIE_NAME: "stale"})) is None

    async def test_valid_session_authenticates(self, backend: SessionBackend, auth_service: AuthService) -> None:
        session = await auth_service.sign_in("alice@example.com", "secret123")

        result = await backend.authenticate(_conn({SESSION_COOKIE_NAME: session.session_id}))

        assert result is not None
        credentials, user = result
        assert isinstance(credentials, AuthCredentials)
        assert credentials.scopes == ["authenticated"]
        assert isinstance(user, AuthenticatedUser)
        assert user.user_id == "user-alice"
        assert user.session_id == session.session_id
        assert user.display_name == "alice@example.com"

    async def test_does_not_contact_identity_service(
        self,
        backend: SessionBackend,
        auth_service: AuthService,
        provider: FakeIdentityProvider,
    ) -> None:
        session = await auth_service.sign_in("alice@example.com", "secret123")
        provider.calls.clear()

        await backend.authenticate(_conn({SESSION_COOKIE_NAME: session.session_id}))

        assert provider.calls == []


class TestAuthenticatedUser:
    def test_display_name_falls_back_to_user_id(self) -> None:
        assert AuthenticatedUser(user_id="user-1", email=None, session_id="s").display_name == "user-1"
