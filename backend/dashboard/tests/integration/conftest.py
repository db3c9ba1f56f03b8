"""Shared fixtures for dashboard integration tests."""

from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from dashboard.server.app import create_app
from dashboard.server.settings import DashboardSettings
from dashboard.tests.helpers.auth import TEST_EMAIL, TEST_PASSWORD, TEST_USER_ID, signin_with_csrf
from pbstats.tests.fakes import FakeGameRepository, FakeIdentityProvider


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add_account(TEST_EMAIL, TEST_PASSWORD, user_id=TEST_USER_ID)
    return provider


@pytest.fixture
def game_repo() -> FakeGameRepository:
    return FakeGameRepository()


@pytest.fixture
def app(identity_provider, game_repo):
    return create_app(
        DashboardSettings(site_url="http://testserver", display_timezone="UTC", cors_origins=[]),
        identity_provider=identity_provider,
        game_repo=game_repo,
    )


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def session_id(client) -> str:
    """Sign the client in and return its session id."""
    return signin_with_csrf(client)
