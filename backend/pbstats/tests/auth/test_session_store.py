"""Tests for AuthSessionStore."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

from pbstats.auth.models import AuthGrant, Identity
from pbstats.auth.session_store import AuthSessionStore


def _grant(user_id: str = "user-1", email: str = "alice@example.com") -> AuthGrant:
    return AuthGrant(
        identity=Identity(user_id=user_id, email=email),
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_at=1_000.0,
    )


class TestCreateSession:
    def test_creates_session_from_grant(self):
        store = AuthSessionStore()
        session = store.create_session(_grant())

        assert session.user_id == "user-1"
        assert session.email == "alice@example.com"
        assert session.access_token == "access-user-1"
        assert session.token_expires_at == 1_000.0
        assert session.expires_at > session.created_at

    def test_sessions_have_unique_ids(self):
        store = AuthSessionStore()
        s1 = store.create_session(_grant("u1"))
        s2 = store.create_session(_grant("u2"))
        assert s1.session_id != s2.session_id

    def test_ttl_override(self):
        store = AuthSessionStore(ttl_seconds=60)
        session = store.create_session(_grant(), ttl_seconds=5)
        assert session.expires_at - session.created_at == 5


class TestGetSession:
    def test_retrieves_valid_session(self):
        store = AuthSessionStore()
        session = store.create_session(_grant())
        assert store.get_session(session.session_id) is session

    def test_returns_none_for_unknown_id(self):
        assert AuthSessionStore().get_session("nonexistent") is None

    def test_returns_none_and_removes_expired_session(self):
        removed: list[str] = []
        store = AuthSessionStore(on_remove=removed.append)
        session = store.create_session(_grant(), ttl_seconds=0)

        with patch("pbstats.auth.session_store.time") as mock_time:
            mock_time.time.return_value = session.expires_at + 1
            result = store.get_session(session.session_id)

        assert result is None
        assert session.session_id not in store._sessions
        assert removed == [session.session_id]


class TestDeleteSession:
    def test_removes_existing_session(self):
        removed: list[str] = []
        store = AuthSessionStore(on_remove=removed.append)
        session = store.create_session(_grant())

        assert store.delete_session(session.session_id) is session
        assert store.get_session(session.session_id) is None
        assert removed == [session.session_id]

    def test_unknown_session_is_noop(self):
        removed: list[str] = []
        store = AuthSessionStore(on_remove=removed.append)
        assert store.delete_session("missing") is None
        assert removed == []


class TestCleanup:
    def test_cleanup_expired_removes_only_expired(self):
        store = AuthSessionStore()
        expired = store.create_session(_grant("u1"), ttl_seconds=0)
        alive = store.create_session(_grant("u2"), ttl_seconds=3600)

        with patch("pbstats.auth.session_store.time") as mock_time:
            mock_time.time.return_value = expired.expires_at + 1
            removed = store.cleanup_expired()

        assert removed == [expired.session_id]
        assert alive.session_id in store._sessions

    async def test_start_and_stop_cleanup(self):
        store = AuthSessionStore()
        store.start_cleanup()
        task = store._cleanup_task
        assert task is not None
        assert not task.done()

        await store.stop_cleanup()

        assert store._cleanup_task is None
        assert task.cancelled()

    async def test_start_cleanup_twice_keeps_one_task(self):
        store = AuthSessionStore()
        store.start_cleanup()
        first = store._cleanup_task
        store.start_cleanup()
        assert store._cleanup_task is first
        await store.stop_cleanup()
        await asyncio.sleep(0)
