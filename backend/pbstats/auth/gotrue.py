"""IdentityProvider backed by Supabase Auth (GoTrue) over HTTP."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog

from pbstats.auth.models import AuthGrant, Identity
from pbstats.auth.provider import IdentityProvider
from pbstats.errors import IdentityError
from pbstats.supabase.client import SupabaseError

if TYPE_CHECKING:
    from pbstats.supabase.client import SupabaseClient

logger = structlog.get_logger()

_AUTH_PREFIX = "/auth/v1"


def _identity_from_user(user: dict[str, Any]) -> Identity:
    user_id = user.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise IdentityError("Identity service returned a user without an id")
    return Identity(user_id=user_id, email=user.get("email"))


def _grant_from_session(body: Any) -> AuthGrant:  # noqa: ANN401
    """Build a grant from a GoTrue session payload."""
    if not isinstance(body, dict) or "access_token" not in body:
        raise IdentityError("Identity service returned no session")
    expires_at = body.get("expires_at")
    if expires_at is None:
        expires_at = time.time() + float(body.get("expires_in", 0))
    return AuthGrant(
        identity=_identity_from_user(body.get("user") or {}),
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token", ""),
        expires_at=float(expires_at),
    )


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth endpoints: token, signup, recover, verify, user, logout."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:  # noqa: ANN401
        try:
            return await self._client.request(method, f"{_AUTH_PREFIX}{path}", **kwargs)
        except SupabaseError as e:
            raise IdentityError(str(e)) from e

    async def get_user(self, access_token: str) -> Identity | None:
        try:
            body = await self._client.request("GET", f"{_AUTH_PREFIX}/user", access_token=access_token)
        except SupabaseError as e:
            if e.is_invalid_token:
                return None
            raise IdentityError(str(e)) from e
        if not isinstance(body, dict):
            return None
        return _identity_from_user(body)

    async def sign_in(self, email: str, password: str) -> AuthGrant:
        body = await self._call(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        grant = _grant_from_session(body)
        logger.info("signed in", user_id=grant.identity.user_id)
        return grant

    async def sign_up(self, email: str, password: str) -> AuthGrant | None:
        body = await self._call("POST", "/signup", json={"email": email, "password": password})
        if isinstance(body, dict) and "access_token" in body:
            grant = _grant_from_session(body)
            logger.info("signed up", user_id=grant.identity.user_id)
            return grant
        logger.info("signed up, awaiting email confirmation")
        return None

    async def refresh(self, refresh_token: str) -> AuthGrant:
        body = await self._call(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return _grant_from_session(body)

    async def request_password_reset(self, email: str, redirect_to: str) -> None:
        await self._call("POST", "/recover", params={"redirect_to": redirect_to}, json={"email": email})

    async def verify_recovery(self, token_hash: str) -> AuthGrant:
        body = await self._call("POST", "/verify", json={"type": "recovery", "token_hash": token_hash})
        return _grant_from_session(body)

    async def update_password(self, access_token: str, new_password: str) -> None:
        await self._call("PUT", "/user", access_token=access_token, json={"password": new_password})

    async def sign_out(self, access_token: str) -> None:
        await self._call("POST", "/logout", access_token=access_token)
