"""Abstract interface for the identity service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pbstats.auth.models import AuthGrant, Identity


class IdentityProvider(ABC):
    """Sign-up, sign-in and password management delegated to a hosted service.

    Methods raise IdentityError carrying the service's message on rejection.
    """

    @abstractmethod
    async def get_user(self, access_token: str) -> Identity | None:
        """Resolve the user behind an access token; None when the token is no longer valid."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthGrant: ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthGrant | None:
        """Create an account. Returns None when the service requires email confirmation first."""

    @abstractmethod
    async def refresh(self, refresh_token: str) -> AuthGrant: ...

    @abstractmethod
    async def request_password_reset(self, email: str, redirect_to: str) -> None: ...

    @abstractmethod
    async def verify_recovery(self, token_hash: str) -> AuthGrant:
        """Exchange a password recovery link token for a signed-in grant."""

    @abstractmethod
    async def update_password(self, access_token: str, new_password: str) -> None: ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None: ...
