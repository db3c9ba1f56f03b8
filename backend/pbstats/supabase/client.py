"""Thin async wrapper over httpx for Supabase auth and REST calls."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog

if TYPE_CHECKING:
    from pbstats.supabase.settings import SupabaseSettings

logger = structlog.get_logger()

# Statuses GoTrue answers with when it rejects an access token.
_INVALID_TOKEN_STATUSES = frozenset({HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN})

# Keys Supabase services use for a human-readable error, in lookup order.
# GoTrue uses error_description/msg, PostgREST uses message.
_ERROR_MESSAGE_KEYS = ("error_description", "msg", "message", "error")


class SupabaseError(Exception):
    """A Supabase request failed, either on the network or with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_invalid_token(self) -> bool:
        return self.status_code in _INVALID_TOKEN_STATUSES


def error_message(response: httpx.Response) -> str:
    """Extract the service's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    if text:
        return text
    return f"Request failed with status {response.status_code}"


class SupabaseClient:
    """Shared HTTP client for one Supabase project.

    Every request carries the anon key. Calls made on behalf of a signed-in
    user also pass that user's access token so row policies apply.
    """

    def __init__(
        self,
        settings: SupabaseSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._http = httpx.AsyncClient(
            base_url=settings.url,
            timeout=settings.timeout_seconds,
            headers={"apikey": settings.anon_key},
            transport=transport,
        )

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    async def request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,  # noqa: ANN401
        headers: dict[str, str] | None = None,
    ) -> Any:  # noqa: ANN401
        """Send a request and return the decoded JSON body (None when empty).

        Raises SupabaseError for transport failures and non-2xx responses,
        and when a 2xx body is not JSON.
        """
        request_headers = {"Authorization": f"Bearer {access_token or self._settings.anon_key}"}
        if headers:
            request_headers.update(headers)
        try:
            response = await self._http.request(method, path, params=params, json=json, headers=request_headers)
        except httpx.RequestError as e:
            logger.warning("supabase request failed", method=method, path=path, error=str(e))
            raise SupabaseError(f"Network error: {e}") from e

        if response.is_error:
            message = error_message(response)
            logger.info("supabase returned error", method=method, path=path, status=response.status_code)
            raise SupabaseError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("supabase returned non-json body", method=method, path=path, status=response.status_code)
            raise SupabaseError("Unexpected non-JSON response from Supabase", status_code=response.status_code) from e

    async def aclose(self) -> None:
        await self._http.aclose()
