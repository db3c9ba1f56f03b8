"""CSRF protection for dashboard form posts using the double-submit cookie pattern.

Every rendered page carries the token from the ``csrf_token`` cookie in a
hidden form field; a state-changing POST is accepted only when the two
match. JSON API routes are exempt: bodies must be sent as
``application/json``, which a cross-site form cannot do, and the session
cookie is ``SameSite=lax`` so cross-site posts arrive without it.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from starlette.responses import PlainTextResponse

if TYPE_CHECKING:
    from starlette.datastructures import FormData
    from starlette.requests import Request
    from starlette.responses import Response

CSRF_COOKIE_NAME = "csrf_token"
CSRF_FORM_FIELD = "csrf_token"


def get_or_create_csrf_token(request: Request) -> tuple[str, bool]:
    """Return (token, is_new); is_new means the cookie still has to be set."""
    token = request.cookies.get(CSRF_COOKIE_NAME)
    if token:
        return token, False
    return secrets.token_urlsafe(32), True


def set_csrf_cookie(response: Response, token: str, *, cookie_secure: bool) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=cookie_secure,
        path="/",
    )


def validate_csrf(request: Request, form_data: FormData) -> PlainTextResponse | None:
    """Return a 403 response when the form token is missing or differs from the cookie, else None."""
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    form_token = form_data.get(CSRF_FORM_FIELD)
    if not cookie_token or not isinstance(form_token, str) or not form_token:
        return PlainTextResponse("CSRF validation failed", status_code=403)
    if not secrets.compare_digest(cookie_token, form_token):
        return PlainTextResponse("CSRF validation failed", status_code=403)
    return None
