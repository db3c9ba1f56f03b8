"""Auth endpoints: sign in, sign up, password reset, and sign out."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import RedirectResponse, Response

from dashboard.auth.backend import SESSION_COOKIE_NAME
from dashboard.auth.policy import SIGNIN_PATH
from dashboard.server.csrf import validate_csrf
from dashboard.views.templating import render_page
from pbstats.errors import IdentityError, Unauthenticated, ValidationFailure

if TYPE_CHECKING:
    from starlette.datastructures import FormData
    from starlette.requests import Request

    from dashboard.server.settings import DashboardSettings
    from pbstats.auth.models import AuthSession
    from pbstats.auth.service import AuthService

RESET_PATH = "/reset"
RESET_EMAIL_SENT = "Check your email for a password reset link."
CONFIRM_EMAIL_SENT = "Check your email to confirm your account, then sign in."


def safe_next_path(value: object) -> str:
    """Return ``value`` if it is a same-site absolute path, otherwise ``/``."""
    if isinstance(value, str) and value.startswith("/") and not value.startswith("//") and "\\" not in value:
        return value
    return "/"


def set_session_cookie(response: Response, session: AuthSession, settings: DashboardSettings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.session_id,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def signed_out_redirect() -> Response:
    """Send the browser to the sign-in page and drop its session cookie."""
    response = RedirectResponse(SIGNIN_PATH, status_code=303)
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return response


def _redirect_with_session_cookie(request: Request, session: AuthSession, location: str = "/") -> Response:
    response = RedirectResponse(location, status_code=303)
    set_session_cookie(response, session, request.app.state.settings)
    return response


def _render_signin(
    request: Request,
    *,
    mode: str = "signin",
    email: str = "",
    next_path: str = "/",
    error: str | None = None,
    info: str | None = None,
) -> Response:
    return render_page(
        request,
        "signin.html",
        {"mode": mode, "email": email, "next": next_path, "error": error, "info": info},
    )


def _credentials(form: FormData) -> tuple[str, str]:
    return str(form.get("email", "")), str(form.get("password", ""))


async def signin_page(request: Request) -> Response:
    """GET /signin - render the sign-in form, or the sign-up form with ``?mode=signup``."""
    if request.user.is_authenticated:
        return RedirectResponse("/", status_code=303)
    mode = "signup" if request.query_params.get("mode") == "signup" else "signin"
    return _render_signin(request, mode=mode, next_path=safe_next_path(request.query_params.get("next")))


async def signin(request: Request) -> Response:
    """POST /signin - check credentials with the identity service, set the session cookie, redirect."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    email, password = _credentials(form)
    next_path = safe_next_path(form.get("next"))
    try:
        session = await auth_service.sign_in(email, password)
    except (ValidationFailure, IdentityError) as e:
        return _render_signin(request, email=email, next_path=next_path, error=str(e))

    return _redirect_with_session_cookie(request, session, next_path)


async def signup(request: Request) -> Response:
    """POST /signup - create an account; sign in directly unless email confirmation is required."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    email, password = _credentials(form)
    confirm = form.get("confirm_password")
    try:
        session = await auth_service.sign_up(email, password, None if confirm is None else str(confirm))
    except (ValidationFailure, IdentityError) as e:
        return _render_signin(request, mode="signup", email=email, error=str(e))

    if session is None:
        return _render_signin(request, email=email, info=CONFIRM_EMAIL_SENT)
    return _redirect_with_session_cookie(request, session)


async def forgot_password(request: Request) -> Response:
    """POST /forgot-password - email a recovery link pointing back at /reset."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    settings: DashboardSettings = request.app.state.settings
    email = str(form.get("email", ""))
    try:
        await auth_service.request_password_reset(email, f"{settings.site_url}{RESET_PATH}")
    except (ValidationFailure, IdentityError) as e:
        return _render_signin(request, email=email, error=str(e))
    return _render_signin(request, email=email, info=RESET_EMAIL_SENT)


async def reset_page(request: Request) -> Response:
    """GET /reset - open a session from a recovery link and show the new-password form.

    Signed-in users may open the form without a link.
    """
    auth_service: AuthService = request.app.state.auth_service
    token_hash = request.query_params.get("token_hash")
    if not token_hash:
        if not request.user.is_authenticated:
            return RedirectResponse(SIGNIN_PATH, status_code=303)
        return render_page(request, "reset.html", {"error": None})

    try:
        session = await auth_service.recover(token_hash)
    except (ValidationFailure, IdentityError) as e:
        return _render_signin(request, error=str(e))

    response = render_page(request, "reset.html", {"error": None})
    set_session_cookie(response, session, request.app.state.settings)
    return response


async def reset_password(request: Request) -> Response:
    """POST /reset - set a new password for the signed-in user, then go to the dashboard."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    try:
        await auth_service.update_password(
            request.user.session_id,
            str(form.get("password", "")),
            str(form.get("confirm_password", "")),
        )
    except Unauthenticated:
        return signed_out_redirect()
    except (ValidationFailure, IdentityError) as e:
        return render_page(request, "reset.html", {"error": str(e)})
    return RedirectResponse("/", status_code=303)


async def logout(request: Request) -> Response:
    """POST /logout - end the session here and at the identity service; its entry state goes with it."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if session_id:
        await auth_service.sign_out(session_id)
    return signed_out_redirect()
