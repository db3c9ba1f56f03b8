"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit auth policy.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from starlette.authentication import has_required_scope, requires
from starlette.responses import RedirectResponse
from starlette.routing import Mount, Route

if TYPE_CHECKING:
    import re
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    Endpoint = Callable[..., Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"
SIGNIN_PATH = "/signin"


def _signin_redirect(request: Request) -> RedirectResponse:
    """Relative redirect to the sign-in page carrying the original path as ``next``."""
    next_path = request.url.path
    if request.url.query:
        next_path = f"{next_path}?{request.url.query}"
    return RedirectResponse(url=f"{SIGNIN_PATH}?{urlencode({'next': next_path})}", status_code=303)


def protected_html(endpoint: Endpoint) -> Endpoint:
    """Require a session; send everyone else to the sign-in page.

    The redirect URL is relative. Starlette's ``requires(redirect=...)``
    builds an absolute URL from the Host header, which the client controls.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            return _signin_redirect(request)
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "protected_html")
    return wrapper


def protected_api(endpoint: Endpoint) -> Endpoint:
    """Require a session; raise 401 for unauthenticated API requests."""
    wrapped = requires("authenticated", status_code=401)(endpoint)
    setattr(wrapped, AUTH_POLICY_ATTR, "protected_api")
    return wrapped


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as explicitly public.

    The marker goes on a thin wrapper, so reusing the same function on
    another route without wrapping it does not make that route public.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "public")
    return wrapper


def collect_protected_api_patterns(routes: list[BaseRoute]) -> list[re.Pattern[str]]:
    """Return the path regexes of routes marked ``protected_api``, path parameters included."""
    return [
        route.path_regex
        for route in routes
        if isinstance(route, Route) and getattr(route.endpoint, AUTH_POLICY_ATTR, None) == "protected_api"
    ]


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Raise RuntimeError listing every Route without an auth policy marker. Mounts are exempt."""
    unclassified: list[str] = []
    for route in routes:
        if isinstance(route, Mount):
            continue
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR):
            name = route.name or getattr(route.endpoint, "__name__", "unknown")
            unclassified.append(f"{route.path} ({name})")

    if unclassified:
        msg = f"Unclassified routes missing auth policy: {', '.join(unclassified)}"
        raise RuntimeError(msg)
