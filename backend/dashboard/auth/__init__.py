"""Dashboard authentication: Starlette backend, user model, and route policy."""

from dashboard.auth.backend import SESSION_COOKIE_NAME, SessionBackend
from dashboard.auth.models import AuthenticatedUser
from dashboard.auth.policy import (
    collect_protected_api_patterns,
    protected_api,
    protected_html,
    public_route,
    validate_route_auth_policy,
)

__all__ = [
    "SESSION_COOKIE_NAME",
    "AuthenticatedUser",
    "SessionBackend",
    "collect_protected_api_patterns",
    "protected_api",
    "protected_html",
    "public_route",
    "validate_route_auth_policy",
]
