"""Tests for auth policy helpers and route validation."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
from starlette.applications import Starlette
from starlette.authentication import AuthCredentials
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.routing import Mount, Route

from dashboard.auth.policy import (
    AUTH_POLICY_ATTR,
    collect_protected_api_patterns,
    protected_api,
    protected_html,
    public_route,
    validate_route_auth_policy,
)


def _make_request(
    *,
    authenticated: bool,
    path: str = "/",
    query_string: bytes = b"",
) -> Request:
    """Build a real Starlette Request with auth scopes pre-set."""
    scopes = ["authenticated"] if authenticated else []
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": query_string,
        "headers": [],
        "root_path": "",
        "server": ("testserver", 80),
        "scheme": "http",
        "app": Starlette(),
        "auth": AuthCredentials(scopes),
    }
    return Request(scope)


async def _dummy_handler(request: Request) -> str:
    return "ok"


def _make_handler() -> object:
    """Return a fresh async handler with no attributes from prior tests."""

    async def handler(request: Request) -> str:
        return "ok"

    return handler


class TestProtectedHtml:
    async def test_unauthenticated_redirects_to_signin(self) -> None:
        result = await protected_html(_dummy_handler)(_make_request(authenticated=False))

        assert isinstance(result, RedirectResponse)
        assert result.status_code == 303
        location = result.headers["location"]
        assert location.startswith("/signin?")
        assert parse_qs(urlparse(location).query)["next"] == ["/"]

    async def test_redirect_preserves_query_string(self) -> None:
        request = _make_request(authenticated=False, path="/reset", query_string=b"token_hash=abc")

        result = await protected_html(_dummy_handler)(request)

        parsed = urlparse(result.headers["location"])
        assert parsed.path == "/signin"
        assert parse_qs(parsed.query)["next"] == ["/reset?token_hash=abc"]

    async def test_redirect_is_relative(self) -> None:
        result = await protected_html(_dummy_handler)(_make_request(authenticated=False))
        assert not result.headers["location"].startswith("http")

    async def test_authenticated_passes_through(self) -> None:
        assert await protected_html(_dummy_handler)(_make_request(authenticated=True)) == "ok"


class TestProtectedApi:
    async def test_unauthenticated_raises_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await protected_api(_dummy_handler)(_make_request(authenticated=False))

        assert exc_info.value.status_code == 401

    async def test_authenticated_passes_through(self) -> None:
        assert await protected_api(_dummy_handler)(_make_request(authenticated=True)) == "ok"


class TestPublicRoute:
    async def test_does_not_block_unauthenticated(self) -> None:
        assert await public_route(_dummy_handler)(_make_request(authenticated=False)) == "ok"

    def test_marker_is_on_wrapper_only(self) -> None:
        handler = _make_handler()
        wrapped = public_route(handler)

        assert getattr(wrapped, AUTH_POLICY_ATTR) == "public"
        assert not hasattr(handler, AUTH_POLICY_ATTR)


class TestValidateRouteAuthPolicy:
    def test_all_routes_classified_passes(self) -> None:
        routes = [
            Route("/a", public_route(_make_handler()), methods=["GET"], name="a"),
            Route("/b", protected_api(_make_handler()), methods=["GET"], name="b"),
            Route("/c", protected_html(_make_handler()), methods=["GET"], name="c"),
        ]

        validate_route_auth_policy(routes)

    def test_unclassified_route_raises_with_path_and_name(self) -> None:
        routes = [
            Route("/ok", public_route(_make_handler()), methods=["GET"], name="ok"),
            Route("/missing", _make_handler(), methods=["GET"], name="missing_route"),
        ]

        with pytest.raises(RuntimeError, match=r"Unclassified routes missing auth policy: /missing \(missing_route\)"):
            validate_route_auth_policy(routes)

    def test_mount_is_exempt(self) -> None:
        routes = [
            Route("/a", public_route(_make_handler()), methods=["GET"], name="a"),
            Mount("/static", app=Starlette(), name="static"),
        ]

        validate_route_auth_policy(routes)

    def test_multiple_unclassified_routes_all_reported(self) -> None:
        routes = [
            Route("/x", _make_handler(), methods=["GET"], name="x"),
            Route("/y", _make_handler(), methods=["POST"], name="y"),
        ]

        with pytest.raises(RuntimeError, match="/x") as exc_info:
            validate_route_auth_policy(routes)
        assert "/y" in str(exc_info.value)


class TestCollectProtectedApiPatterns:
    def test_collects_only_protected_api_routes(self) -> None:
        routes = [
            Route("/api/games", protected_api(_make_handler()), methods=["GET"], name="games"),
            Route("/api/trend", protected_api(_make_handler()), methods=["GET"], name="trend"),
            Route("/", protected_html(_make_handler()), methods=["GET"], name="index"),
            Route("/health", public_route(_make_handler()), methods=["GET"], name="health"),
            Mount("/static", app=Starlette(), name="static"),
        ]

        patterns = collect_protected_api_patterns(routes)

        assert [p.pattern for p in patterns] == ["^/api/games$", "^/api/trend$"]

    def test_patterns_match_concrete_paths_of_parametrized_routes(self) -> None:
        routes = [Route("/api/tally/{category}/{direction}", protected_api(_make_handler()), methods=["POST"])]

        [pattern] = collect_protected_api_patterns(routes)

        assert pattern.match("/api/tally/net/up")
        assert not pattern.match("/api/tally")
