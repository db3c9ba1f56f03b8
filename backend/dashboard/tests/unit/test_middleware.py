"""Tests for dashboard server middleware."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from dashboard.server.middleware import (
    SECURITY_HEADERS,
    SecurityHeadersMiddleware,
    SlashNormalizationMiddleware,
)

if TYPE_CHECKING:
    from starlette.requests import Request


async def _echo_path(request: Request) -> JSONResponse:
    return JSONResponse({"path": request.url.path})


@pytest.fixture
def slash_client() -> TestClient:
    app = Starlette(routes=[Route("/api/games", _echo_path, methods=["GET"])])
    app.add_middleware(SlashNormalizationMiddleware)
    return TestClient(app)


@pytest.fixture
def security_client() -> TestClient:
    app = Starlette(routes=[Route("/items", _echo_path, methods=["GET"])])
    app.add_middleware(SecurityHeadersMiddleware)
    return TestClient(app)


class TestSlashNormalizationMiddleware:
    def test_trailing_slash_stripped(self, slash_client: TestClient) -> None:
        response = slash_client.get("/api/games/", follow_redirects=False)
        assert response.status_code == 200
        assert response.json() == {"path": "/api/games"}

    def test_no_trailing_slash_unchanged(self, slash_client: TestClient) -> None:
        response = slash_client.get("/api/games")
        assert response.json() == {"path": "/api/games"}

    def test_root_path_preserved(self, slash_client: TestClient) -> None:
        assert slash_client.get("/").status_code == 404


class TestSecurityHeadersMiddleware:
    def test_headers_present_on_success(self, security_client: TestClient) -> None:
        response = security_client.get("/items")
        assert response.status_code == 200
        for name, value in SECURITY_HEADERS:
            assert response.headers[name.decode()] == value.decode()

    def test_headers_present_on_404(self, security_client: TestClient) -> None:
        response = security_client.get("/nonexistent")
        assert response.status_code == 404
        for name, value in SECURITY_HEADERS:
            assert response.headers[name.decode()] == value.decode()

    def test_csp_forbids_framing_and_foreign_forms(self, security_client: TestClient) -> None:
        csp = security_client.get("/items").headers["content-security-policy"]
        assert "frame-ancestors 'none'" in csp
        assert "form-action 'self'" in csp
        assert "script-src 'self'" in csp
