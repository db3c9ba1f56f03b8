from __future__ import annotations

import contextlib
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from dashboard.auth.backend import SessionBackend
from dashboard.auth.policy import (
    collect_protected_api_patterns,
    protected_api,
    protected_html,
    public_route,
    validate_route_auth_policy,
)
from dashboard.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from dashboard.server.settings import DashboardSettings
from dashboard.views import (
    add_game,
    adjust_fault,
    adjust_score,
    adjust_tally,
    create_game,
    create_templates,
    dashboard_page,
    forgot_password,
    get_tally,
    get_trend,
    list_games,
    logout,
    refresh_games,
    reset_page,
    reset_password,
    signin,
    signin_page,
    signup,
)
from pbstats.auth import AuthService, AuthSessionStore, SupabaseIdentityProvider
from pbstats.db import SupabaseGameRepository
from pbstats.games.service import GameLogService
from pbstats.logging import setup_logging
from pbstats.supabase import SupabaseClient, SupabaseSettings

logger = structlog.get_logger()

if TYPE_CHECKING:
    import re
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request

    from pbstats.auth.provider import IdentityProvider
    from pbstats.dal.game_repository import GameRepository


def _is_protected_api(path: str, patterns: list[re.Pattern[str]]) -> bool:
    return any(pattern.match(path) for pattern in patterns)


def _make_auth_error_handler(
    protected_api_patterns: list[re.Pattern[str]],
) -> Callable[[Request, Exception], Awaitable[Response]]:
    """Build an HTTPException handler that rewrites 401s on protected JSON endpoints."""

    async def _auth_error_handler(request: Request, exc: Exception) -> Response:
        """Answer 401s on protected JSON endpoints in JSON; other errors keep Starlette's plain text."""
        http_exc = cast("HTTPException", exc)
        is_api = _is_protected_api(request.url.path, protected_api_patterns)
        if http_exc.status_code == HTTPStatus.UNAUTHORIZED and is_api:
            return JSONResponse({"error": "Authentication required"}, status_code=HTTPStatus.UNAUTHORIZED)
        if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
            return Response(status_code=http_exc.status_code, headers=http_exc.headers)
        return PlainTextResponse(http_exc.detail or "", status_code=http_exc.status_code, headers=http_exc.headers)

    return _auth_error_handler


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(
    settings: DashboardSettings | None = None,
    supabase_settings: SupabaseSettings | None = None,  # required in production (via get_app)
    *,
    identity_provider: IdentityProvider | None = None,
    game_repo: GameRepository | None = None,
) -> Starlette:
    """Build the dashboard app.

    The identity provider and game repository default to the Supabase
    implementations; tests pass in-memory ones instead.
    """
    if settings is None:  # pragma: no cover
        settings = DashboardSettings()
    if supabase_settings is None and (identity_provider is None or game_repo is None):  # pragma: no cover
        supabase_settings = SupabaseSettings()  # type: ignore[call-arg]

    routes = [
        # Protected HTML routes (redirect to /signin when unauthenticated)
        Route("/", protected_html(dashboard_page), methods=["GET"], name="dashboard_page"),
        Route("/games", protected_html(add_game), methods=["POST"], name="add_game"),
        Route(
            "/faults/{category}/{direction}",
            protected_html(adjust_fault),
            methods=["POST"],
            name="adjust_fault",
        ),
        Route("/score/{side}/{direction}", protected_html(adjust_score), methods=["POST"], name="adjust_score"),
        Route("/refresh", protected_html(refresh_games), methods=["POST"], name="refresh_games"),
        Route("/reset", protected_html(reset_password), methods=["POST"], name="reset_password"),
        # Protected JSON routes (return 401 JSON when unauthenticated)
        Route("/api/games", protected_api(list_games), methods=["GET"], name="list_games"),
        Route("/api/games", protected_api(create_game), methods=["POST"], name="create_game"),
        Route("/api/tally", protected_api(get_tally), methods=["GET"], name="get_tally"),
        Route(
            "/api/tally/{category}/{direction}",
            protected_api(adjust_tally),
            methods=["POST"],
            name="adjust_tally",
        ),
        Route("/api/trend", protected_api(get_trend), methods=["GET"], name="get_trend"),
        # Public routes
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/signin", public_route(signin_page), methods=["GET"], name="signin_page"),
        Route("/signin", public_route(signin), methods=["POST"], name="signin"),
        Route("/signup", public_route(signup), methods=["POST"], name="signup"),
        Route("/forgot-password", public_route(forgot_password), methods=["POST"], name="forgot_password"),
        Route("/reset", public_route(reset_page), methods=["GET"], name="reset_page"),
        Route("/logout", public_route(logout), methods=["POST"], name="logout"),
    ]

    validate_route_auth_policy(routes)
    protected_api_patterns = collect_protected_api_patterns(routes)

    client = SupabaseClient(supabase_settings) if supabase_settings is not None else None
    if identity_provider is None:
        identity_provider = SupabaseIdentityProvider(cast("SupabaseClient", client))
    if game_repo is None:
        game_repo = SupabaseGameRepository(cast("SupabaseClient", client))

    game_log = GameLogService(game_repo, tz=settings.timezone)
    session_store = AuthSessionStore(ttl_seconds=settings.session_ttl_seconds, on_remove=game_log.close)
    auth_service = AuthService(identity_provider, session_store)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:  # pragma: no cover
        session_store.start_cleanup()
        yield
        await session_store.stop_cleanup()
        if client is not None:
            await client.aclose()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={HTTPException: _make_auth_error_handler(protected_api_patterns)},
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(AuthenticationMiddleware, backend=SessionBackend(auth_service))  # type: ignore[arg-type]
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=True,
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.settings = settings
    app.state.templates = create_templates(settings.timezone)
    app.state.auth_service = auth_service
    app.state.game_log = game_log

    logger.info("dashboard server ready", timezone=settings.display_timezone or "local")
    return app


def get_app() -> Starlette:  # pragma: no cover  # deadcode: ignore
    """Factory function for uvicorn --factory dashboard.server.app:get_app."""
    s = DashboardSettings()
    supabase = SupabaseSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, supabase_settings=supabase)
