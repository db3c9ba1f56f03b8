"""Dashboard view handlers: entry form, fault tally, recent games, and the fault trend.

Every POST redirects back to ``/`` (303) so a reload never repeats an action.
Failures are recorded as the session error and shown on the next render.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.responses import RedirectResponse, Response

from dashboard.server.csrf import validate_csrf
from dashboard.views.auth_handlers import signed_out_redirect
from dashboard.views.chart import build_trend_chart
from dashboard.views.templating import render_page
from pbstats.errors import PbStatsError, Unauthenticated, ValidationFailure
from pbstats.games.entry import current_date_time, parse_entry_form
from pbstats.games.faults import FAULT_LABELS, FaultCategory
from pbstats.games.state import ScoreSide

if TYPE_CHECKING:
    from starlette.requests import Request

    from dashboard.server.settings import DashboardSettings
    from pbstats.auth.service import AuthService
    from pbstats.games.service import GameLogService
    from pbstats.games.state import EntryState

logger = structlog.get_logger()

_DIRECTIONS = {"up": 1, "down": -1}


def parse_direction(value: str) -> int:
    try:
        return _DIRECTIONS[value]
    except KeyError:
        raise ValidationFailure(f"Unknown direction: {value!r}") from None


def _back_to_dashboard() -> Response:
    return RedirectResponse("/", status_code=303)


def _fault_rows(state: EntryState) -> list[dict[str, str | int]]:
    return [
        {
            "category": category.value,
            "title": FAULT_LABELS[category].title,
            "description": FAULT_LABELS[category].description,
            "count": state.tally.count(category),
        }
        for category in FaultCategory
    ]


async def dashboard_page(request: Request) -> Response:
    """GET / - render the dashboard, loading recent games on the session's first visit."""
    auth_service: AuthService = request.app.state.auth_service
    game_log: GameLogService = request.app.state.game_log
    settings: DashboardSettings = request.app.state.settings
    session_id = request.user.session_id

    if game_log.state(session_id).last_issued_seq == 0:
        try:
            await game_log.refresh_games(session_id, auth_service.caller_source(session_id))
        except Unauthenticated:
            return signed_out_redirect()
        except PbStatsError as e:
            logger.info("initial games load failed", error=str(e))

    state = game_log.state(session_id)
    today, now = current_date_time(settings.timezone)
    trend = game_log.trend(session_id)
    return render_page(
        request,
        "dashboard.html",
        {
            "user": request.user,
            "state": state,
            "faults": _fault_rows(state),
            "played_on": state.played_on or today.isoformat(),
            "played_time": state.played_time or f"{now:%H:%M}",
            "games": state.games,
            "trend": trend,
            "chart": build_trend_chart(trend),
        },
    )


async def add_game(request: Request) -> Response:
    """POST /games - store the entered game with the current fault tally."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id

    try:
        entry = parse_entry_form(form)
    except ValidationFailure as e:
        game_log.keep_draft(session_id, form)
        game_log.report_error(session_id, str(e))
        return _back_to_dashboard()

    try:
        await game_log.submit_game(session_id, entry, auth_service.caller_source(session_id))
    except Unauthenticated:
        return signed_out_redirect()
    except PbStatsError:
        pass  # recorded as the session error by submit_game
    return _back_to_dashboard()


async def adjust_fault(request: Request) -> Response:
    """POST /faults/{category}/{direction} - step one fault counter, keeping the typed form values."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id
    game_log.keep_draft(session_id, form)
    try:
        category = FaultCategory.parse(request.path_params["category"])
        delta = parse_direction(request.path_params["direction"])
    except ValidationFailure as e:
        game_log.report_error(session_id, str(e))
        return _back_to_dashboard()
    game_log.adjust_fault(session_id, category, delta)
    return _back_to_dashboard()


async def adjust_score(request: Request) -> Response:
    """POST /score/{side}/{direction} - step my score or the opponent's, never below zero."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id
    game_log.keep_draft(session_id, form)
    try:
        side = ScoreSide.parse(request.path_params["side"])
        delta = parse_direction(request.path_params["direction"])
    except ValidationFailure as e:
        game_log.report_error(session_id, str(e))
        return _back_to_dashboard()
    game_log.adjust_score(session_id, side, delta)
    return _back_to_dashboard()


async def refresh_games(request: Request) -> Response:
    """POST /refresh - reload the recent games list."""
    form = await request.form()
    csrf_error = validate_csrf(request, form)
    if csrf_error:
        return csrf_error

    auth_service: AuthService = request.app.state.auth_service
    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id
    try:
        await game_log.refresh_games(session_id, auth_service.caller_source(session_id))
    except Unauthenticated:
        return signed_out_redirect()
    except PbStatsError:
        pass  # recorded as the session error by refresh_games
    return _back_to_dashboard()
