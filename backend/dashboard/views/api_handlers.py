"""JSON API over the same session state as the dashboard page.

Errors come back as ``{"error": message}`` with 400 (bad input), 401 (no
identity), or 502 (the hosted service failed).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from starlette.responses import JSONResponse

from dashboard.views.dashboard_handlers import parse_direction
from dashboard.views.errors import error_response
from pbstats.errors import PbStatsError, ValidationFailure
from pbstats.games.entry import parse_entry_form
from pbstats.games.faults import FaultCategory

if TYPE_CHECKING:
    from starlette.requests import Request

    from pbstats.auth.service import AuthService
    from pbstats.dal.models import GameRecord
    from pbstats.games.service import GameLogService
    from pbstats.games.state import EntryState


def game_to_json(game: GameRecord) -> dict[str, Any]:
    return {
        "id": game.id,
        "played_at": game.played_at.isoformat(),
        "my_score": game.my_score,
        "opponent_score": game.opponent_score,
        "location": game.location,
        "faults": {category.value: game.faults.count(category) for category in FaultCategory},
    }


def _tally_to_json(state: EntryState) -> dict[str, int]:
    return {category.value: state.tally.count(category) for category in FaultCategory}


async def _json_object(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "application/json":
        raise ValidationFailure("Content-Type must be application/json")
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError):  # fmt: skip
        raise ValidationFailure("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ValidationFailure("JSON body must be an object")
    return body


async def list_games(request: Request) -> JSONResponse:
    """GET /api/games - reload and return the caller's recent games, newest first."""
    auth_service: AuthService = request.app.state.auth_service
    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id
    try:
        games = await game_log.refresh_games(session_id, auth_service.caller_source(session_id))
    except PbStatsError as e:
        return error_response(e)
    return JSONResponse({"games": [game_to_json(game) for game in games]})


async def create_game(request: Request) -> JSONResponse:
    """POST /api/games - store a game with the session's fault tally.

    Body: ``{"date": "YYYY-MM-DD", "time": "HH:MM", "my_score": 11,
    "opponent_score": 8, "location": "..."}``.
    """
    auth_service: AuthService = request.app.state.auth_service
    game_log: GameLogService = request.app.state.game_log
    session_id = request.user.session_id
    try:
        entry = parse_entry_form(await _json_object(request))
        game = await game_log.submit_game(session_id, entry, auth_service.caller_source(session_id))
    except PbStatsError as e:
        return error_response(e)
    return JSONResponse(
        {"game": game_to_json(game), "tally": _tally_to_json(game_log.state(session_id))},
        status_code=201,
    )


async def get_tally(request: Request) -> JSONResponse:
    """GET /api/tally - the fault counts of the game being entered."""
    game_log: GameLogService = request.app.state.game_log
    return JSONResponse({"tally": _tally_to_json(game_log.state(request.user.session_id))})


async def adjust_tally(request: Request) -> JSONResponse:
    """POST /api/tally/{category}/{direction} - step one fault counter."""
    game_log: GameLogService = request.app.state.game_log
    try:
        category = FaultCategory.parse(request.path_params["category"])
        delta = parse_direction(request.path_params["direction"])
    except PbStatsError as e:
        return error_response(e)
    state = game_log.adjust_fault(request.user.session_id, category, delta)
    return JSONResponse({"tally": _tally_to_json(state)})


async def get_trend(request: Request) -> JSONResponse:
    """GET /api/trend - chart rows of running fault averages over the loaded games, oldest first."""
    game_log: GameLogService = request.app.state.game_log
    points = game_log.trend(request.user.session_id)
    return JSONResponse({"trend": [point.as_chart_row() for point in points]})
