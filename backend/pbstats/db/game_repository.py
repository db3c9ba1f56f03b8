"""Supabase (PostgREST) backed game repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from pbstats.dal.game_repository import GameRepository
from pbstats.dal.models import GameRecord
from pbstats.games.faults import FaultCounts
from pbstats.supabase.client import SupabaseError

if TYPE_CHECKING:
    from pbstats.auth.models import Caller
    from pbstats.dal.models import NewGame
    from pbstats.supabase.client import SupabaseClient

logger = structlog.get_logger()

# Table column -> FaultCounts field. The column names predate the category names.
FAULT_COLUMNS = {
    "serve_faults": "serve_faults",
    "return_faults": "return_faults",
    "into_net": "net_faults",
    "too_long": "long_faults",
    "setup_kill": "setup_kill_faults",
}

GAME_COLUMNS = ("id", "user_id", "played_at", "my_points", "opp_points", "location", *FAULT_COLUMNS)


def game_to_row(game: NewGame) -> dict[str, Any]:
    """Map a new game onto the table's column names."""
    row: dict[str, Any] = {
        "user_id": game.owner,
        "played_at": game.played_at.isoformat(),
        "my_points": game.my_score,
        "opp_points": game.opponent_score,
        "location": game.location,
    }
    for column, field in FAULT_COLUMNS.items():
        row[column] = getattr(game.faults, field)
    return row


def row_to_game(row: dict[str, Any]) -> GameRecord:
    """Map a table row back to a GameRecord. Null fault columns read as zero.

    Raises SupabaseError for a row with missing or malformed columns.
    """
    try:
        faults = FaultCounts(**{field: row.get(column) or 0 for column, field in FAULT_COLUMNS.items()})
        return GameRecord(
            id=row["id"],
            owner=row["user_id"],
            played_at=row["played_at"],
            my_score=row["my_points"],
            opponent_score=row["opp_points"],
            location=row.get("location"),
            faults=faults,
        )
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        logger.warning("malformed games row", game_id=row.get("id") if isinstance(row, dict) else None)
        raise SupabaseError("Unexpected game row from Supabase") from e


class SupabaseGameRepository(GameRepository):
    """Games stored in a Supabase table, filtered by owner and guarded by its row policy."""

    def __init__(self, client: SupabaseClient, table: str | None = None) -> None:
        self._client = client
        self._path = f"/rest/v1/{table or client.settings.games_table}"

    async def insert_game(self, caller: Caller, game: NewGame) -> GameRecord:
        body = await self._client.request(
            "POST",
            self._path,
            access_token=caller.access_token,
            params={"select": ",".join(GAME_COLUMNS)},
            json=game_to_row(game),
            headers={"Prefer": "return=representation"},
        )
        if not isinstance(body, list) or not body:
            raise SupabaseError("Insert returned no row")
        record = row_to_game(body[0])
        logger.info("game inserted", game_id=record.id, user_id=record.owner)
        return record

    async def get_recent_games(self, caller: Caller, limit: int) -> list[GameRecord]:
        body = await self._client.request(
            "GET",
            self._path,
            access_token=caller.access_token,
            params={
                "select": ",".join(GAME_COLUMNS),
                "user_id": f"eq.{caller.identity.user_id}",
                "order": "played_at.desc",
                "limit": str(limit),
            },
        )
        if body is None:
            return []
        if not isinstance(body, list):
            raise SupabaseError("Unexpected response shape for games query")
        return [row_to_game(row) for row in body]
