"""Recent games query: the caller's latest games, newest first."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pbstats.errors import IdentityError, RetrievalFailure, Unauthenticated
from pbstats.supabase.client import SupabaseError

if TYPE_CHECKING:
    from pbstats.auth.models import CallerSource
    from pbstats.dal.game_repository import GameRepository
    from pbstats.dal.models import GameRecord

RECENT_GAMES_LIMIT = 25

logger = structlog.get_logger()


class RecentGamesQuery:
    def __init__(self, repo: GameRepository, limit: int = RECENT_GAMES_LIMIT) -> None:
        self._repo = repo
        self._limit = limit

    async def fetch(self, caller_source: CallerSource) -> list[GameRecord]:
        """Return up to the limit of the caller's games ordered by play time descending.

        No games is an empty list. Raises Unauthenticated without a caller and
        RetrievalFailure when the identity check or the query fails.
        """
        try:
            caller = await caller_source()
        except IdentityError as e:
            raise RetrievalFailure(str(e)) from e
        if caller is None:
            raise Unauthenticated

        try:
            games = await self._repo.get_recent_games(caller, self._limit)
        except SupabaseError as e:
            logger.warning("recent games query failed", user_id=caller.identity.user_id, error=str(e))
            raise RetrievalFailure(str(e)) from e
        # sorted() is stable: ties keep the store's order.
        return sorted(games, key=lambda g: g.played_at, reverse=True)[: self._limit]
