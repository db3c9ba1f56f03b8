"""Abstract interface for game persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pbstats.auth.models import Caller
    from pbstats.dal.models import GameRecord, NewGame


class GameRepository(ABC):
    """Owner-scoped game storage.

    Implementations act as the caller so the store's row policy decides
    which rows are visible and writable. Failures raise SupabaseError
    carrying a readable message.
    """

    @abstractmethod
    async def insert_game(self, caller: Caller, game: NewGame) -> GameRecord: ...

    @abstractmethod
    async def get_recent_games(self, caller: Caller, limit: int) -> list[GameRecord]:
        """Return up to ``limit`` of the caller's games, most recently played first."""
