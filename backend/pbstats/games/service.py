"""Game log service: tally edits, game submission, recent games refresh, and trends.

Control flow per session: adjust the tally, submit the game, refresh the
recent games, recompute the trend. Failures are recorded as the session's
error message and re-raised to the calling view.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from pbstats.errors import PbStatsError
from pbstats.games import state as entry_state
from pbstats.games.entry import GameEntryBuilder
from pbstats.games.recent import RECENT_GAMES_LIMIT, RecentGamesQuery
from pbstats.games.state import EntryState, EntryStateStore
from pbstats.games.trend import aggregate_fault_trend

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import tzinfo

    from pbstats.auth.models import CallerSource
    from pbstats.dal.game_repository import GameRepository
    from pbstats.dal.models import GameRecord
    from pbstats.games.entry import GameEntryForm
    from pbstats.games.faults import FaultCategory
    from pbstats.games.state import ScoreSide
    from pbstats.games.trend import TrendPoint

logger = structlog.get_logger()


class GameLogService:
    def __init__(
        self,
        repo: GameRepository,
        *,
        tz: tzinfo | None = None,
        recent_limit: int = RECENT_GAMES_LIMIT,
        states: EntryStateStore | None = None,
    ) -> None:
        self._builder = GameEntryBuilder(repo, tz)
        self._recent = RecentGamesQuery(repo, recent_limit)
        self._states = states if states is not None else EntryStateStore()
        self._tz = tz

    def state(self, session_id: str) -> EntryState:
        return self._states.open(session_id)

    def close(self, session_id: str) -> None:
        """Forget a session's state; results still in flight for it are dropped."""
        self._states.discard(session_id)

    def report_error(self, session_id: str, message: str) -> EntryState:
        """Show a message raised before any service call, such as a form that did not parse."""
        return self._states.put(session_id, entry_state.with_error(self.state(session_id), message))

    def keep_draft(self, session_id: str, data: Mapping[str, Any]) -> EntryState:
        """Hold the raw values of an entry that was not submitted; unreadable scores keep their last value."""
        current = self.state(session_id)
        return self._states.put(
            session_id,
            entry_state.with_draft(
                current,
                my_score=_score_or(data.get("my_score"), current.my_score),
                opponent_score=_score_or(data.get("opponent_score"), current.opponent_score),
                location=str(data.get("location") or "").strip(),
                played_on=str(data.get("date") or "").strip(),
                played_time=str(data.get("time") or "").strip(),
            ),
        )

    def adjust_fault(self, session_id: str, category: FaultCategory, delta: int) -> EntryState:
        current = self.state(session_id)
        return self._states.put(session_id, entry_state.with_tally(current, current.tally.adjust(category, delta)))

    def adjust_score(self, session_id: str, side: ScoreSide, delta: int) -> EntryState:
        return self._states.put(session_id, entry_state.adjust_score(self.state(session_id), side, delta))

    async def submit_game(self, session_id: str, form: GameEntryForm, caller_source: CallerSource) -> GameRecord:
        """Store the game with the current tally, then reset the tally and refresh.

        On failure the tally and form values are kept so the user can retry,
        the message becomes the session error, and the error is re-raised.
        A failing refresh after a successful insert only sets the session error.
        """
        current = self._states.put(
            session_id,
            entry_state.remember_form(self.state(session_id), form),
        )
        try:
            record = await self._builder.submit(form, current.tally.snapshot(), caller_source)
        except PbStatsError as e:
            logger.info("game submission failed", error=str(e))
            self._states.update(session_id, lambda s: entry_state.with_error(s, str(e)))
            raise

        logger.info("game submitted", game_id=record.id)
        if self._states.update(session_id, lambda s: entry_state.with_tally(s, s.tally.reset())) is None:
            return record
        try:
            await self.refresh_games(session_id, caller_source)
        except PbStatsError:
            logger.info("refresh after submission failed", game_id=record.id)
        return record

    async def refresh_games(self, session_id: str, caller_source: CallerSource) -> list[GameRecord]:
        """Reload the recent games list.

        The result is applied to the session only if no newer fetch has been
        applied meanwhile. On failure the previous list stays and the error is
        recorded and re-raised.
        """
        current, seq = entry_state.begin_fetch(self.state(session_id))
        self._states.put(session_id, current)
        try:
            games = await self._recent.fetch(caller_source)
        except PbStatsError as e:
            self._states.update(session_id, lambda s: entry_state.apply_fetch_error(s, seq, str(e)))
            raise
        self._states.update(session_id, lambda s: entry_state.apply_games(s, seq, games))
        return games

    def trend(self, session_id: str) -> list[TrendPoint]:
        return aggregate_fault_trend(self.state(session_id).games, self._tz)


def _score_or(value: Any, fallback: int) -> int:  # noqa: ANN401
    try:
        return int(str(value).strip())
    except ValueError:
        return fallback
