"""Per-session entry state and the pure functions that update it.

EntryState is frozen. Each update function takes a state and returns a new
one, and EntryStateStore swaps the stored value per session. Fetches are
numbered; a result is applied only when it is newer than the last result
applied, so a slow, older fetch cannot overwrite a fresher list.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from pbstats.dal.models import GameRecord
from pbstats.errors import ValidationFailure
from pbstats.games.entry import DEFAULT_MY_SCORE, DEFAULT_OPPONENT_SCORE
from pbstats.games.faults import FaultTally

if TYPE_CHECKING:
    from collections.abc import Callable

    from pbstats.games.entry import GameEntryForm

logger = structlog.get_logger()


class ScoreSide(StrEnum):
    MINE = "mine"
    OPPONENT = "opponent"

    @classmethod
    def parse(cls, name: str) -> ScoreSide:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValidationFailure(f"Unknown score side: {name!r}") from None


class EntryState(BaseModel, frozen=True):
    """Everything the dashboard shows for one signed-in session."""

    tally: FaultTally = Field(default_factory=FaultTally)
    my_score: int = Field(default=DEFAULT_MY_SCORE, ge=0)
    opponent_score: int = Field(default=DEFAULT_OPPONENT_SCORE, ge=0)
    location: str = ""
    # Date and time as last typed (YYYY-MM-DD, HH:MM); empty means today and now.
    played_on: str = ""
    played_time: str = ""
    games: tuple[GameRecord, ...] = ()
    games_loaded: bool = False
    error: str | None = None
    last_issued_seq: int = 0
    last_applied_seq: int = 0


def with_tally(state: EntryState, tally: FaultTally) -> EntryState:
    return state.model_copy(update={"tally": tally})


def adjust_score(state: EntryState, side: ScoreSide, delta: int) -> EntryState:
    """Step a score up or down; scores never go below zero."""
    field = "my_score" if side == ScoreSide.MINE else "opponent_score"
    return state.model_copy(update={field: max(0, getattr(state, field) + delta)})


def with_draft(
    state: EntryState,
    *,
    my_score: int,
    opponent_score: int,
    location: str,
    played_on: str,
    played_time: str,
) -> EntryState:
    """Keep unsubmitted form values across page loads."""
    return state.model_copy(
        update={
            "my_score": max(0, my_score),
            "opponent_score": max(0, opponent_score),
            "location": location,
            "played_on": played_on,
            "played_time": played_time,
        },
    )


def remember_form(state: EntryState, form: GameEntryForm) -> EntryState:
    """Keep the submitted values so a failed or repeated entry starts from them, and clear the last error."""
    state = with_draft(
        state,
        my_score=form.my_score,
        opponent_score=form.opponent_score,
        location=form.location or "",
        played_on=form.played_on.isoformat(),
        played_time=f"{form.played_time:%H:%M}",
    )
    return state.model_copy(update={"error": None})


def with_error(state: EntryState, message: str) -> EntryState:
    return state.model_copy(update={"error": message})


def begin_fetch(state: EntryState) -> tuple[EntryState, int]:
    """Issue the next fetch sequence number and clear the previous error."""
    seq = state.last_issued_seq + 1
    return state.model_copy(update={"last_issued_seq": seq, "error": None}), seq


def apply_games(state: EntryState, seq: int, games: list[GameRecord]) -> EntryState:
    """Apply a fetch result unless a newer result was applied already."""
    if seq <= state.last_applied_seq:
        return state
    return state.model_copy(update={"games": tuple(games), "games_loaded": True, "last_applied_seq": seq})


def apply_fetch_error(state: EntryState, seq: int, message: str) -> EntryState:
    """Record a failed fetch. The previously loaded games stay in place."""
    if seq <= state.last_applied_seq:
        return state
    return state.model_copy(update={"error": message, "last_applied_seq": seq})


class EntryStateStore:
    """Process-local EntryState per auth session id.

    Updates for a session that has been discarded (signed out) are dropped,
    which is how results of abandoned in-flight calls are ignored.
    """

    def __init__(self) -> None:
        self._states: dict[str, EntryState] = {}

    def open(self, session_id: str) -> EntryState:
        """Return the session's state, creating a fresh one on first use."""
        state = self._states.get(session_id)
        if state is None:
            state = EntryState()
            self._states[session_id] = state
        return state

    def get(self, session_id: str) -> EntryState | None:
        return self._states.get(session_id)

    def put(self, session_id: str, state: EntryState) -> EntryState:
        self._states[session_id] = state
        return state

    def update(self, session_id: str, fn: Callable[[EntryState], EntryState]) -> EntryState | None:
        """Apply ``fn`` to the current state; None (and no change) if the session is gone."""
        state = self._states.get(session_id)
        if state is None:
            logger.debug("dropping update for closed session")
            return None
        state = fn(state)
        self._states[session_id] = state
        return state

    def discard(self, session_id: str) -> None:
        self._states.pop(session_id, None)
