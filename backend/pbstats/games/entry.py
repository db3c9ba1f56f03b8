"""Game entry: form parsing, play timestamp composition, and the owner-scoped insert."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from pbstats.dal.models import NewGame
from pbstats.errors import IdentityError, PersistenceFailure, Unauthenticated, ValidationFailure
from pbstats.supabase.client import SupabaseError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import tzinfo

    from pbstats.auth.models import CallerSource
    from pbstats.dal.game_repository import GameRepository
    from pbstats.dal.models import GameRecord
    from pbstats.games.faults import FaultCounts

DEFAULT_MY_SCORE = 11
DEFAULT_OPPONENT_SCORE = 8

logger = structlog.get_logger()


class GameEntryForm(BaseModel, frozen=True):
    """What the player typed for one game, faults aside."""

    played_on: date
    played_time: time
    my_score: int = Field(ge=0)
    opponent_score: int = Field(ge=0)
    location: str | None = None

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


def combine_played_at(played_on: date, played_time: time, tz: tzinfo | None = None) -> datetime:
    """Apply a time of day to a calendar date.

    The result is aware: in ``tz`` when given, otherwise in the server's
    local zone. No conversion happens, only the zone is attached.
    """
    naive = datetime.combine(played_on, played_time.replace(second=0, microsecond=0))
    if tz is not None:
        return naive.replace(tzinfo=tz)
    return naive.astimezone()


def current_date_time(tz: tzinfo | None = None) -> tuple[date, time]:
    """Today and the current minute, the starting values of a new entry."""
    now = datetime.now(tz).replace(second=0, microsecond=0)
    return now.date(), now.time()


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM``; missing hour or minute parts count as zero."""
    parts = (value or "").strip().split(":")
    hour = parts[0] or "00"
    minute = parts[1] if len(parts) > 1 and parts[1] else "00"
    try:
        return time(int(hour), int(minute))
    except ValueError:
        raise ValidationFailure(f"Invalid time: {value!r}") from None


def _parse_score(value: Any, label: str) -> int:  # noqa: ANN401
    try:
        score = int(str(value).strip())
    except ValueError:
        raise ValidationFailure(f"{label} must be a whole number") from None
    if score < 0:
        raise ValidationFailure(f"{label} cannot be negative")
    return score


def parse_entry_form(data: Mapping[str, Any]) -> GameEntryForm:
    """Build a GameEntryForm from raw field values (form posts or JSON).

    Expected keys: date (YYYY-MM-DD), time (HH:MM), my_score,
    opponent_score, and optional location.
    """
    raw_date = str(data.get("date") or "").strip()
    try:
        played_on = date.fromisoformat(raw_date)
    except ValueError:
        raise ValidationFailure(f"Invalid date: {raw_date!r}") from None

    try:
        return GameEntryForm(
            played_on=played_on,
            played_time=parse_time_of_day(str(data.get("time") or "")),
            my_score=_parse_score(data.get("my_score", DEFAULT_MY_SCORE), "My score"),
            opponent_score=_parse_score(data.get("opponent_score", DEFAULT_OPPONENT_SCORE), "Opponent score"),
            location=data.get("location"),
        )
    except ValidationError as e:
        raise ValidationFailure(str(e)) from e


def build_new_game(
    form: GameEntryForm,
    owner: str,
    faults: FaultCounts,
    tz: tzinfo | None = None,
) -> NewGame:
    return NewGame(
        owner=owner,
        played_at=combine_played_at(form.played_on, form.played_time, tz),
        my_score=form.my_score,
        opponent_score=form.opponent_score,
        location=form.location,
        faults=faults,
    )


class GameEntryBuilder:
    """Turn a form and a fault snapshot into exactly one stored game."""

    def __init__(self, repo: GameRepository, tz: tzinfo | None = None) -> None:
        self._repo = repo
        self._tz = tz

    async def submit(self, form: GameEntryForm, faults: FaultCounts, caller_source: CallerSource) -> GameRecord:
        """Insert the game as the caller resolved right now.

        Raises Unauthenticated (no store call made) when nobody is signed in,
        and PersistenceFailure when the identity check or the insert fails.
        Repeated calls insert duplicate rows.
        """
        try:
            caller = await caller_source()
        except IdentityError as e:
            raise PersistenceFailure(str(e)) from e
        if caller is None:
            raise Unauthenticated

        game = build_new_game(form, caller.identity.user_id, faults, self._tz)
        try:
            record = await self._repo.insert_game(caller, game)
        except SupabaseError as e:
            logger.warning("game insert failed", user_id=caller.identity.user_id, error=str(e))
            raise PersistenceFailure(str(e)) from e
        return record
