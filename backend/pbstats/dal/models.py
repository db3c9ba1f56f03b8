"""Persistence models for logged games."""

from datetime import datetime

from pydantic import BaseModel, Field

from pbstats.games.faults import FaultCounts


class NewGame(BaseModel, frozen=True):
    """A game ready to be written; the store assigns the id."""

    owner: str  # identity reference of the authenticated caller
    played_at: datetime
    my_score: int = Field(ge=0)
    opponent_score: int = Field(ge=0)
    location: str | None = None
    faults: FaultCounts = Field(default_factory=FaultCounts)


class GameRecord(NewGame, frozen=True):
    """One logged game as stored. Never updated or deleted by this system."""

    id: int
