"""Fault categories, per-game fault counts, and the in-progress fault tally.

The tally is an immutable value: every adjustment returns a new tally, so
the entry session state holding it can be swapped atomically.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple

from pydantic import BaseModel, Field

from pbstats.errors import ValidationFailure


class FaultCategory(StrEnum):
    SERVE = "serve"
    RETURN = "return"
    NET = "net"
    LONG = "long"
    SETUP = "setup"

    @property
    def field_name(self) -> str:
        """Attribute name of this category on FaultCounts."""
        return _FIELD_NAMES[self]

    @classmethod
    def parse(cls, name: str) -> FaultCategory:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValidationFailure(f"Unknown fault category: {name!r}") from None


_FIELD_NAMES = {
    FaultCategory.SERVE: "serve_faults",
    FaultCategory.RETURN: "return_faults",
    FaultCategory.NET: "net_faults",
    FaultCategory.LONG: "long_faults",
    FaultCategory.SETUP: "setup_kill_faults",
}


class FaultLabel(NamedTuple):
    title: str
    description: str


FAULT_LABELS: dict[FaultCategory, FaultLabel] = {
    FaultCategory.SERVE: FaultLabel("Serve errors", "Missed or illegal serves"),
    FaultCategory.RETURN: FaultLabel("Return errors", "Missed or poor returns"),
    FaultCategory.NET: FaultLabel("Net shots", "Balls hit into the net"),
    FaultCategory.LONG: FaultLabel("Long / deep shots", "Balls hit long / out"),
    FaultCategory.SETUP: FaultLabel("Setup / kill shots", "Balls that gave opponent an easy put-away"),
}


class FaultCounts(BaseModel, frozen=True):
    """Five non-negative fault counters for one game."""

    serve_faults: int = Field(default=0, ge=0)
    return_faults: int = Field(default=0, ge=0)
    net_faults: int = Field(default=0, ge=0)
    long_faults: int = Field(default=0, ge=0)
    setup_kill_faults: int = Field(default=0, ge=0)

    def count(self, category: FaultCategory) -> int:
        return getattr(self, category.field_name)

    @property
    def total(self) -> int:
        return sum(self.count(category) for category in FaultCategory)


class FaultTally(BaseModel, frozen=True):
    """Fault counts for the game currently being entered."""

    counts: FaultCounts = Field(default_factory=FaultCounts)

    def count(self, category: FaultCategory) -> int:
        return self.counts.count(category)

    def increment(self, category: FaultCategory) -> FaultTally:
        return self._with_count(category, self.count(category) + 1)

    def decrement(self, category: FaultCategory) -> FaultTally:
        """Lower a counter by one; a counter already at zero stays at zero."""
        return self._with_count(category, max(0, self.count(category) - 1))

    def adjust(self, category: FaultCategory, delta: int) -> FaultTally:
        return self._with_count(category, max(0, self.count(category) + delta))

    def reset(self) -> FaultTally:
        return FaultTally()

    def snapshot(self) -> FaultCounts:
        """Counts to copy into a new game record. FaultCounts is frozen, so no copy is needed."""
        return self.counts

    def _with_count(self, category: FaultCategory, value: int) -> FaultTally:
        counts = self.counts.model_copy(update={category.field_name: value})
        return self.model_copy(update={"counts": counts})
