"""Cumulative fault averages across games, in play order, for charting."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

from pydantic import BaseModel

from pbstats.games.faults import FaultCategory

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pbstats.dal.models import GameRecord


class TrendPoint(BaseModel, frozen=True):
    """Running averages over all games up to and including this one."""

    label: str
    played_at: datetime
    serve_faults: float
    return_faults: float
    net_faults: float
    long_faults: float
    setup_kill_faults: float
    total_faults: float

    def average(self, category: FaultCategory) -> float:
        return getattr(self, category.field_name)

    def as_chart_row(self) -> dict[str, str | float]:
        """Flatten to the series keys the chart plots: label, one per category, and total."""
        row: dict[str, str | float] = {"label": self.label}
        for category in FaultCategory:
            row[category.value] = self.average(category)
        row["total"] = self.total_faults
        return row


def date_label(played_at: datetime, tz: tzinfo | None = None) -> str:
    """Short month and day, e.g. ``Oct 3``."""
    if tz is not None:
        played_at = played_at.astimezone(tz)
    return f"{played_at:%b} {played_at.day}"


def aggregate_fault_trend(records: Iterable[GameRecord], tz: tzinfo | None = None) -> list[TrendPoint]:
    """Compute one TrendPoint per record, oldest game first.

    Records are stably sorted by ``played_at`` (ties keep their input order).
    At 1-based position k each average is the category's sum over the first
    k games divided by k; the total average is the sum of the five sums
    divided by k. No records gives an empty list.
    """
    ordered = sorted(records, key=lambda r: r.played_at)
    sums = dict.fromkeys(FaultCategory, 0)
    points: list[TrendPoint] = []

    for k, record in enumerate(ordered, start=1):
        for category in FaultCategory:
            sums[category] += record.faults.count(category)
        averages = {category.field_name: sums[category] / k for category in FaultCategory}
        points.append(
            TrendPoint(
                label=date_label(record.played_at, tz),
                played_at=record.played_at,
                total_faults=sum(sums.values()) / k,
                **averages,
            ),
        )
    return points
