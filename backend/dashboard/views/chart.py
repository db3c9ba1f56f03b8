"""Server-side SVG geometry for the fault trend chart."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

from pbstats.games.faults import FaultCategory

if TYPE_CHECKING:
    from pbstats.games.trend import TrendPoint

CHART_WIDTH = 640
CHART_HEIGHT = 240
CHART_PADDING = 32

# Series key -> (legend name, stroke colour), total first.
SERIES_STYLE: dict[str, tuple[str, str]] = {
    "total": ("Total", "#38bdf8"),
    FaultCategory.SERVE.value: ("Serve", "#c084fc"),
    FaultCategory.RETURN.value: ("Return", "#f472b6"),
    FaultCategory.NET.value: ("Net", "#22d3ee"),
    FaultCategory.LONG.value: ("Long", "#f59e0b"),
    FaultCategory.SETUP.value: ("Setup", "#34d399"),
}


class ChartSeries(NamedTuple):
    key: str
    name: str
    color: str
    points: str  # SVG polyline "x,y x,y ..."


class TrendChart(NamedTuple):
    width: int
    height: int
    y_max: int
    labels: list[tuple[float, str]]  # (x, date label) per trend point
    series: list[ChartSeries]


def _x_positions(count: int, width: int, padding: int) -> list[float]:
    if count == 1:
        return [width / 2]
    step = (width - 2 * padding) / (count - 1)
    return [padding + i * step for i in range(count)]


def build_trend_chart(
    points: list[TrendPoint],
    *,
    width: int = CHART_WIDTH,
    height: int = CHART_HEIGHT,
    padding: int = CHART_PADDING,
) -> TrendChart | None:
    """Lay out one polyline per series over the trend points. None when there is nothing to plot."""
    if not points:
        return None

    rows = [point.as_chart_row() for point in points]
    y_max = max(1, math.ceil(max(float(row["total"]) for row in rows)))
    xs = _x_positions(len(rows), width, padding)
    plot_height = height - 2 * padding

    def y_of(value: float) -> float:
        return padding + plot_height * (1 - value / y_max)

    series = [
        ChartSeries(
            key=key,
            name=name,
            color=color,
            points=" ".join(f"{x:.1f},{y_of(float(row[key])):.1f}" for x, row in zip(xs, rows, strict=True)),
        )
        for key, (name, color) in SERIES_STYLE.items()
    ]
    labels = [(x, str(row["label"])) for x, row in zip(xs, rows, strict=True)]
    return TrendChart(width=width, height=height, y_max=y_max, labels=labels, series=series)
