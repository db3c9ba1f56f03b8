"""Tests for the cumulative fault trend."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from pbstats.games.faults import FaultCategory
from pbstats.games.trend import aggregate_fault_trend, date_label
from pbstats.tests.fakes import make_record

START = datetime(2025, 10, 3, 18, 0, tzinfo=UTC)


class TestDateLabel:
    def test_month_and_day_without_padding(self):
        assert date_label(datetime(2025, 10, 3, 12, 0, tzinfo=UTC)) == "Oct 3"

    def test_converts_to_display_zone(self):
        late = datetime(2025, 10, 4, 2, 0, tzinfo=UTC)
        assert date_label(late, timezone(timedelta(hours=-5))) == "Oct 3"


class TestAggregateFaultTrend:
    def test_empty_input(self):
        assert aggregate_fault_trend([]) == []

    def test_single_record_averages_equal_counts(self):
        record = make_record(1, START, serve_faults=2, return_faults=1, net_faults=3, long_faults=0, setup_kill_faults=4)

        [point] = aggregate_fault_trend([record])

        assert point.serve_faults == 2
        assert point.return_faults == 1
        assert point.net_faults == 3
        assert point.long_faults == 0
        assert point.setup_kill_faults == 4
        assert point.total_faults == 10
        assert point.label == "Oct 3"

    def test_serve_averages_over_two_games(self):
        records = [make_record(1, START, serve_faults=2), make_record(2, START + timedelta(days=1), serve_faults=4)]

        points = aggregate_fault_trend(records)

        assert [p.serve_faults for p in points] == [2.0, 3.0]

    def test_sorts_chronologically(self):
        newest_first = [
            make_record(2, START + timedelta(days=1), serve_faults=4),
            make_record(1, START, serve_faults=2),
        ]

        points = aggregate_fault_trend(newest_first)

        assert [p.played_at for p in points] == [START, START + timedelta(days=1)]
        assert [p.serve_faults for p in points] == [2.0, 3.0]

    def test_each_point_is_the_prefix_average(self):
        counts = [1, 0, 5, 2]
        records = [make_record(i + 1, START + timedelta(hours=i), net_faults=n) for i, n in enumerate(counts)]

        points = aggregate_fault_trend(records)

        for k, point in enumerate(points, start=1):
            assert point.net_faults == pytest.approx(sum(counts[:k]) / k)

    def test_total_is_sum_of_category_averages(self):
        records = [
            make_record(1, START, serve_faults=1, long_faults=2),
            make_record(2, START + timedelta(days=1), return_faults=3, setup_kill_faults=1),
        ]

        points = aggregate_fault_trend(records)

        assert points[0].total_faults == 3
        assert points[1].total_faults == pytest.approx(3.5)
        for point in points:
            assert point.total_faults == pytest.approx(sum(point.average(c) for c in FaultCategory))

    def test_equal_timestamps_keep_input_order(self):
        records = [make_record(1, START, serve_faults=6), make_record(2, START, serve_faults=0)]

        points = aggregate_fault_trend(records)

        assert [p.serve_faults for p in points] == [6.0, 3.0]

    def test_does_not_modify_input(self):
        records = [make_record(2, START + timedelta(days=1)), make_record(1, START)]
        snapshot = list(records)

        aggregate_fault_trend(records)

        assert records == snapshot

    def test_chart_row_keys(self):
        [point] = aggregate_fault_trend([make_record(1, START, serve_faults=1, setup_kill_faults=2)])

        assert point.as_chart_row() == {
            "label": "Oct 3",
            "serve": 1,
            "return": 0,
            "net": 0,
            "long": 0,
            "setup": 2,
            "total": 3,
        }
