"""Tests for rollup summaries."""

from datetime import date, datetime, timezone

import pytest

from kdpsignal.notifications.snapshot import SnapshotPayload
from kdpsignal.notifications.summary import summarize_rollups, top_drivers

DAY_1 = date(2026, 3, 1)
DAY_2 = date(2026, 3, 2)


def create_rollup(day: date, better=0, worse=0, stable=0, net_impact_avg=0.0) -> dict:
    return {
        "date": day,
        "better": better,
        "worse": worse,
        "stable": stable,
        "net_impact_avg": net_impact_avg,
    }


class TestSummarizeRollups:
    """Tests for summarize_rollups."""

    def setup_method(self):
        """Set up test fixtures."""
        self.rows = [
            create_rollup(DAY_1, better=1, net_impact_avg=10.0),
            create_rollup(DAY_2, worse=2, stable=1, net_impact_avg=-5.0),
            create_rollup(DAY_2, better=1, net_impact_avg=3.0),
        ]

    def test_latest_mode_uses_most_recent_day(self):
        summary = summarize_rollups(self.rows, mode="latest")

        assert summary.as_of == DAY_2
        assert summary.counts == {"better": 1, "worse": 2, "stable": 1}
        assert summary.net_impact_avg == pytest.approx(-1.0)
        assert summary.sentiment == "Stable trend"

    def test_window_mode_uses_every_row(self):
        summary = summarize_rollups(self.rows, mode="window", window_days=7)

        assert summary.counts == {"better": 2, "worse": 2, "stable": 1}
        assert summary.net_impact_avg == pytest.approx(2.7)
        assert summary.sentiment == "Improving"
        assert summary.window_days == 7

    def test_declining(self):
        rows = [create_rollup(DAY_1, worse=3, net_impact_avg=-12.0)]

        assert summarize_rollups(rows).sentiment == "Declining"

    def test_empty(self):
        summary = summarize_rollups([])

        assert summary.counts == {"better": 0, "worse": 0, "stable": 0}
        assert summary.net_impact_avg == 0.0
        assert summary.as_of is None
        assert summary.to_dict()["as_of"] is None

    def test_average_rounds_half_away_from_zero(self):
        up = [create_rollup(DAY_1, better=1, net_impact_avg=2.0), create_rollup(DAY_1, better=1, net_impact_avg=2.5)]
        down = [create_rollup(DAY_1, worse=1, net_impact_avg=-2.0), create_rollup(DAY_1, worse=1, net_impact_avg=-2.5)]

        assert summarize_rollups(up, mode="window").net_impact_avg == 2.3
        assert summarize_rollups(down, mode="window").net_impact_avg == -2.3

    def test_accepts_row_objects(self):
        class Row:
            date = DAY_1
            better = 2
            worse = 0
            stable = 0
            net_impact_avg = 5.0

        summary = summarize_rollups([Row()])

        assert summary.counts["better"] == 2
        assert summary.to_dict()["as_of"] == "2026-03-01"


class TestTopDrivers:
    """Tests for top_drivers."""

    def test_most_frequent_first(self):
        def snap(drivers):
            return SnapshotPayload(
                asin="A", user_id="u", status="stable", net_impact=0.0, sentiment="Stable trend",
                drivers=drivers, confidence="low", details={}, algo_version="notifications.v1",
                created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
            )

        snapshots = [
            snap(["BSR improved", "Price up"]),
            snap(["BSR improved"]),
            snap(["Royalty up", "Price up"]),
            snap(["BSR improved"]),
        ]

        assert top_drivers(snapshots) == [("BSR improved", 3), ("Price up", 2)]
        assert top_drivers([]) == []
