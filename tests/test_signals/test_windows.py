"""Unit tests for windowed aggregation."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from kdpsignal.signals.windows import (
    ListingInfo,
    Sample,
    aggregate,
    clamp,
    days_between,
    filter_valid_samples,
    in_window,
    is_valid,
    mom_percent,
    review_velocity,
    safe_avg,
    split_windows,
    summarize,
)

BASE = datetime(2026, 3, 1, tzinfo=timezone.utc)


def create_sample(
    days: float,
    bsr: float | None = 1000,
    price: float | None = 9.99,
    reviews: float | None = 100,
    country: str | None = "com",
) -> Sample:
    """Create a sample `days` after BASE."""
    return Sample(
        asin="B000TEST01",
        timestamp=BASE + timedelta(days=days),
        country=country,
        bsr=bsr,
        price=price,
        review_count=reviews,
    )


class TestHelpers:
    """Tests for the numeric helpers."""

    def test_is_valid(self):
        assert is_valid(1)
        assert is_valid("3.5")
        for value in (0, -1, None, "abc", math.nan, math.inf):
            assert not is_valid(value)

    def test_safe_avg_skips_non_finite(self):
        assert safe_avg([1, 2, math.nan, None, 3]) == pytest.approx(2.0)
        assert safe_avg([]) == 0.0

    def test_mom_percent(self):
        assert mom_percent(100, 110) == pytest.approx(10.0)
        assert mom_percent(200, 100) == pytest.approx(-50.0)

    def test_mom_percent_zero_baseline_is_finite(self):
        result = mom_percent(0, 5)
        assert math.isfinite(result)
        assert result > 0

    def test_review_velocity_minimum_one_day(self):
        assert review_velocity(10, 0) == 10
        assert review_velocity(10, 5) == 2

    def test_days_between(self):
        assert days_between(BASE + timedelta(hours=2), BASE) == 1
        assert days_between(BASE + timedelta(days=9), BASE) == 9

    def test_clamp_is_idempotent(self):
        for value in (-500, -3.5, 0, 0.25, 7, 99.9, 1e9):
            for low, high in ((-10, 10), (0, 100), (5, 5)):
                once = clamp(value, low, high)
                assert clamp(once, low, high) == once
                assert low <= once <= high


class TestWindowSelection:
    """Tests for window bounds and membership."""

    def test_split_windows(self):
        bounds = split_windows(BASE, 30)

        assert bounds.curr_end == BASE
        assert bounds.curr_start == BASE - timedelta(days=30)
        assert bounds.prev_end == bounds.curr_start
        assert bounds.prev_start == BASE - timedelta(days=60)

    def test_in_window_is_half_open_and_sorted(self):
        start, end = BASE, BASE + timedelta(days=10)
        samples = [
            create_sample(10),  # at end, excluded
            create_sample(5),
            create_sample(0),  # at start, included
            create_sample(-1),
        ]

        selected = in_window(samples, start, end)

        assert [s.timestamp for s in selected] == [BASE, BASE + timedelta(days=5)]

    def test_filter_valid_samples(self):
        samples = [
            create_sample(0, bsr=0, price=0, reviews=0),
            create_sample(1, bsr=None, price=None, reviews=12),
        ]

        assert len(filter_valid_samples(samples)) == 1


class TestSummarize:
    """Tests for single-window summaries."""

    def test_empty_window(self):
        result = summarize([], window_days=30)

        assert result.sample_count == 0
        assert result.avg_bsr == 0
        assert result.review_velocity == 0.0

    def test_averages_exclude_zeros(self):
        samples = [
            create_sample(0, bsr=1000),
            create_sample(1, bsr=0),
            create_sample(2, bsr=2000),
        ]

        result = summarize(samples)

        assert result.avg_bsr == 1500
        assert result.sample_count == 3

    def test_review_velocity_and_coverage(self):
        samples = [create_sample(i, reviews=100 + 2 * i) for i in range(10)]

        result = summarize(samples)

        assert result.coverage_days == 9
        assert result.review_velocity == pytest.approx(2.0)

    def test_single_sample_has_no_velocity(self):
        result = summarize([create_sample(0)])

        assert result.review_velocity == 0.0
        assert result.coverage_days == 1

    def test_royalty_from_sample_price(self):
        samples = [create_sample(i, price=9.99) for i in range(3)]

        result = summarize(samples)

        assert result.avg_price == pytest.approx(9.99)
        assert result.avg_royalty == pytest.approx(3.70)

    def test_royalty_falls_back_to_listing_price(self):
        listing = ListingInfo(asin="B000TEST01", country="com", page_count=120, price=9.99)
        samples = [create_sample(i, price=None) for i in range(3)]

        result = summarize(samples, listing)

        assert result.avg_price == 0.0
        assert result.avg_royalty == pytest.approx(3.70)

    def test_no_price_anywhere_gives_zero_royalty(self):
        samples = [create_sample(i, price=None) for i in range(3)]

        assert summarize(samples).avg_royalty == 0.0

    def test_aggregate_uses_window_only(self):
        samples = [create_sample(i, bsr=1000 if i < 5 else 3000) for i in range(10)]

        result = aggregate(samples, BASE + timedelta(days=5), BASE + timedelta(days=10))

        assert result.avg_bsr == 3000
        assert result.sample_count == 5
