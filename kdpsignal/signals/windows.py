"""Windowed metrics aggregation.

Splits a listing's sample history into a previous and a current window and
summarises each one:

    avg_bsr          = mean(valid bsr)                 (integer)
    avg_price        = mean(valid price)               (2 decimals)
    avg_royalty      = mean(estimate_royalty(price))   (2 decimals)
    review_velocity  = (last_reviews - first_reviews) / max(1, days)

Scraped pages intermittently return placeholder zeros, so zero, negative and
non-finite values are treated as "not observed" and excluded from averages.
"""

import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta

from .royalty import estimate_royalty, round_half_up

EPS = 1e-9
SECONDS_PER_DAY = 86400


@dataclass
class Sample:
    """One observed measurement of a listing."""

    asin: str
    timestamp: datetime
    country: str | None = None
    bsr: float | None = None
    price: float | None = None
    review_count: float | None = None


@dataclass
class ListingInfo:
    """Listing metadata used when a sample lacks its own price."""

    asin: str
    country: str | None = None
    page_count: int | None = None
    price: float | None = None
    interior_type: str | None = "bw"
    trim_size: str | None = None
    dimensions_raw: str | None = None


@dataclass
class WindowAggregate:
    """Summary of one time window."""

    avg_bsr: int
    avg_price: float
    avg_royalty: float
    review_velocity: float
    sample_count: int
    coverage_days: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def empty(cls, window_days: int = 30) -> "WindowAggregate":
        return cls(0, 0.0, 0.0, 0.0, 0, window_days)


@dataclass
class WindowBounds:
    """Half-open [start, end) bounds of the previous and current windows."""

    prev_start: datetime
    prev_end: datetime
    curr_start: datetime
    curr_end: datetime


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value to [low, high]."""
    return max(low, min(high, value))


def is_valid(value) -> bool:
    """True when value is a finite, strictly positive number."""
    try:
        x = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(x) and x > 0


def safe_avg(values) -> float:
    """Mean of the finite values; 0 when there are none."""
    xs = []
    for v in values:
        try:
            x = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(x):
            xs.append(x)
    if not xs:
        return 0.0
    return sum(xs) / len(xs)


def mom_percent(prev: float, curr: float) -> float:
    """Percentage change from prev to curr, epsilon-guarded."""
    denom = max(abs(prev), EPS)
    return (curr - prev) / denom * 100


def review_velocity(delta_reviews: float, days: float) -> float:
    """Reviews per day; spans shorter than a day count as one day."""
    return delta_reviews / max(1, days)


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days between two instants, minimum 1."""
    seconds = (later - earlier).total_seconds()
    return max(1, int(math.floor(seconds / SECONDS_PER_DAY + 0.5)))


def split_windows(now: datetime, window_days: int = 30) -> WindowBounds:
    """Previous [now-2W, now-W) and current [now-W, now) windows."""
    span = timedelta(days=window_days)
    curr_start = now - span
    return WindowBounds(
        prev_start=curr_start - span,
        prev_end=curr_start,
        curr_start=curr_start,
        curr_end=now,
    )


def filter_valid_samples(samples: list[Sample]) -> list[Sample]:
    """Drop samples whose bsr, price and review count are all invalid."""
    return [
        s for s in samples
        if is_valid(s.bsr) or is_valid(s.price) or is_valid(s.review_count)
    ]


def in_window(samples: list[Sample], start: datetime, end: datetime) -> list[Sample]:
    """Samples with start <= timestamp < end, ascending by timestamp."""
    selected = [s for s in samples if start <= s.timestamp < end]
    return sorted(selected, key=lambda s: s.timestamp)


def _sample_royalty(sample: Sample, listing: ListingInfo | None) -> float | None:
    price = sample.price if is_valid(sample.price) else None
    if price is None and listing is not None and is_valid(listing.price):
        price = listing.price
    if price is None:
        return None

    if listing is None:
        return estimate_royalty(price, country=sample.country)
    return estimate_royalty(
        price,
        page_count=listing.page_count,
        country=listing.country or sample.country,
        interior_type=listing.interior_type,
        trim_size=listing.trim_size,
        dimensions_raw=listing.dimensions_raw,
    )


def _window_review_velocity(samples: list[Sample]) -> float:
    counted = [s for s in samples if is_valid(s.review_count)]
    if len(counted) < 2:
        return 0.0
    first, last = counted[0], counted[-1]
    delta = float(last.review_count) - float(first.review_count)
    return review_velocity(delta, days_between(last.timestamp, first.timestamp))


def summarize(
    samples: list[Sample],
    listing: ListingInfo | None = None,
    window_days: int = 30,
) -> WindowAggregate:
    """Summarise samples already restricted to one window."""
    rows = filter_valid_samples(sorted(samples, key=lambda s: s.timestamp))
    if not rows:
        return WindowAggregate.empty(window_days)

    bsrs = [float(s.bsr) for s in rows if is_valid(s.bsr)]
    prices = [float(s.price) for s in rows if is_valid(s.price)]
    royalties = [
        r for r in (_sample_royalty(s, listing) for s in rows) if r is not None
    ]

    return WindowAggregate(
        avg_bsr=int(math.floor(safe_avg(bsrs) + 0.5)),
        avg_price=round_half_up(safe_avg(prices), 2),
        avg_royalty=round_half_up(safe_avg(royalties), 2),
        review_velocity=round_half_up(_window_review_velocity(rows), 3),
        sample_count=len(rows),
        coverage_days=days_between(rows[-1].timestamp, rows[0].timestamp),
    )


def aggregate(
    samples: list[Sample],
    window_start: datetime,
    window_end: datetime,
    listing: ListingInfo | None = None,
    window_days: int = 30,
) -> WindowAggregate:
    """Aggregate the samples falling in [window_start, window_end)."""
    return summarize(in_window(samples, window_start, window_end), listing, window_days)
