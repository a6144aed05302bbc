"""Summaries over daily rollups and snapshot lists."""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from kdpsignal.signals.impact import STATUS_BETTER, STATUS_STABLE, STATUS_WORSE
from kdpsignal.signals.royalty import round_half_up
from .snapshot import SENTIMENT_BY_STATUS, SnapshotPayload


@dataclass
class NotificationSummary:
    """Status counts and average net impact."""

    counts: dict[str, int] = field(
        default_factory=lambda: {STATUS_BETTER: 0, STATUS_WORSE: 0, STATUS_STABLE: 0}
    )
    net_impact_avg: float = 0.0
    sentiment: str = SENTIMENT_BY_STATUS[STATUS_STABLE]
    as_of: date | None = None
    mode: str = "latest"
    window_days: int = 30

    def to_dict(self) -> dict:
        return {
            "counts": dict(self.counts),
            "net_impact_avg": self.net_impact_avg,
            "sentiment": self.sentiment,
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "mode": self.mode,
            "window_days": self.window_days,
        }


def _number(value) -> float | None:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def _field(row, name: str):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def summarize_rollups(rows: list, mode: str = "latest", window_days: int = 30) -> NotificationSummary:
    """Aggregate rollup rows; 'latest' only counts the most recent date."""
    summary = NotificationSummary(mode=mode, window_days=window_days)
    if not rows:
        return summary

    latest = max(_field(r, "date") for r in rows)
    summary.as_of = latest
    if mode == "latest":
        rows = [r for r in rows if _field(r, "date") == latest]

    impacts = []
    for row in rows:
        for status in (STATUS_BETTER, STATUS_WORSE, STATUS_STABLE):
            summary.counts[status] += int(_number(_field(row, status)) or 0)
        impact = _number(_field(row, "net_impact_avg"))
        if impact is not None:
            impacts.append(impact)

    summary.net_impact_avg = round_half_up(sum(impacts) / len(impacts), 1) if impacts else 0.0

    better = summary.counts[STATUS_BETTER]
    worse = summary.counts[STATUS_WORSE]
    if summary.net_impact_avg > 1 and better >= worse:
        summary.sentiment = SENTIMENT_BY_STATUS[STATUS_BETTER]
    elif summary.net_impact_avg < -1 and worse > better:
        summary.sentiment = SENTIMENT_BY_STATUS[STATUS_WORSE]

    return summary


def top_drivers(snapshots: list[SnapshotPayload], limit: int = 2) -> list[tuple[str, int]]:
    """Most frequent drivers across snapshots."""
    counter = Counter(d for s in snapshots for d in (s.drivers or []))
    return counter.most_common(limit)
