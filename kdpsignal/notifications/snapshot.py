"""Snapshot construction for a single listing.

Runs the aggregator, the driver/impact calculator and the confidence
estimator over the previous and current windows of one ASIN and produces the
immutable snapshot payload that the pipeline persists.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from kdpsignal.signals.confidence import CONFIDENCE_LOW, confidence_from
from kdpsignal.signals.impact import (
    STATUS_BETTER,
    STATUS_STABLE,
    STATUS_WORSE,
    DriverImpactCalculator,
    DriverWeights,
)
from kdpsignal.signals.royalty import round_half_up
from kdpsignal.signals.windows import (
    ListingInfo,
    Sample,
    WindowAggregate,
    WindowBounds,
    aggregate,
)

SENTIMENT_BY_STATUS = {
    STATUS_BETTER: "Improving",
    STATUS_WORSE: "Declining",
    STATUS_STABLE: "Stable trend",
}

RECOMMENDATIONS_BY_STATUS = {
    STATUS_BETTER: [
        "Scale ad budget and bids on the terms and campaigns that are improving",
        "Focus on the main drivers to keep the momentum going",
    ],
    STATUS_WORSE: [
        "Lower bids on declining terms and review targeting",
        "Check price and BSR and consider optimising the listing",
    ],
    STATUS_STABLE: [
        "Keep monitoring and test new keywords and creatives",
    ],
}


@dataclass
class SnapshotPayload:
    """Immutable classification of one listing at one point in time."""

    asin: str
    user_id: str
    status: str
    net_impact: float
    sentiment: str
    drivers: list[str]
    confidence: str
    details: dict
    algo_version: str
    created_at: datetime
    recommendations: list[str] = field(default_factory=list)
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asin": self.asin,
            "user_id": self.user_id,
            "status": self.status,
            "net_impact": self.net_impact,
            "sentiment": self.sentiment,
            "drivers": list(self.drivers),
            "confidence": self.confidence,
            "details": self.details,
            "recommendations": list(self.recommendations),
            "algo_version": self.algo_version,
            "created_at": self.created_at.isoformat(),
        }


def sentiment_from(status: str) -> str:
    """Human label for a status."""
    return SENTIMENT_BY_STATUS.get(status, SENTIMENT_BY_STATUS[STATUS_STABLE])


def recommendations_for(status: str) -> list[str]:
    """Suggested next steps for a status."""
    return list(RECOMMENDATIONS_BY_STATUS.get(status, RECOMMENDATIONS_BY_STATUS[STATUS_STABLE]))


def windows_empty(prev: WindowAggregate, curr: WindowAggregate) -> bool:
    """True when neither window carries a usable signal."""
    if prev.sample_count == 0 and curr.sample_count == 0:
        return True
    return (
        prev.avg_bsr == 0 and curr.avg_bsr == 0
        and prev.avg_price == 0 and curr.avg_price == 0
    )


def build_snapshot(
    asin: str,
    user_id: str,
    prev_samples: list[Sample],
    curr_samples: list[Sample],
    bounds: WindowBounds,
    listing: ListingInfo | None = None,
    weights: DriverWeights | None = None,
    window_days: int = 30,
    algo_version: str = "notifications.v1",
    now: datetime | None = None,
    calculator: DriverImpactCalculator | None = None,
) -> SnapshotPayload:
    """Classify one listing from its two sample windows."""
    prev = aggregate(prev_samples, bounds.prev_start, bounds.prev_end, listing, window_days)
    curr = aggregate(curr_samples, bounds.curr_start, bounds.curr_end, listing, window_days)

    coverage_days = min(window_days, curr.coverage_days)
    drivers: list[str] = []
    net_impact = 0.0
    status = STATUS_STABLE

    if windows_empty(prev, curr):
        confidence = CONFIDENCE_LOW
    else:
        confidence = confidence_from(coverage_days, curr.sample_count)
        result = (calculator or DriverImpactCalculator()).calculate(prev, curr, weights)
        drivers = result.drivers
        net_impact = result.net_impact
        status = result.status

    return SnapshotPayload(
        asin=asin,
        user_id=user_id,
        status=status,
        net_impact=round_half_up(net_impact, 1),
        sentiment=sentiment_from(status),
        drivers=drivers,
        confidence=confidence,
        details={
            "prev": prev.to_dict(),
            "curr": curr.to_dict(),
            "coverage_days": coverage_days,
        },
        algo_version=algo_version,
        created_at=now or datetime.now(timezone.utc),
        recommendations=recommendations_for(status),
    )


def rollup_values(payload: SnapshotPayload, day: date | None = None) -> dict:
    """Daily rollup row for a snapshot: one status counter set to 1."""
    values = {
        "user_id": payload.user_id,
        "asin": payload.asin,
        "date": day or payload.created_at.date(),
        STATUS_BETTER: 0,
        STATUS_WORSE: 0,
        STATUS_STABLE: 0,
        "net_impact_avg": payload.net_impact,
    }
    values[payload.status] = 1
    return values
