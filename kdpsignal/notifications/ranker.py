"""Adaptive relevance ranking driven by user feedback.

Relevance Score Formula:
    s  = sum(diff(driver) * 10 for driver in drivers)
    s += diff(asin) * 8
    s += diff(status) * 6
    s *= confidence_weight            (high 1.0, medium 0.7, low 0.5)
    s += clamp(net_impact, -10, 10) * 0.5      (optional nudge)
    score = clamp(round(50 + s), 0, 100)

where diff(pos, neg) = pos - 1.2 * neg, so a downvoted signal is suppressed
faster than an upvoted one is amplified. 50 is the neutral prior.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime

from kdpsignal.signals.windows import clamp
from .snapshot import SnapshotPayload

DIMENSIONS = ("driver", "asin", "status")

SIGN_POSITIVE = "positive"
SIGN_NEGATIVE = "negative"

NEUTRAL_PRIOR = 50
NEGATIVE_PENALTY = 1.2
DRIVER_FACTOR = 10
ASIN_FACTOR = 8
STATUS_FACTOR = 6
NET_IMPACT_NUDGE_LIMIT = 10
NET_IMPACT_NUDGE_FACTOR = 0.5
DEFAULT_RECOMMEND_THRESHOLD = 70

CONFIDENCE_WEIGHTS = {
    "high": 1.0,
    "medium": 0.7,
    "low": 0.5,
}


def feedback_diff(pos: float = 0, neg: float = 0) -> float:
    """Net feedback with losses weighted 20% more than gains."""
    return (pos or 0) - NEGATIVE_PENALTY * (neg or 0)


@dataclass
class FeedbackLedger:
    """Per-user positive/negative tallies by driver, asin and status."""

    driver: dict[str, dict[str, int]] = field(default_factory=dict)
    asin: dict[str, dict[str, int]] = field(default_factory=dict)
    status: dict[str, dict[str, int]] = field(default_factory=dict)

    def get(self, dimension: str, key: str) -> dict[str, int]:
        """Tally for a key; unknown keys read as zero."""
        tally = getattr(self, dimension).get(str(key))
        if not tally:
            return {"pos": 0, "neg": 0}
        return {"pos": int(tally.get("pos", 0)), "neg": int(tally.get("neg", 0))}

    def increment(self, dimension: str, key: str, sign: str) -> None:
        bucket = getattr(self, dimension)
        tally = bucket.setdefault(str(key), {"pos": 0, "neg": 0})
        field_name = "pos" if sign == SIGN_POSITIVE else "neg"
        tally[field_name] = int(tally.get(field_name, 0)) + 1

    def to_dict(self) -> dict:
        return {
            name: {k: dict(v) for k, v in getattr(self, name).items()}
            for name in DIMENSIONS
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "FeedbackLedger":
        """Load a stored ledger; malformed entries are skipped."""
        ledger = cls()
        if not isinstance(data, dict):
            return ledger
        for name in DIMENSIONS:
            section = data.get(name)
            if not isinstance(section, dict):
                continue
            target = getattr(ledger, name)
            for key, tally in section.items():
                if isinstance(tally, dict):
                    target[str(key)] = {
                        "pos": int(tally.get("pos", 0) or 0),
                        "neg": int(tally.get("neg", 0) or 0),
                    }
        return ledger


@dataclass
class RankedCandidate:
    """A snapshot with its relevance score."""

    snapshot: SnapshotPayload
    score: int
    recommended: bool

    def to_dict(self) -> dict:
        data = self.snapshot.to_dict()
        data["score"] = self.score
        data["recommended"] = self.recommended
        return data


def record_feedback(ledger: FeedbackLedger, snapshot: SnapshotPayload, sign: str) -> FeedbackLedger:
    """Count one user reaction against every driver, the asin and the status."""
    if sign not in (SIGN_POSITIVE, SIGN_NEGATIVE):
        raise ValueError(f"Invalid feedback sign: {sign}")

    for driver in snapshot.drivers or []:
        ledger.increment("driver", driver, sign)
    if snapshot.asin:
        ledger.increment("asin", snapshot.asin, sign)
    if snapshot.status:
        ledger.increment("status", snapshot.status, sign)
    return ledger


def score_snapshot(
    snapshot: SnapshotPayload,
    ledger: FeedbackLedger,
    use_net_impact: bool = False,
) -> int:
    """Relevance score in [0, 100]."""
    s = 0.0
    for driver in snapshot.drivers or []:
        tally = ledger.get("driver", driver)
        s += feedback_diff(tally["pos"], tally["neg"]) * DRIVER_FACTOR
    if snapshot.asin:
        tally = ledger.get("asin", snapshot.asin)
        s += feedback_diff(tally["pos"], tally["neg"]) * ASIN_FACTOR
    if snapshot.status:
        tally = ledger.get("status", snapshot.status)
        s += feedback_diff(tally["pos"], tally["neg"]) * STATUS_FACTOR

    s *= CONFIDENCE_WEIGHTS.get(snapshot.confidence, CONFIDENCE_WEIGHTS["low"])

    if use_net_impact:
        impact = snapshot.net_impact if math.isfinite(snapshot.net_impact or 0.0) else 0.0
        s += clamp(impact or 0.0, -NET_IMPACT_NUDGE_LIMIT, NET_IMPACT_NUDGE_LIMIT) * NET_IMPACT_NUDGE_FACTOR

    # floor(x + 0.5) keeps half-up rounding of the score
    return int(clamp(math.floor(NEUTRAL_PRIOR + s + 0.5), 0, 100))


def _sort_key(candidate: RankedCandidate) -> tuple:
    created = candidate.snapshot.created_at
    return (candidate.recommended, candidate.score, created.timestamp() if isinstance(created, datetime) else 0)


def rank(
    snapshots: list[SnapshotPayload],
    ledger: FeedbackLedger,
    use_net_impact: bool = False,
    threshold: int = DEFAULT_RECOMMEND_THRESHOLD,
) -> list[RankedCandidate]:
    """Score snapshots and sort by (recommended, score, created_at) descending."""
    candidates = []
    for snapshot in snapshots:
        score = score_snapshot(snapshot, ledger, use_net_impact)
        candidates.append(RankedCandidate(snapshot, score, score >= threshold))
    return sorted(candidates, key=_sort_key, reverse=True)


def top_recommended(
    snapshots: list[SnapshotPayload],
    ledger: FeedbackLedger,
    limit: int = 3,
    threshold: int = DEFAULT_RECOMMEND_THRESHOLD,
) -> list[RankedCandidate]:
    """Compact variant: recommended candidates only, without the net-impact nudge."""
    ranked = rank(snapshots, ledger, use_net_impact=False, threshold=threshold)
    return [c for c in ranked if c.recommended][:limit]
