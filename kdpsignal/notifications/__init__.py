"""Notification scoring, ranking and feedback.

The generation pipeline lives in ``kdpsignal.notifications.engine`` and the
session-bound operations in ``kdpsignal.notifications.service``; both touch
the database and are imported explicitly.
"""

from .snapshot import SnapshotPayload, build_snapshot, sentiment_from, recommendations_for
from .ranker import (
    FeedbackLedger,
    RankedCandidate,
    rank,
    record_feedback,
    score_snapshot,
    top_recommended,
)
from .summary import NotificationSummary, summarize_rollups, top_drivers
from .weights import ema_weights, signal_for

__all__ = [
    "SnapshotPayload",
    "build_snapshot",
    "sentiment_from",
    "recommendations_for",
    "FeedbackLedger",
    "RankedCandidate",
    "rank",
    "record_feedback",
    "score_snapshot",
    "top_recommended",
    "NotificationSummary",
    "summarize_rollups",
    "top_drivers",
    "ema_weights",
    "signal_for",
]
