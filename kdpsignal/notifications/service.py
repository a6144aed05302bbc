"""Read and feedback operations over persisted notifications."""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.config import settings
from kdpsignal.db.repositories import (
    FeedbackRepository,
    RollupRepository,
    SnapshotRepository,
    to_payload,
)

from .ranker import SIGN_NEGATIVE, SIGN_POSITIVE, RankedCandidate, rank, record_feedback
from .summary import NotificationSummary, summarize_rollups
from .weights import ema_weights, signal_for

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100
MAX_SUMMARY_DAYS = 90


class NotificationService:
    """User-facing notification operations bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.snapshots = SnapshotRepository(session)
        self.rollups = RollupRepository(session)
        self.feedback = FeedbackRepository(session)

    async def list_ranked(
        self,
        user_id: str,
        limit: int = 20,
        asin: str | None = None,
        since: datetime | None = None,
        recommended_only: bool = False,
        use_net_impact: bool = True,
    ) -> list[RankedCandidate]:
        """Recent snapshots re-scored with the user's current ledger."""
        limit = min(MAX_LIST_LIMIT, max(1, limit))
        payloads = await self.snapshots.get_user_payloads(user_id, limit, asin, since)
        ledger = await self.feedback.get_ledger(user_id)

        ranked = rank(
            payloads,
            ledger,
            use_net_impact=use_net_impact,
            threshold=settings.recommend_threshold,
        )
        if recommended_only:
            ranked = [c for c in ranked if c.recommended]
        return ranked

    async def summary(
        self,
        user_id: str,
        asin: str | None = None,
        window_days: int = 30,
        mode: str = "latest",
        today: date | None = None,
    ) -> NotificationSummary:
        """Status counts from the daily rollups of the last window_days."""
        days = max(1, min(MAX_SUMMARY_DAYS, window_days))
        mode = (mode or "latest").lower()
        if mode not in ("latest", "window"):
            raise ValueError(f"Unknown summary mode: {mode}")

        since = (today or datetime.now(timezone.utc).date()) - timedelta(days=days)
        rows = await self.rollups.get_since(user_id, since, asin)
        return summarize_rollups(rows, mode=mode, window_days=days)

    async def submit_feedback(
        self,
        user_id: str,
        snapshot_id: str,
        action: str,
        sign: str = SIGN_POSITIVE,
    ) -> dict:
        """
        Record a user reaction to a snapshot.

        Logs the event, counts 'helpful' reactions in the ranking ledger and
        nudges the listing's driver weights.
        """
        if sign not in (SIGN_POSITIVE, SIGN_NEGATIVE):
            raise ValueError(f"Invalid feedback sign: {sign}")
        signal = signal_for(action, sign)

        try:
            snapshot_uuid = uuid.UUID(str(snapshot_id))
        except ValueError:
            raise ValueError(f"Invalid snapshot id: {snapshot_id}")

        row = await self.snapshots.get_by_id(snapshot_uuid)
        if row is None or row.user_id != user_id:
            raise LookupError(f"Snapshot not found: {snapshot_id}")
        snapshot = to_payload(row)

        await self.feedback.log_event(snapshot_uuid, user_id, snapshot.asin, action, sign)

        ledger = await self.feedback.get_ledger(user_id)
        if action == "helpful":
            record_feedback(ledger, snapshot, sign)
            await self.feedback.save_ledger(user_id, ledger)

        old_weights = await self.rollups.get_latest_weights(user_id, snapshot.asin)
        weights = ema_weights(old_weights, signal)
        today = datetime.now(timezone.utc).date()
        await self.rollups.save_weights(user_id, snapshot.asin, today, weights)

        await self.session.commit()
        logger.info(f"Recorded {action}/{sign} feedback on {snapshot.asin} for user {user_id}")

        return {
            "ok": True,
            "weights": weights.to_dict(),
            "ledger": ledger.to_dict(),
        }
