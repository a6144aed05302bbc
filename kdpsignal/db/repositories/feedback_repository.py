"""Feedback log and ledger repository."""

import json
import uuid

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.db.models import FeedbackLedgerRecord, NotificationFeedback
from kdpsignal.notifications.ranker import FeedbackLedger


class FeedbackRepository:
    """Repository for feedback events and per-user ledgers."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_event(
        self,
        snapshot_id: uuid.UUID,
        user_id: str,
        asin: str,
        action: str,
        sign: str = "positive",
    ) -> NotificationFeedback:
        """Append a feedback event."""
        event = NotificationFeedback(
            snapshot_id=snapshot_id,
            user_id=user_id,
            asin=asin,
            action=action,
            sign=sign,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def get_ledger(self, user_id: str) -> FeedbackLedger:
        """Load a user's ledger; empty on first use."""
        result = await self.session.execute(
            select(FeedbackLedgerRecord).where(FeedbackLedgerRecord.user_id == user_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            return FeedbackLedger()
        return FeedbackLedger.from_dict(json.loads(record.ledger or "{}"))

    async def save_ledger(self, user_id: str, ledger: FeedbackLedger) -> FeedbackLedgerRecord:
        """Replace the stored ledger of a user, creating it on first save."""
        stmt = insert(FeedbackLedgerRecord).values(
            user_id=user_id,
            ledger=json.dumps(ledger.to_dict()),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[FeedbackLedgerRecord.user_id],
            set_={"ledger": stmt.excluded.ledger, "updated_at": func.now()},
        )
        stmt = stmt.returning(FeedbackLedgerRecord).execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one()
