"""Snapshot repository. Snapshots are insert-only."""

import json
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.db.models import NotificationSnapshot
from kdpsignal.notifications.snapshot import SnapshotPayload


def to_payload(row: NotificationSnapshot) -> SnapshotPayload:
    """Convert a stored snapshot into its payload form."""
    return SnapshotPayload(
        id=str(row.id),
        asin=row.asin,
        user_id=row.user_id,
        status=row.status,
        net_impact=float(row.net_impact or 0.0),
        sentiment=row.sentiment,
        drivers=json.loads(row.drivers or "[]"),
        confidence=row.confidence,
        details=json.loads(row.details or "{}"),
        algo_version=row.algo_version,
        created_at=row.created_at,
        recommendations=json.loads(row.recommendations or "[]"),
    )


class SnapshotRepository:
    """Repository for notification snapshots."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payload: SnapshotPayload) -> NotificationSnapshot:
        """Insert a snapshot."""
        snapshot = NotificationSnapshot(
            user_id=payload.user_id,
            asin=payload.asin,
            status=payload.status,
            net_impact=payload.net_impact,
            sentiment=payload.sentiment,
            drivers=json.dumps(payload.drivers),
            recommendations=json.dumps(payload.recommendations),
            confidence=payload.confidence,
            details=json.dumps(payload.details),
            algo_version=payload.algo_version,
            created_at=payload.created_at,
        )
        self.session.add(snapshot)
        await self.session.flush()
        return snapshot

    async def get_by_id(self, snapshot_id: uuid.UUID) -> NotificationSnapshot | None:
        """Get snapshot by ID."""
        result = await self.session.execute(
            select(NotificationSnapshot).where(NotificationSnapshot.id == snapshot_id)
        )
        return result.scalar_one_or_none()

    async def get_user_snapshots(
        self,
        user_id: str,
        limit: int = 20,
        asin: str | None = None,
        since: datetime | None = None,
    ) -> list[NotificationSnapshot]:
        """Most recent snapshots of a user."""
        query = select(NotificationSnapshot).where(NotificationSnapshot.user_id == user_id)

        if asin:
            query = query.where(NotificationSnapshot.asin == asin)
        if since:
            query = query.where(NotificationSnapshot.created_at >= since)

        query = query.order_by(NotificationSnapshot.created_at.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_user_payloads(
        self,
        user_id: str,
        limit: int = 20,
        asin: str | None = None,
        since: datetime | None = None,
    ) -> list[SnapshotPayload]:
        """Most recent snapshots of a user as payloads."""
        rows = await self.get_user_snapshots(user_id, limit, asin, since)
        return [to_payload(row) for row in rows]
