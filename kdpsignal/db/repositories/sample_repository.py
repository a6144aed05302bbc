"""Repositories for listings and their sample history."""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.db.models import AsinSample, Listing
from kdpsignal.signals.windows import Sample


class ListingRepository:
    """Repository for tracked listings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_listings(self, user_id: str, limit: int = 1000) -> list[Listing]:
        """Get all listings tracked by a user."""
        stmt = (
            select(Listing)
            .where(Listing.user_id == user_id)
            .order_by(Listing.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_user_ids(self, limit: int = 10000) -> list[str]:
        """Distinct owners of at least one listing."""
        stmt = select(Listing.user_id).distinct().limit(limit)
        result = await self.session.execute(stmt)
        return [user_id for user_id in result.scalars().all() if user_id]


class SampleRepository:
    """Repository for the per-listing sample history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_range(
        self, listing_id: uuid.UUID, start: datetime, end: datetime | None = None
    ) -> list[AsinSample]:
        """Samples with start <= created_at < end, oldest first."""
        stmt = select(AsinSample).where(
            AsinSample.listing_id == listing_id,
            AsinSample.created_at >= start,
        )
        if end is not None:
            stmt = stmt.where(AsinSample.created_at < end)
        stmt = stmt.order_by(AsinSample.created_at.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_samples(
        self,
        listing: Listing,
        start: datetime,
        end: datetime | None = None,
    ) -> list[Sample]:
        """Window of samples converted for the aggregator."""
        rows = await self.get_range(listing.id, start, end)
        return [row.to_sample(listing.asin, listing.country) for row in rows]
