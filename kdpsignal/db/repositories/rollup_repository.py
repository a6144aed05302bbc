"""Daily rollup repository."""

import json
from datetime import date

from sqlalchemy import Numeric, cast, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.db.models import NotificationDailyRollup
from kdpsignal.signals.impact import STATUSES, DriverWeights
from kdpsignal.signals.royalty import round_half_up

ROLLUP_KEY = "uq_rollup_user_asin_date"


class RollupRepository:
    """Repository for per user/asin/day rollups.

    Writes are single INSERT ... ON CONFLICT statements against the
    (user_id, asin, date) constraint, so two generations touching the same
    day never race on a read-then-insert.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_status(
        self,
        user_id: str,
        asin: str,
        day: date,
        status: str,
        net_impact: float,
    ) -> NotificationDailyRollup:
        """Increment the status counter of the day and fold in the net impact."""
        if status not in STATUSES:
            raise ValueError(f"Unknown status: {status}")

        counters = {name: 0 for name in STATUSES}
        counters[status] = 1

        table = NotificationDailyRollup.__table__
        stmt = insert(NotificationDailyRollup).values(
            user_id=user_id,
            asin=asin,
            date=day,
            net_impact_avg=round_half_up(net_impact, 1),
            **counters,
        )

        seen = table.c.better + table.c.worse + table.c.stable
        # SET expressions see the row as it was before the update
        running_avg = (table.c.net_impact_avg * seen + net_impact) / (seen + 1)
        stmt = stmt.on_conflict_do_update(
            constraint=ROLLUP_KEY,
            set_={
                status: table.c[status] + 1,
                "net_impact_avg": func.round(cast(running_avg, Numeric), 1),
            },
        )
        stmt = stmt.returning(NotificationDailyRollup).execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def save_weights(
        self, user_id: str, asin: str, day: date, weights: DriverWeights
    ) -> NotificationDailyRollup:
        """Store learnt weights on the day's row, keeping its counters."""
        stmt = insert(NotificationDailyRollup).values(
            user_id=user_id,
            asin=asin,
            date=day,
            better=0,
            worse=0,
            stable=0,
            net_impact_avg=0.0,
            weights=json.dumps(weights.to_dict()),
        )
        stmt = stmt.on_conflict_do_update(
            constraint=ROLLUP_KEY,
            set_={"weights": stmt.excluded.weights},
        )
        stmt = stmt.returning(NotificationDailyRollup).execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_latest_weights(self, user_id: str, asin: str) -> DriverWeights | None:
        """Most recently stored weights for a listing, if any."""
        stmt = (
            select(NotificationDailyRollup.weights)
            .where(
                NotificationDailyRollup.user_id == user_id,
                NotificationDailyRollup.asin == asin,
                NotificationDailyRollup.weights.is_not(None),
            )
            .order_by(NotificationDailyRollup.date.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        raw = result.scalar_one_or_none()
        if not raw:
            return None
        return DriverWeights.from_dict(json.loads(raw))

    async def get_since(
        self, user_id: str, since: date, asin: str | None = None
    ) -> list[NotificationDailyRollup]:
        """Rollup rows of a user from a date on."""
        query = select(NotificationDailyRollup).where(
            NotificationDailyRollup.user_id == user_id,
            NotificationDailyRollup.date >= since,
        )
        if asin:
            query = query.where(NotificationDailyRollup.asin == asin)
        result = await self.session.execute(query)
        return list(result.scalars().all())
