"""Notification generation pipeline."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from kdpsignal.config import settings
from kdpsignal.db.database import async_session_maker
from kdpsignal.db.models import Listing
from kdpsignal.db.repositories import (
    ListingRepository,
    RollupRepository,
    SampleRepository,
    SnapshotRepository,
)
from kdpsignal.signals.impact import STATUS_BETTER, STATUS_STABLE, STATUS_WORSE, DriverWeights
from kdpsignal.signals.windows import Sample, WindowBounds, split_windows

from .snapshot import SnapshotPayload, build_snapshot

logger = logging.getLogger(__name__)


@dataclass
class ListingFailure:
    """A listing that could not be processed."""

    user_id: str
    asin: str
    error: str


@dataclass
class GenerationReport:
    """Outcome of one generation run."""

    counts: dict[str, int] = field(
        default_factory=lambda: {STATUS_BETTER: 0, STATUS_WORSE: 0, STATUS_STABLE: 0}
    )
    items: list[SnapshotPayload] = field(default_factory=list)
    failed: list[ListingFailure] = field(default_factory=list)

    def add(self, payload: SnapshotPayload) -> None:
        self.counts[payload.status] += 1
        self.items.append(payload)

    def to_dict(self) -> dict:
        return {
            "counts": dict(self.counts),
            "items": [item.to_dict() for item in self.items],
            "failed": [
                {"user_id": f.user_id, "asin": f.asin, "error": f.error} for f in self.failed
            ],
        }


class NotificationEngine:
    """
    Batch job producing one snapshot per tracked listing.

    Listings are processed concurrently up to a limit. A failure or timeout on
    one listing is logged and reported; the rest of the batch continues.
    """

    def __init__(
        self,
        session_maker=async_session_maker,
        window_days: int | None = None,
        concurrency: int | None = None,
        listing_timeout: float | None = None,
        algo_version: str | None = None,
    ):
        self.session_maker = session_maker
        self.window_days = window_days or settings.window_days
        self.concurrency = max(1, concurrency or settings.generation_concurrency)
        self.listing_timeout = listing_timeout or settings.listing_timeout_seconds
        self.algo_version = algo_version or settings.algo_version

    async def run(self, user_id: str | None = None, now: datetime | None = None) -> GenerationReport:
        """
        Generate snapshots for one user, or for every user with listings.

        Returns a report with status counts, the snapshots and failed listings.
        """
        now = now or datetime.now(timezone.utc)
        bounds = split_windows(now, self.window_days)
        users = [user_id] if user_id else await self._load_user_ids()

        report = GenerationReport()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_user(uid: str) -> None:
            try:
                listings = await self._load_listings(uid)
            except Exception as e:
                logger.error(f"Failed to load listings for user {uid}: {e}")
                report.failed.append(ListingFailure(uid, "*", str(e)))
                return
            await asyncio.gather(
                *(self._run_listing(uid, listing, bounds, now, semaphore, report) for listing in listings)
            )

        await asyncio.gather(*(run_user(uid) for uid in users))

        logger.info(
            f"Generated {len(report.items)} snapshots for {len(users)} users "
            f"(better={report.counts[STATUS_BETTER]}, worse={report.counts[STATUS_WORSE]}, "
            f"stable={report.counts[STATUS_STABLE]}, failed={len(report.failed)})"
        )
        return report

    async def _run_listing(
        self,
        user_id: str,
        listing: Listing,
        bounds: WindowBounds,
        now: datetime,
        semaphore: asyncio.Semaphore,
        report: GenerationReport,
    ) -> None:
        async with semaphore:
            try:
                payload = await asyncio.wait_for(
                    self.process_listing(user_id, listing, bounds, now),
                    timeout=self.listing_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"Timed out processing {listing.asin} for user {user_id}")
                report.failed.append(ListingFailure(user_id, listing.asin, "timeout"))
                return
            except Exception as e:
                logger.error(f"Failed to process {listing.asin} for user {user_id}: {e}")
                report.failed.append(ListingFailure(user_id, listing.asin, str(e)))
                return
        report.add(payload)

    async def process_listing(
        self,
        user_id: str,
        listing: Listing,
        bounds: WindowBounds,
        now: datetime,
    ) -> SnapshotPayload:
        """Read both windows, classify the listing and persist the snapshot."""
        prev_samples, curr_samples, weights = await asyncio.gather(
            self._read_samples(listing, bounds.prev_start, bounds.prev_end),
            self._read_samples(listing, bounds.curr_start, bounds.curr_end),
            self._load_weights(user_id, listing.asin),
        )

        payload = build_snapshot(
            asin=listing.asin,
            user_id=user_id,
            prev_samples=prev_samples,
            curr_samples=curr_samples,
            bounds=bounds,
            listing=listing.to_info(),
            weights=weights,
            window_days=self.window_days,
            algo_version=self.algo_version,
            now=now,
        )
        await self._persist(payload)
        return payload

    async def _load_user_ids(self) -> list[str]:
        async with self.session_maker() as session:
            return await ListingRepository(session).get_user_ids()

    async def _load_listings(self, user_id: str) -> list[Listing]:
        async with self.session_maker() as session:
            return await ListingRepository(session).get_user_listings(
                user_id, limit=settings.max_listings_per_user
            )

    async def _read_samples(self, listing: Listing, start: datetime, end: datetime) -> list[Sample]:
        async with self.session_maker() as session:
            return await SampleRepository(session).get_samples(listing, start, end)

    async def _load_weights(self, user_id: str, asin: str) -> DriverWeights:
        async with self.session_maker() as session:
            weights = await RollupRepository(session).get_latest_weights(user_id, asin)
        return weights or DriverWeights()

    async def _persist(self, payload: SnapshotPayload) -> None:
        async with self.session_maker() as session:
            row = await SnapshotRepository(session).create(payload)
            await RollupRepository(session).upsert_status(
                user_id=payload.user_id,
                asin=payload.asin,
                day=payload.created_at.date(),
                status=payload.status,
                net_impact=payload.net_impact,
            )
            await session.commit()
            payload.id = str(row.id)
