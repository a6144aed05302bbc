"""Background job scheduler for notification generation."""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from kdpsignal.config import settings
from kdpsignal.notifications.engine import GenerationReport, NotificationEngine

logger = logging.getLogger(__name__)


async def run_generation(user_id: str | None = None) -> GenerationReport:
    """Generate snapshots for every tracked listing (or one user's listings)."""
    logger.info("Starting notification generation...")
    report = await NotificationEngine().run(user_id=user_id)
    if report.failed:
        logger.warning(f"Notification generation finished with {len(report.failed)} failures")
    return report


async def job_generate_notifications():
    """Nightly generation job."""
    await run_generation()


def create_scheduler() -> AsyncIOScheduler:
    """Create the job scheduler."""
    scheduler = AsyncIOScheduler()

    # Daily at the configured hour (UTC)
    scheduler.add_job(
        job_generate_notifications,
        CronTrigger(hour=settings.generation_cron_hour, minute=0),
        id="notifications_generate",
        name="Daily Notification Generation",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info(f"Scheduler configured: notification generation daily at {settings.generation_cron_hour:02d}:00 UTC")
    return scheduler


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    asyncio.run(run_generation())
