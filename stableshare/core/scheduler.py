import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from stableshare.core.config import get_settings
from stableshare.core.database import AsyncSessionLocal
from stableshare.services.rate_limit import purge_stale_entries

logger = logging.getLogger(__name__)
settings = get_settings()
scheduler = AsyncIOScheduler()


async def _cleanup_job():
    async with AsyncSessionLocal() as db:
        count = await purge_stale_entries(db)
        if count:
            logger.info(f"[scheduler] purged {count} stale rate-limit entries")


def start_scheduler():
    scheduler.add_job(
        _cleanup_job,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="purge_stale_rate_limits",
        replace_existing=True,
        max_instances=1,
    )
    scheduler.start()
    logger.info(f"Rate-limit cleanup scheduled (every {settings.cleanup_interval_minutes} min)")


def stop_scheduler():
    scheduler.shutdown(wait=False)
    logger.info("Rate-limit cleanup stopped")
