"""
APScheduler jobs.

A daily job shortly after the noon day boundary records last night's sleep
into today's HealthEntry, so the history fills in even on days nobody opens
the dashboard.

The scheduler runs in the same process as the API (wired in __main__).
"""
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from finhealth.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(engine) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: SQLAlchemy engine passed through to the snapshot job.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _daily_snapshot,
        trigger="cron",
        hour=settings.snapshot_hour,
        minute=0,
        id="daily_snapshot",
        replace_existing=True,
        kwargs={"engine": engine},
    )

    return scheduler


async def _daily_snapshot(engine) -> None:
    """
    Daily job: upsert today's HealthEntry with last night's sleep and
    today's body metrics.

    Idempotent; safe to run more than once a day.
    """
    from finhealth.providers.factory import build_providers
    from finhealth.services.sleep_service import SleepService
    from finhealth.services.snapshot import sync_today

    settings = get_settings()
    logger.info("Daily snapshot starting at %s", datetime.now().isoformat())

    try:
        sleep_provider, metrics_provider = await build_providers(settings, engine)
        service = SleepService.from_settings(sleep_provider, settings)
        await sync_today(
            engine, service, user_id=settings.user_id, metrics_provider=metrics_provider
        )
    except Exception as exc:
        logger.error("Daily snapshot failed: %s", exc)
