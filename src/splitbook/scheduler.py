from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from splitbook.config import get_settings
from splitbook.logging import get_logger


async def setup_scheduler() -> AsyncIOScheduler:
    settings = get_settings()

    scheduler = AsyncIOScheduler(timezone=settings.tz)
    # Some hosts stop processes that stay silent for hours.
    scheduler.add_job(
        _health_job,
        IntervalTrigger(hours=settings.health_log_hours),
    )
    scheduler.start()
    return scheduler


async def _health_job() -> None:
    log = get_logger(__name__)
    log.info("bot.healthy")
