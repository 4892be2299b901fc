"""
Job scheduler.

Enqueues the periodic dramatiq actors from an AsyncIOScheduler and exposes
its state through the health server.

Usage:
    python -m jobs.scheduler
"""

import asyncio

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from mxi.config.settings import Settings


def create_scheduler(app_settings: Settings) -> AsyncIOScheduler:
    """
    Build the scheduler with the vesting and purchase recheck jobs.

    Args:
        app_settings: Job intervals

    Returns:
        Scheduler (not started)
    """
    from jobs.tasks.purchase_recheck import recheck_pending_purchases
    from jobs.tasks.vesting_update import update_all_vesting_rewards

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        update_all_vesting_rewards.send,
        IntervalTrigger(minutes=app_settings.vesting_update_interval_minutes),
        id="update_all_vesting_rewards",
        name="Vesting rewards update",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        recheck_pending_purchases.send,
        IntervalTrigger(minutes=app_settings.pending_purchase_recheck_minutes),
        id="recheck_pending_purchases",
        name="Pending purchase recheck",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def run_scheduler() -> None:
    """Run the scheduler and health server until cancelled."""
    from jobs.health import start_health_server, stop_health_server
    from mxi.config.settings import settings
    from mxi.initialization.logging import setup_logging

    setup_logging(settings.log_file, settings.log_level, component="scheduler")

    scheduler = create_scheduler(settings)
    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")

    runner = await start_health_server(scheduler, port=settings.health_check_port)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


def main() -> None:
    try:
        asyncio.run(run_scheduler())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user")


if __name__ == "__main__":
    main()
