"""
Vesting update task.

Settles vesting accrual for every user with a vesting state. Scheduled every
few minutes so stored balances never lag far behind the real-time display.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from mxi.config.settings import settings
from mxi.services.vesting.service import VestingService


@dramatiq.actor(max_retries=3, time_limit=300_000)  # 5 min
def update_all_vesting_rewards() -> None:
    """Settle accrued vesting rewards for all users."""
    logger.info("Starting vesting rewards update...")

    result = run_async(_update_all_vesting_rewards_async())

    logger.info(
        f"Vesting rewards update complete: {result['processed']} users, "
        f"total accrued {result['total_reward']} MXI"
    )


async def _update_all_vesting_rewards_async(database_url: str | None = None) -> dict:
    """Async implementation of the vesting batch update."""
    async with create_local_session(database_url) as session:
        service = VestingService(
            session, default_monthly_rate=settings.vesting_monthly_rate
        )
        return await service.update_all_rewards()
