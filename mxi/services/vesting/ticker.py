"""
Real-time vesting reward ticker.

Recomputes the displayed reward balance on a fixed interval and pushes it to
a callback. Nothing is written; persistence belongs to VestingService.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal

from loguru import logger

from mxi.services.vesting.calculator import VestingAccrualCalculator, VestingInputs
from mxi.utils.datetime_utils import utc_now


RewardCallback = Callable[[Decimal], Awaitable[None] | None]


class VestingRewardTicker:
    """
    Repeating timer around ``calculate_current_rewards``.

    The state is read through ``state_provider`` on every tick so a refreshed
    snapshot (for example after a realtime purchase event) is picked up
    without restarting the ticker.
    """

    def __init__(
        self,
        state_provider: Callable[[], VestingInputs | None],
        callback: RewardCallback,
        interval: float = 1.0,
        calculator: VestingAccrualCalculator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if interval <= 0:
            raise ValueError("Ticker interval must be positive")

        self.state_provider = state_provider
        self.callback = callback
        self.interval = interval
        self.calculator = calculator or VestingAccrualCalculator()
        self.clock = clock
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Check if the ticker task is alive."""
        return self._task is not None and not self._task.done()

    async def tick(self) -> Decimal:
        """Compute the current balance once and deliver it."""
        value = self.calculator.calculate_current_rewards(
            self.state_provider(), self.clock()
        )
        result = self.callback(value)
        if asyncio.iscoroutine(result):
            await result
        return value

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Vesting ticker callback failed: {e}")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Vesting ticker started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Cancel the ticker task and wait for it to finish."""
        if self._task is None:
            return

        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Vesting ticker stopped")
