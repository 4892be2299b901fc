"""Real-time vesting ticker tests."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from mxi.services.vesting.ticker import VestingRewardTicker


class TestVestingRewardTicker:
    """Repeating reward recomputation."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            VestingRewardTicker(lambda: None, lambda value: None, interval=0)

    @pytest.mark.asyncio
    async def test_tick_delivers_current_balance(self, make_vesting_state, vesting_start):
        """One tick pushes stored plus accrued rewards to the callback."""
        state = make_vesting_state(principal_mxi=Decimal("1000"))
        received = []
        ticker = VestingRewardTicker(
            lambda: state,
            received.append,
            clock=lambda: vesting_start + timedelta(days=1),
        )

        value = await ticker.tick()

        assert value == Decimal("1")
        assert received == [Decimal("1")]

    @pytest.mark.asyncio
    async def test_tick_awaits_async_callback(self, make_vesting_state, vesting_start):
        state = make_vesting_state(principal_mxi=Decimal("1000"))
        received = []

        async def callback(value):
            received.append(value)

        ticker = VestingRewardTicker(lambda: state, callback, clock=lambda: vesting_start)
        await ticker.tick()

        assert received == [Decimal("0")]

    @pytest.mark.asyncio
    async def test_picks_up_replaced_state(self, make_vesting_state, vesting_start):
        """State is re-read on every tick."""
        holder = {"state": None}
        received = []
        ticker = VestingRewardTicker(
            lambda: holder["state"],
            received.append,
            clock=lambda: vesting_start + timedelta(days=2),
        )

        await ticker.tick()
        holder["state"] = make_vesting_state(principal_mxi=Decimal("1000"))
        await ticker.tick()

        assert received == [Decimal("0"), Decimal("2")]

    @pytest.mark.asyncio
    async def test_start_and_stop(self, make_vesting_state, vesting_start):
        state = make_vesting_state(principal_mxi=Decimal("1000"))
        ticked = asyncio.Event()
        ticker = VestingRewardTicker(
            lambda: state,
            lambda value: ticked.set(),
            interval=0.01,
            clock=lambda: vesting_start,
        )

        ticker.start()
        assert ticker.is_running
        await asyncio.wait_for(ticked.wait(), timeout=1)

        await ticker.stop()
        assert not ticker.is_running

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_ticker(self, make_vesting_state, vesting_start):
        state = make_vesting_state(principal_mxi=Decimal("1000"))
        calls = []
        done = asyncio.Event()

        def callback(value):
            calls.append(value)
            if len(calls) >= 3:
                done.set()
            raise RuntimeError("display detached")

        ticker = VestingRewardTicker(
            lambda: state, callback, interval=0.01, clock=lambda: vesting_start
        )
        ticker.start()
        await asyncio.wait_for(done.wait(), timeout=1)
        await ticker.stop()

        assert len(calls) >= 3
