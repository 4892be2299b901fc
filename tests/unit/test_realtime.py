"""Row change stream and vesting snapshot refresher tests."""

from datetime import timedelta
from decimal import Decimal

import pytest

from mxi.services.realtime import (
    ANY_TABLE,
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    RealtimeEventStream,
    RowChange,
    VestingSnapshotRefresher,
)


def vesting_row(user_id, start, principal="1000", rewards="0"):
    return {
        "user_id": user_id,
        "principal_mxi": Decimal(principal),
        "accumulated_rewards": Decimal(rewards),
        "monthly_rate": Decimal("0.03"),
        "last_update_at": start,
    }


class TestRealtimeEventStream:
    """Publish/subscribe by table."""

    @pytest.mark.asyncio
    async def test_delivers_to_table_subscribers(self):
        stream = RealtimeEventStream()
        received = []
        stream.subscribe("purchases", received.append)

        change = RowChange(table="purchases", event=EVENT_INSERT, new={"id": 1})
        delivered = await stream.publish(change)

        assert delivered == 1
        assert received == [change]

    @pytest.mark.asyncio
    async def test_other_tables_not_delivered(self):
        stream = RealtimeEventStream()
        received = []
        stream.subscribe("purchases", received.append)

        await stream.publish(RowChange(table="vesting_states", event=EVENT_UPDATE))

        assert received == []

    @pytest.mark.asyncio
    async def test_wildcard_and_async_handlers(self):
        stream = RealtimeEventStream()
        received = []

        async def handler(change):
            received.append(change.table)

        stream.subscribe(ANY_TABLE, handler)
        await stream.publish(RowChange(table="purchases", event=EVENT_UPDATE))
        await stream.publish(RowChange(table="users", event=EVENT_UPDATE))

        assert received == ["purchases", "users"]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self):
        stream = RealtimeEventStream()
        received = []

        def broken(change):
            raise RuntimeError("boom")

        stream.subscribe("purchases", broken)
        stream.subscribe("purchases", received.append)

        delivered = await stream.publish(RowChange(table="purchases", event=EVENT_UPDATE))

        assert delivered == 1
        assert len(received) == 1

    def test_unsubscribe(self):
        stream = RealtimeEventStream()
        handler = lambda change: None  # noqa: E731

        unsubscribe = stream.subscribe("purchases", handler)
        assert stream.subscriber_count("purchases") == 1

        unsubscribe()
        assert stream.subscriber_count("purchases") == 0
        assert stream.unsubscribe("purchases", handler) is False

    def test_delete_row_is_old_values(self):
        change = RowChange(table="t", event=EVENT_DELETE, old={"id": 3})
        assert change.row == {"id": 3}


class TestVestingSnapshotRefresher:
    """Vesting view kept current from row changes."""

    @pytest.mark.asyncio
    async def test_refreshes_view_for_own_user(self, vesting_start):
        refreshed = []
        refresher = VestingSnapshotRefresher(
            user_id=7,
            on_refresh=refreshed.append,
            clock=lambda: vesting_start + timedelta(days=1),
        )
        stream = RealtimeEventStream()
        refresher.attach(stream)

        await stream.publish(
            RowChange(
                table="vesting_states",
                event=EVENT_UPDATE,
                new=vesting_row(7, vesting_start, rewards="4"),
            )
        )

        view = refresher.get_view()
        assert view.principal_mxi == Decimal("1000")
        assert view.accumulated_rewards == Decimal("4")
        assert refreshed == [Decimal("5")]

    @pytest.mark.asyncio
    async def test_ignores_other_users(self, vesting_start):
        refresher = VestingSnapshotRefresher(user_id=7, clock=lambda: vesting_start)

        await refresher.handle(
            RowChange(
                table="vesting_states",
                event=EVENT_UPDATE,
                new=vesting_row(8, vesting_start),
            )
        )

        assert refresher.get_view() is None

    @pytest.mark.asyncio
    async def test_naive_timestamp_accepted(self, vesting_start):
        refresher = VestingSnapshotRefresher(user_id=7, clock=lambda: vesting_start)

        await refresher.handle(
            RowChange(
                table="vesting_states",
                event=EVENT_INSERT,
                new=vesting_row(7, vesting_start.replace(tzinfo=None)),
            )
        )

        assert refresher.get_view().last_update_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_delete_clears_view(self, vesting_start):
        refreshed = []
        refresher = VestingSnapshotRefresher(
            user_id=7, on_refresh=refreshed.append, clock=lambda: vesting_start
        )
        row = vesting_row(7, vesting_start)

        await refresher.handle(RowChange(table="vesting_states", event=EVENT_INSERT, new=row))
        await refresher.handle(RowChange(table="vesting_states", event=EVENT_DELETE, old=row))

        assert refresher.get_view() is None
        assert refreshed[-1] == Decimal("0")
