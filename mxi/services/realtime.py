"""
Real-time row change events.

Explicit publish/subscribe stream for database row changes. Subscribers
re-run calculators on the changed row instead of re-fetching ad hoc.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger

from mxi.services.vesting.calculator import VestingAccrualCalculator
from mxi.utils.datetime_utils import ensure_utc, utc_now


EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"

ANY_TABLE = "*"


@dataclass(frozen=True)
class RowChange:
    """A single row change notification."""

    table: str
    event: str
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] | None = None

    @property
    def row(self) -> dict[str, Any]:
        """Row after the change (before it for deletes)."""
        if self.event == EVENT_DELETE:
            return self.old or {}
        return self.new


RowChangeHandler = Callable[[RowChange], Awaitable[None] | None]


class RealtimeEventStream:
    """In-process row change stream keyed by table name."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[RowChangeHandler]] = defaultdict(list)

    def subscribe(self, table: str, handler: RowChangeHandler) -> Callable[[], None]:
        """
        Register a handler for a table (``"*"`` for every table).

        Returns:
            Function that removes the subscription
        """
        self._handlers[table].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)!r} to {table}")
        return lambda: self.unsubscribe(table, handler)

    def unsubscribe(self, table: str, handler: RowChangeHandler) -> bool:
        """Remove a handler; returns False when it was not subscribed."""
        handlers = self._handlers.get(table)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def subscriber_count(self, table: str) -> int:
        return len(self._handlers.get(table, []))

    async def publish(self, change: RowChange) -> int:
        """
        Deliver a change to table and wildcard subscribers.

        A failing handler is logged and does not stop the others.

        Returns:
            Number of handlers that completed
        """
        handlers = [*self._handlers.get(change.table, []), *self._handlers.get(ANY_TABLE, [])]
        delivered = 0

        for handler in handlers:
            try:
                result = handler(change)
                if asyncio.iscoroutine(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Realtime handler failed for {change.table}/{change.event}: {e}",
                    exc_info=True,
                )

        return delivered


@dataclass
class VestingView:
    """Vesting inputs held by a subscriber, refreshed from row changes."""

    principal_mxi: Decimal
    accumulated_rewards: Decimal
    monthly_rate: Decimal
    last_update_at: datetime


class VestingSnapshotRefresher:
    """
    Keeps one user's vesting view current from ``vesting_states`` changes.

    Pair it with VestingRewardTicker (``state_provider=refresher.get_view``)
    so the ticking balance restarts from the stored row after every write.
    """

    table = "vesting_states"

    def __init__(
        self,
        user_id: int,
        on_refresh: Callable[[Decimal], Awaitable[None] | None] | None = None,
        calculator: VestingAccrualCalculator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.user_id = user_id
        self.on_refresh = on_refresh
        self.calculator = calculator or VestingAccrualCalculator()
        self.clock = clock
        self.view: VestingView | None = None

    def get_view(self) -> VestingView | None:
        return self.view

    def attach(self, stream: RealtimeEventStream) -> Callable[[], None]:
        """Subscribe to the stream; returns the unsubscribe function."""
        return stream.subscribe(self.table, self.handle)

    async def handle(self, change: RowChange) -> None:
        row = change.row
        if row.get("user_id") != self.user_id:
            return

        if change.event == EVENT_DELETE:
            self.view = None
        else:
            self.view = VestingView(
                principal_mxi=Decimal(str(row["principal_mxi"])),
                accumulated_rewards=Decimal(str(row["accumulated_rewards"])),
                monthly_rate=Decimal(str(row["monthly_rate"])),
                last_update_at=ensure_utc(row["last_update_at"]),
            )

        current = self.calculator.calculate_current_rewards(self.view, self.clock())
        if self.on_refresh is not None:
            result = self.on_refresh(current)
            if asyncio.iscoroutine(result):
                await result


def row_to_dict(entity: Any) -> dict[str, Any]:
    """Column values of an ORM entity."""
    return {
        column.key: getattr(entity, column.key)
        for column in entity.__mapper__.column_attrs
    }
