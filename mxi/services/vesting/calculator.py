"""
Vesting accrual calculator.

Converts a fixed nominal monthly rate into a continuously accruing balance:

    rate_per_second = monthly_rate / SECONDS_PER_MONTH
    reward          = principal * monthly_rate * elapsed_seconds / SECONDS_PER_MONTH

Accrual is simple (no compounding) and linear in elapsed time, so
``accrual(P, r, t1 + t2) == accrual(P, r, t1) + accrual(P, r, t2)``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from loguru import logger

from mxi.config.business_constants import (
    SECONDS_PER_DAY,
    SECONDS_PER_MONTH,
    VESTING_PROJECTION_DAYS,
)
from mxi.utils.datetime_utils import ensure_utc


class VestingInputs(Protocol):
    """Anything that carries vesting state (ORM row or snapshot)."""

    principal_mxi: Decimal
    accumulated_rewards: Decimal
    monthly_rate: Decimal
    last_update_at: datetime


@dataclass(frozen=True)
class AccrualResult:
    """Result of settling accrual up to a point in time."""

    reward: Decimal
    new_balance: Decimal
    updated_at: datetime
    elapsed_seconds: Decimal


def _to_decimal(value: int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class VestingAccrualCalculator:
    """
    Pure vesting accrual calculations.

    Holds no state; every method derives its result from its arguments.
    """

    seconds_per_month = SECONDS_PER_MONTH

    def rate_per_second(self, monthly_rate: Decimal) -> Decimal:
        """Convert a monthly rate to a per-second rate (0.03 -> ~1.1574e-8)."""
        return _to_decimal(monthly_rate) / SECONDS_PER_MONTH

    def calculate_accrual(
        self,
        principal: Decimal,
        monthly_rate: Decimal,
        elapsed_seconds: int | float | Decimal,
    ) -> Decimal:
        """
        Calculate reward accrued over an elapsed interval.

        Formula: principal * monthly_rate * elapsed_seconds / 2592000

        Args:
            principal: Purchased MXI principal
            monthly_rate: Monthly rate as a fraction (0.03 = 3%)
            elapsed_seconds: Seconds since last update

        Returns:
            Accrued reward (0 for non-positive inputs)

        Example:
            >>> calc = VestingAccrualCalculator()
            >>> calc.calculate_accrual(Decimal("1000"), Decimal("0.03"), 86400)
            Decimal('1.00')
        """
        principal = _to_decimal(principal)
        monthly_rate = _to_decimal(monthly_rate)
        elapsed = _to_decimal(elapsed_seconds)

        if principal <= 0:
            return Decimal("0")

        if monthly_rate < 0:
            logger.warning(
                "Invalid monthly rate for vesting accrual",
                extra={"monthly_rate": str(monthly_rate)},
            )
            return Decimal("0")

        if elapsed <= 0:
            return Decimal("0")

        return principal * monthly_rate * elapsed / SECONDS_PER_MONTH

    def elapsed_seconds(self, since: datetime, now: datetime) -> Decimal:
        """Seconds between two instants, never negative."""
        delta = ensure_utc(now) - ensure_utc(since)
        seconds = Decimal(str(delta.total_seconds()))
        return max(seconds, Decimal("0"))

    def calculate_current_rewards(
        self, state: VestingInputs | None, now: datetime
    ) -> Decimal:
        """
        Stored balance plus accrual since the last update, without writing.

        Uses the current principal for the whole interval.

        Args:
            state: Vesting state or None when the user never purchased
            now: Instant to evaluate at

        Returns:
            Real-time reward balance for display
        """
        if state is None:
            return Decimal("0")

        elapsed = self.elapsed_seconds(state.last_update_at, now)
        accrued = self.calculate_accrual(
            state.principal_mxi, state.monthly_rate, elapsed
        )
        return _to_decimal(state.accumulated_rewards) + accrued

    def accrue(self, state: VestingInputs, now: datetime) -> AccrualResult:
        """
        Settle accrual up to ``now``.

        The caller persists ``new_balance`` and ``updated_at``. When ``now``
        precedes the last update the balance and timestamp stay unchanged.

        Args:
            state: Current vesting state
            now: Settlement instant

        Returns:
            AccrualResult with reward and new balance
        """
        last_update = ensure_utc(state.last_update_at)
        now = ensure_utc(now)
        balance = _to_decimal(state.accumulated_rewards)

        if now <= last_update:
            return AccrualResult(
                reward=Decimal("0"),
                new_balance=balance,
                updated_at=last_update,
                elapsed_seconds=Decimal("0"),
            )

        elapsed = self.elapsed_seconds(last_update, now)
        reward = self.calculate_accrual(
            state.principal_mxi, state.monthly_rate, elapsed
        )

        return AccrualResult(
            reward=reward,
            new_balance=balance + reward,
            updated_at=now,
            elapsed_seconds=elapsed,
        )

    def calculate_projections(
        self,
        principal: Decimal,
        monthly_rate: Decimal,
        days: tuple[int, ...] = VESTING_PROJECTION_DAYS,
    ) -> dict[int, Decimal]:
        """
        Expected reward over future horizons.

        Args:
            principal: Purchased MXI principal
            monthly_rate: Monthly rate as a fraction
            days: Horizons in days

        Returns:
            Dict mapping days to projected reward, e.g. {7: x, 15: y, 30: z}
        """
        return {
            period: self.calculate_accrual(
                principal, monthly_rate, period * SECONDS_PER_DAY
            )
            for period in days
        }
