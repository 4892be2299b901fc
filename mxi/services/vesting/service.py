"""
Vesting service.

Reads and writes VestingState rows around the pure accrual calculator.
Per-user writes lock the row so an admin "update all" batch and a per-user
update cannot lose each other's increments.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.config.business_constants import VESTING_MONTHLY_RATE
from mxi.models.vesting import VestingState
from mxi.repositories.vesting_repository import VestingRepository
from mxi.services.vesting.calculator import VestingAccrualCalculator
from mxi.utils.datetime_utils import utc_now
from mxi.utils.db_decorators import with_rollback_on_error
from mxi.utils.exceptions import ValidationError


@dataclass(frozen=True)
class VestingSnapshot:
    """Vesting figures for display."""

    user_id: int
    principal_mxi: Decimal
    stored_rewards: Decimal
    current_rewards: Decimal
    monthly_rate: Decimal
    last_update_at: datetime | None
    projections: dict[int, Decimal] = field(default_factory=dict)

    @property
    def monthly_reward(self) -> Decimal:
        """Reward for one 30-day month at the current principal."""
        return self.principal_mxi * self.monthly_rate


class VestingService:
    """Vesting balance reads, accrual writes and admin adjustments."""

    def __init__(
        self,
        session: AsyncSession,
        calculator: VestingAccrualCalculator | None = None,
        default_monthly_rate: Decimal = VESTING_MONTHLY_RATE,
    ) -> None:
        """
        Initialize vesting service.

        Args:
            session: Async database session
            calculator: Accrual calculator (a fresh one by default)
            default_monthly_rate: Rate for newly created vesting states
        """
        self.session = session
        self.vesting_repo = VestingRepository(session)
        self.calculator = calculator or VestingAccrualCalculator()
        self.default_monthly_rate = default_monthly_rate

    async def get_current_rewards(
        self, user_id: int, now: datetime | None = None
    ) -> VestingSnapshot:
        """
        Get real-time vesting figures without writing.

        Absent state is reported as zero principal and zero rewards.

        Args:
            user_id: User ID
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            VestingSnapshot
        """
        now = now or utc_now()
        state = await self.vesting_repo.get_by_user(user_id)
        return self.build_snapshot(user_id, state, now)

    def build_snapshot(
        self, user_id: int, state: VestingState | None, now: datetime
    ) -> VestingSnapshot:
        """Compute a snapshot from a state row (or its absence)."""
        if state is None:
            return VestingSnapshot(
                user_id=user_id,
                principal_mxi=Decimal("0"),
                stored_rewards=Decimal("0"),
                current_rewards=Decimal("0"),
                monthly_rate=self.default_monthly_rate,
                last_update_at=None,
                projections=self.calculator.calculate_projections(
                    Decimal("0"), self.default_monthly_rate
                ),
            )

        return VestingSnapshot(
            user_id=user_id,
            principal_mxi=state.principal_mxi,
            stored_rewards=state.accumulated_rewards,
            current_rewards=self.calculator.calculate_current_rewards(state, now),
            monthly_rate=state.monthly_rate,
            last_update_at=state.last_update_at,
            projections=self.calculator.calculate_projections(
                state.principal_mxi, state.monthly_rate
            ),
        )

    async def _settle(self, state: VestingState, now: datetime) -> Decimal:
        result = self.calculator.accrue(state, now)
        state.accumulated_rewards = result.new_balance
        state.last_update_at = result.updated_at
        return result.reward

    @with_rollback_on_error
    async def update_user_rewards(
        self, user_id: int, now: datetime | None = None
    ) -> VestingSnapshot:
        """
        Settle accrual for one user and persist the new balance.

        Args:
            user_id: User ID
            now: Settlement instant (defaults to current UTC time)

        Returns:
            Snapshot after the update
        """
        now = now or utc_now()
        state = await self.vesting_repo.get_by_user(user_id, for_update=True)

        if state is None:
            return self.build_snapshot(user_id, None, now)

        reward = await self._settle(state, now)
        await self.session.commit()

        logger.debug(
            "Vesting rewards updated",
            extra={"user_id": user_id, "reward": str(reward)},
        )
        return self.build_snapshot(user_id, state, now)

    @with_rollback_on_error
    async def update_all_rewards(self, now: datetime | None = None) -> dict:
        """
        Settle accrual for every vesting state ("force update all").

        Each user's row is locked while it is settled.

        Args:
            now: Settlement instant shared by the whole batch

        Returns:
            Dict with processed count and total reward accrued
        """
        now = now or utc_now()
        user_ids = await self.vesting_repo.get_all_user_ids()

        total_reward = Decimal("0")
        for user_id in user_ids:
            state = await self.vesting_repo.get_by_user(user_id, for_update=True)
            if state is None:
                continue
            total_reward += await self._settle(state, now)

        await self.session.commit()

        logger.info(
            "Vesting batch update completed",
            extra={"processed": len(user_ids), "total_reward": str(total_reward)},
        )
        return {"processed": len(user_ids), "total_reward": total_reward}

    async def add_principal(
        self, user_id: int, mxi_amount: Decimal, now: datetime | None = None
    ) -> VestingState:
        """
        Increase a user's vesting principal after a confirmed purchase.

        Accrual is settled with the old principal up to ``now`` first, so the
        new principal only earns from the purchase onwards. Creates the state
        when absent. Does not commit; the caller owns the transaction.

        Args:
            user_id: User ID
            mxi_amount: Purchased MXI
            now: Instant of the principal change

        Returns:
            Updated vesting state
        """
        if mxi_amount <= 0:
            raise ValidationError(
                "Principal increase must be positive", mxi_amount=str(mxi_amount)
            )

        now = now or utc_now()
        state = await self.vesting_repo.get_by_user(user_id, for_update=True)

        if state is None:
            state = await self.vesting_repo.create(
                user_id=user_id,
                principal_mxi=mxi_amount,
                accumulated_rewards=Decimal("0"),
                monthly_rate=self.default_monthly_rate,
                last_update_at=now,
            )
            logger.info(
                "Vesting state created",
                extra={"user_id": user_id, "principal": str(mxi_amount)},
            )
            return state

        await self._settle(state, now)
        state.principal_mxi = state.principal_mxi + mxi_amount
        await self.session.flush()

        logger.info(
            "Vesting principal increased",
            extra={
                "user_id": user_id,
                "added": str(mxi_amount),
                "principal": str(state.principal_mxi),
            },
        )
        return state

    async def remove_principal(
        self, user_id: int, mxi_amount: Decimal, now: datetime | None = None
    ) -> VestingState:
        """
        Decrease a user's vesting principal (admin debit).

        Accrual up to ``now`` is settled with the old principal. Does not
        commit.

        Raises:
            ValidationError: Non-positive amount, no vesting state, or more
                than the current principal
        """
        if mxi_amount <= 0:
            raise ValidationError(
                "Principal decrease must be positive", mxi_amount=str(mxi_amount)
            )

        now = now or utc_now()
        state = await self.vesting_repo.get_by_user(user_id, for_update=True)
        if state is None:
            raise ValidationError("User has no vesting state", user_id=user_id)
        if mxi_amount > state.principal_mxi:
            raise ValidationError(
                "Insufficient MXI balance",
                requested=str(mxi_amount),
                principal=str(state.principal_mxi),
            )

        await self._settle(state, now)
        state.principal_mxi = state.principal_mxi - mxi_amount
        await self.session.flush()

        logger.info(
            "Vesting principal decreased",
            extra={
                "user_id": user_id,
                "removed": str(mxi_amount),
                "principal": str(state.principal_mxi),
            },
        )
        return state

    @with_rollback_on_error
    async def adjust_rewards(
        self,
        user_id: int,
        new_balance: Decimal,
        reason: str,
        now: datetime | None = None,
    ) -> VestingState:
        """
        Admin override of the accumulated reward balance.

        The only operation allowed to decrease the balance.

        Args:
            user_id: User ID
            new_balance: Balance to set
            reason: Audit reason
            now: Instant of the adjustment

        Returns:
            Updated vesting state

        Raises:
            ValidationError: Negative balance, empty reason or unknown user
        """
        if new_balance < 0:
            raise ValidationError("Reward balance cannot be negative")
        if not reason or not reason.strip():
            raise ValidationError("Adjustment reason is required")

        now = now or utc_now()
        state = await self.vesting_repo.get_by_user(user_id, for_update=True)
        if state is None:
            raise ValidationError(
                "User has no vesting state", user_id=user_id
            )

        previous = state.accumulated_rewards
        state.accumulated_rewards = new_balance
        state.last_update_at = now
        await self.session.commit()

        logger.warning(
            "Vesting rewards adjusted by admin",
            extra={
                "user_id": user_id,
                "previous": str(previous),
                "new_balance": str(new_balance),
                "reason": reason,
            },
        )
        return state
