"""
Referral reward processor.

Credits MXI commissions to up to three ancestors of a purchasing user.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.repositories.referral_earning_repository import ReferralEarningRepository
from mxi.repositories.user_repository import UserRepository
from mxi.services.referral.calculator import (
    ReferralCommission,
    ReferralCommissionCalculator,
)
from mxi.services.referral.chain_manager import ReferralChainManager


@dataclass
class ProcessResult:
    """Result of reward processing."""

    success: bool
    total_rewards: Decimal
    error_message: str | None = None
    rewards_count: int = 0
    credited: list[ReferralCommission] = field(default_factory=list)
    skipped_levels: list[int] = field(default_factory=list)


class ReferralRewardProcessor:
    """Processor for referral commissions on confirmed purchases."""

    def __init__(
        self,
        session: AsyncSession,
        calculator: ReferralCommissionCalculator | None = None,
    ) -> None:
        """
        Initialize referral reward processor.

        Args:
            session: Async database session
            calculator: Commission calculator
        """
        self.session = session
        self.calculator = calculator or ReferralCommissionCalculator()
        self.chain_manager = ReferralChainManager(session, self.calculator)
        self.earning_repo = ReferralEarningRepository(session)
        self.user_repo = UserRepository(session)

    async def process_rewards(
        self,
        user_id: int,
        mxi_amount: Decimal,
        purchase_id: int | None = None,
        commit: bool = True,
    ) -> ProcessResult:
        """
        Credit referral commissions for a purchase.

        Each ancestor's ``referral_earnings`` is incremented atomically and a
        ReferralEarning row is written. Levels already credited for the same
        purchase are skipped.

        Args:
            user_id: Purchasing user
            mxi_amount: Purchased MXI
            purchase_id: Purchase the commissions belong to
            commit: Commit at the end (False when part of a larger transaction)

        Returns:
            ProcessResult with total credited and per-level details
        """
        chain = await self.chain_manager.get_referrer_chain(user_id)
        commissions = self.calculator.calculate_commissions(chain, mxi_amount)

        if not commissions:
            logger.debug(
                "No referral commissions for purchase",
                extra={"user_id": user_id, "purchase_id": purchase_id},
            )
            return ProcessResult(success=True, total_rewards=Decimal("0"))

        already_credited: set[int] = set()
        if purchase_id is not None:
            already_credited = await self.earning_repo.get_credited_levels(
                purchase_id
            )

        total_rewards = Decimal("0")
        credited: list[ReferralCommission] = []
        skipped: list[int] = []

        for commission in commissions:
            if commission.level in already_credited:
                skipped.append(commission.level)
                continue

            updated = await self.user_repo.credit_referral_earnings(
                commission.referrer_id, commission.amount
            )
            if not updated:
                logger.warning(
                    "Referrer vanished before credit",
                    extra={"referrer_id": commission.referrer_id},
                )
                continue

            await self.earning_repo.create(
                referrer_id=commission.referrer_id,
                source_user_id=user_id,
                purchase_id=purchase_id,
                level=commission.level,
                rate=commission.rate,
                amount_mxi=commission.amount,
            )
            total_rewards += commission.amount
            credited.append(commission)

        if commit:
            await self.session.commit()

        logger.info(
            "Referral rewards processed",
            extra={
                "user_id": user_id,
                "purchase_id": purchase_id,
                "total_rewards": str(total_rewards),
                "rewards_count": len(credited),
                "skipped_levels": skipped,
            },
        )

        return ProcessResult(
            success=True,
            total_rewards=total_rewards,
            rewards_count=len(credited),
            credited=credited,
            skipped_levels=skipped,
        )
