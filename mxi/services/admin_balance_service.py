"""
Admin balance service.

Manual MXI credits and debits on a user's vesting principal, e.g. for
payments settled outside the on-chain flow.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.repositories.user_repository import UserRepository
from mxi.services.referral.reward_processor import ReferralRewardProcessor
from mxi.services.vesting.service import VestingService
from mxi.utils.datetime_utils import utc_now
from mxi.utils.db_decorators import with_rollback_on_error
from mxi.utils.exceptions import ValidationError


class AdminBalanceService:
    """Admin credits and debits of purchased MXI."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize admin balance service.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.vesting_service = VestingService(session)
        self.reward_processor = ReferralRewardProcessor(session)

    async def _check_request(
        self, user_id: int, mxi_amount: Decimal, reason: str
    ) -> None:
        if mxi_amount <= 0:
            raise ValidationError("Amount must be positive", amount=str(mxi_amount))
        if not reason or not reason.strip():
            raise ValidationError("Adjustment reason is required")
        if not await self.user_repo.exists(id=user_id):
            raise ValidationError("User not found", user_id=user_id)

    @with_rollback_on_error
    async def add_balance(
        self,
        user_id: int,
        mxi_amount: Decimal,
        with_commissions: bool,
        reason: str,
        now: datetime | None = None,
    ) -> Decimal:
        """
        Credit MXI to a user's vesting principal.

        With ``with_commissions`` the credit is treated like a purchase and
        the user's referrers receive their level commissions in the same
        transaction.

        Args:
            user_id: User to credit
            mxi_amount: MXI to add
            with_commissions: Pay referral commissions on the credit
            reason: Audit reason
            now: Instant of the credit

        Returns:
            New principal

        Raises:
            ValidationError: Non-positive amount, empty reason or unknown user
        """
        await self._check_request(user_id, mxi_amount, reason)
        now = now or utc_now()

        state = await self.vesting_service.add_principal(user_id, mxi_amount, now=now)

        commissions = Decimal("0")
        if with_commissions:
            result = await self.reward_processor.process_rewards(
                user_id, mxi_amount, purchase_id=None, commit=False
            )
            commissions = result.total_rewards

        await self.session.commit()

        logger.warning(
            "MXI balance credited by admin",
            extra={
                "user_id": user_id,
                "amount": str(mxi_amount),
                "with_commissions": with_commissions,
                "commissions": str(commissions),
                "principal": str(state.principal_mxi),
                "reason": reason,
            },
        )
        return state.principal_mxi

    @with_rollback_on_error
    async def remove_balance(
        self,
        user_id: int,
        mxi_amount: Decimal,
        reason: str,
        now: datetime | None = None,
    ) -> Decimal:
        """
        Debit MXI from a user's vesting principal.

        Commissions already paid on earlier credits are not clawed back.

        Returns:
            New principal

        Raises:
            ValidationError: Bad request or debit above the principal
        """
        await self._check_request(user_id, mxi_amount, reason)

        state = await self.vesting_service.remove_principal(
            user_id, mxi_amount, now=now or utc_now()
        )
        await self.session.commit()

        logger.warning(
            "MXI balance debited by admin",
            extra={
                "user_id": user_id,
                "amount": str(mxi_amount),
                "principal": str(state.principal_mxi),
                "reason": reason,
            },
        )
        return state.principal_mxi
