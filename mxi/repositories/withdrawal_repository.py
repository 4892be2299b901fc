"""
Withdrawal repository.

Data access layer for WithdrawalRequest model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.enums import WithdrawalStatus
from mxi.models.withdrawal import WithdrawalRequest
from mxi.repositories.base import BaseRepository


class WithdrawalRepository(BaseRepository[WithdrawalRequest]):
    """Withdrawal request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal repository."""
        super().__init__(WithdrawalRequest, session)

    async def get_by_user(self, user_id: int) -> list[WithdrawalRequest]:
        """Get a user's withdrawal requests, newest first."""
        stmt = (
            select(WithdrawalRequest)
            .where(WithdrawalRequest.user_id == user_id)
            .order_by(WithdrawalRequest.created_at.desc(), WithdrawalRequest.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_reserved_amount(self, user_id: int) -> Decimal:
        """
        Sum of a user's withdrawals that were not rejected.

        Args:
            user_id: User ID

        Returns:
            MXI already requested or paid out
        """
        stmt = select(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).where(
            WithdrawalRequest.user_id == user_id,
            WithdrawalRequest.status != WithdrawalStatus.REJECTED.value,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))
