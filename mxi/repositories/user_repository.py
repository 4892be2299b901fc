"""
User repository.

Data access layer for UserAccount model, including the referral edge.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.user import UserAccount
from mxi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserAccount]):
    """User repository with referral graph queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(UserAccount, session)

    async def get_by_email(self, email: str) -> UserAccount | None:
        """Get user by email."""
        return await self.get_by(email=email)

    async def get_by_referral_code(self, referral_code: str) -> UserAccount | None:
        """Get user by referral code."""
        return await self.get_by(referral_code=referral_code)

    async def get_referrer_id(self, user_id: int) -> int | None:
        """
        Get the referred_by link of a user.

        Args:
            user_id: User ID

        Returns:
            Referrer user ID or None if absent
        """
        stmt = select(UserAccount.referred_by_id).where(UserAccount.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_referred_ids(self, referrer_ids: list[int]) -> list[int]:
        """
        Get users directly referred by any of the given users.

        Args:
            referrer_ids: Referrer user IDs

        Returns:
            IDs of directly referred users
        """
        if not referrer_ids:
            return []

        stmt = select(UserAccount.id).where(
            UserAccount.referred_by_id.in_(referrer_ids)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def credit_referral_earnings(self, user_id: int, amount: Decimal) -> bool:
        """
        Atomically add MXI to a user's referral earnings.

        Args:
            user_id: User ID to credit
            amount: MXI amount

        Returns:
            True if a row was updated
        """
        stmt = (
            update(UserAccount)
            .where(UserAccount.id == user_id)
            .values(referral_earnings=UserAccount.referral_earnings + amount)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_referral_earnings(self, user_id: int) -> Decimal | None:
        """
        Read referral earnings straight from the table.

        Args:
            user_id: User ID

        Returns:
            Earned MXI or None if the user does not exist
        """
        stmt = select(UserAccount.referral_earnings).where(UserAccount.id == user_id)
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return Decimal(value) if value is not None else None
