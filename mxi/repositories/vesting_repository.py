"""
Vesting repository.

Data access layer for VestingState model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.vesting import VestingState
from mxi.repositories.base import BaseRepository


class VestingRepository(BaseRepository[VestingState]):
    """Vesting state repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize vesting repository."""
        super().__init__(VestingState, session)

    async def get_by_user(
        self, user_id: int, for_update: bool = False
    ) -> VestingState | None:
        """
        Get vesting state of a user.

        Args:
            user_id: User ID
            for_update: Lock the row so concurrent ticks serialize per user

        Returns:
            Vesting state or None if the user never purchased
        """
        stmt = select(VestingState).where(VestingState.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all_user_ids(self) -> list[int]:
        """Get IDs of all users with a vesting state."""
        stmt = select(VestingState.user_id).order_by(VestingState.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
