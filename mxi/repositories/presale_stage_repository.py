"""
Pre-sale stage repository.

Data access layer for PreSaleStage model.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.presale_stage import PreSaleStage
from mxi.repositories.base import BaseRepository


class PresaleStageRepository(BaseRepository[PreSaleStage]):
    """Pre-sale stage repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stage repository."""
        super().__init__(PreSaleStage, session)

    async def get_active(self) -> PreSaleStage | None:
        """Get the currently active stage."""
        stmt = (
            select(PreSaleStage)
            .where(PreSaleStage.is_active.is_(True))
            .order_by(PreSaleStage.stage)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_ordered(self) -> list[PreSaleStage]:
        """Get all stages ordered by stage number."""
        stmt = select(PreSaleStage).order_by(PreSaleStage.stage)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def increment_sold(self, stage: int, mxi_amount: Decimal) -> bool:
        """
        Atomically add sold MXI to a stage without exceeding its allocation.

        Args:
            stage: Stage number
            mxi_amount: MXI sold

        Returns:
            True if the stage had room and was updated
        """
        stmt = (
            update(PreSaleStage)
            .where(
                PreSaleStage.stage == stage,
                PreSaleStage.sold_mxi + mxi_amount <= PreSaleStage.total_mxi,
            )
            .values(sold_mxi=PreSaleStage.sold_mxi + mxi_amount)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
