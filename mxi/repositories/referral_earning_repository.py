"""
Referral earning repository.

Data access layer for ReferralEarning model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.referral_earning import ReferralEarning
from mxi.repositories.base import BaseRepository


class ReferralEarningRepository(BaseRepository[ReferralEarning]):
    """Referral earning repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral earning repository."""
        super().__init__(ReferralEarning, session)

    async def get_level_totals(self, referrer_id: int) -> dict[int, Decimal]:
        """
        Sum credited MXI per level in a single query.

        Args:
            referrer_id: Referrer user ID

        Returns:
            Dict mapping level to credited amount {1: x, 2: y, 3: z}
        """
        stmt = (
            select(
                ReferralEarning.level,
                func.coalesce(func.sum(ReferralEarning.amount_mxi), 0).label("total"),
            )
            .where(ReferralEarning.referrer_id == referrer_id)
            .group_by(ReferralEarning.level)
        )
        result = await self.session.execute(stmt)

        totals = {1: Decimal("0"), 2: Decimal("0"), 3: Decimal("0")}
        for row in result.all():
            totals[row.level] = Decimal(str(row.total))
        return totals

    async def get_credited_levels(self, purchase_id: int) -> set[int]:
        """Levels already credited for a purchase."""
        stmt = select(ReferralEarning.level).where(
            ReferralEarning.purchase_id == purchase_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
