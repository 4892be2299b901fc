"""
Referral statistics module.

Per-level referral counts and credited MXI for the referral dashboard.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from mxi.repositories.referral_earning_repository import ReferralEarningRepository
from mxi.repositories.user_repository import UserRepository
from mxi.services.referral.config import REFERRAL_DEPTH


@dataclass(frozen=True)
class ReferralStats:
    """Referral counts and earnings per level."""

    level1_count: int = 0
    level2_count: int = 0
    level3_count: int = 0
    level1_mxi: Decimal = Decimal("0")
    level2_mxi: Decimal = Decimal("0")
    level3_mxi: Decimal = Decimal("0")

    @property
    def total_mxi_earned(self) -> Decimal:
        """Sum of credited MXI across all levels."""
        return self.level1_mxi + self.level2_mxi + self.level3_mxi

    @property
    def total_referrals(self) -> int:
        """Referred users across all levels."""
        return self.level1_count + self.level2_count + self.level3_count

    def to_dict(self) -> dict:
        """Serialize with the dashboard's field names."""
        return {
            "level1Count": self.level1_count,
            "level2Count": self.level2_count,
            "level3Count": self.level3_count,
            "level1MXI": str(self.level1_mxi),
            "level2MXI": str(self.level2_mxi),
            "level3MXI": str(self.level3_mxi),
            "totalMXIEarned": str(self.total_mxi_earned),
        }


class ReferralStatisticsManager:
    """Manages referral statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.earning_repo = ReferralEarningRepository(session)

    async def get_referred_by_level(self, user_id: int) -> dict[int, list[int]]:
        """
        Get referred user IDs per level by walking ``referred_by`` downwards.

        Args:
            user_id: Referrer user ID

        Returns:
            Dict mapping level (1..3) to referred user IDs
        """
        levels: dict[int, list[int]] = {}
        seen = {user_id}
        frontier = [user_id]

        for level in range(1, REFERRAL_DEPTH + 1):
            referred = await self.user_repo.get_referred_ids(frontier)
            referred = [uid for uid in referred if uid not in seen]
            seen.update(referred)
            levels[level] = referred
            frontier = referred

        return levels

    async def get_referral_stats(self, user_id: int) -> ReferralStats:
        """
        Get referral statistics for user.

        Args:
            user_id: User ID

        Returns:
            ReferralStats with counts and credited MXI per level
        """
        levels = await self.get_referred_by_level(user_id)
        totals = await self.earning_repo.get_level_totals(user_id)

        return ReferralStats(
            level1_count=len(levels[1]),
            level2_count=len(levels[2]),
            level3_count=len(levels[3]),
            level1_mxi=totals[1],
            level2_mxi=totals[2],
            level3_mxi=totals[3],
        )
