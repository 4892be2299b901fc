"""
Referral chain management module.

Resolves ancestor chains from the database and validates new referral links.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.repositories.user_repository import UserRepository
from mxi.services.referral.calculator import ReferralCommissionCalculator


class ReferralChainManager:
    """Manages referral chain operations."""

    def __init__(
        self,
        session: AsyncSession,
        calculator: ReferralCommissionCalculator | None = None,
    ) -> None:
        """Initialize chain manager."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.calculator = calculator or ReferralCommissionCalculator()

    async def get_referrer_chain(self, user_id: int) -> list[int]:
        """
        Get referrer chain of a user.

        Args:
            user_id: User ID

        Returns:
            Referrer IDs from direct referrer to the last level
        """
        chain = await self.calculator.resolve_chain(
            user_id, self.user_repo.get_referrer_id
        )

        logger.debug(
            "Referral chain retrieved",
            extra={"user_id": user_id, "chain_length": len(chain)},
        )
        return chain

    async def validate_referral_link(
        self, new_user_id: int | None, referrer_id: int
    ) -> tuple[bool, str | None]:
        """
        Validate a referral edge before it is stored.

        Rejects self-referral, unknown referrers and links that would close
        a cycle (the new user already appears above the referrer).

        Args:
            new_user_id: User being linked (None for a user not yet created)
            referrer_id: Proposed referrer

        Returns:
            Tuple of (is_valid, error_message)
        """
        if new_user_id is not None and new_user_id == referrer_id:
            return False, "You cannot refer yourself"

        referrer = await self.user_repo.get_by_id(referrer_id)
        if referrer is None:
            return False, "Referrer not found"

        if new_user_id is None:
            return True, None

        seen = {referrer_id}
        current = referrer.referred_by_id
        while current is not None:
            if current == new_user_id:
                logger.warning(
                    "Referral link rejected: cycle",
                    extra={"user_id": new_user_id, "referrer_id": referrer_id},
                )
                return False, "Referral link would create a cycle"
            if current in seen:
                break
            seen.add(current)
            current = await self.user_repo.get_referrer_id(current)

        return True, None
