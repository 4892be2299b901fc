"""
Referral commission calculator.

Pure logic for walking the referral chain and splitting a purchase into
per-level commissions. Database access is injected as a lookup callable.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from mxi.services.referral.config import REFERRAL_DEPTH, REFERRAL_RATES


ReferrerLookup = Callable[[int], int | None | Awaitable[int | None]]


@dataclass(frozen=True)
class ReferralCommission:
    """Commission owed to one ancestor for one purchase."""

    level: int
    referrer_id: int
    rate: Decimal
    amount: Decimal


class ReferralCommissionCalculator:
    """Referral chain resolution and commission split."""

    def __init__(
        self,
        rates: dict[int, Decimal] | None = None,
        depth: int = REFERRAL_DEPTH,
    ) -> None:
        self.rates = rates or REFERRAL_RATES
        self.depth = depth

    async def resolve_chain(self, user_id: int, lookup: ReferrerLookup) -> list[int]:
        """
        Walk ``referred_by`` links upwards from a purchasing user.

        Stops silently on a missing referrer, a self reference or a user
        already seen, and never goes deeper than ``depth`` levels.

        Args:
            user_id: Purchasing user
            lookup: Returns the referrer ID of a user (sync or async)

        Returns:
            Referrer IDs ordered from level 1 (direct) to level N
        """
        chain: list[int] = []
        seen = {user_id}
        current = user_id

        for _ in range(self.depth):
            referrer_id = lookup(current)
            if inspect.isawaitable(referrer_id):
                referrer_id = await referrer_id

            if referrer_id is None:
                break
            if referrer_id in seen:
                logger.warning(
                    "Referral cycle detected, chain truncated",
                    extra={"user_id": user_id, "repeated_id": referrer_id},
                )
                break

            chain.append(referrer_id)
            seen.add(referrer_id)
            current = referrer_id

        return chain

    def calculate_commissions(
        self, chain: list[int], amount: Decimal
    ) -> list[ReferralCommission]:
        """
        Split a purchased MXI amount across the referral chain.

        Args:
            chain: Referrer IDs from level 1 upwards
            amount: Purchased MXI

        Returns:
            One commission per level present in the chain (empty for amount <= 0)

        Example:
            >>> calc = ReferralCommissionCalculator()
            >>> [c.amount for c in calc.calculate_commissions([1, 2, 3], Decimal("1000"))]
            [Decimal('50.00'), Decimal('20.00'), Decimal('10.00')]
        """
        if amount <= 0:
            return []

        commissions = []
        for level, referrer_id in enumerate(chain[: self.depth], start=1):
            rate = self.rates.get(level)
            if rate is None:
                continue
            commissions.append(
                ReferralCommission(
                    level=level,
                    referrer_id=referrer_id,
                    rate=rate,
                    amount=amount * rate,
                )
            )
        return commissions
