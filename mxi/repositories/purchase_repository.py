"""
Purchase repository.

Data access layer for PurchaseRecord model.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.enums import PurchaseStatus
from mxi.models.purchase import PurchaseRecord
from mxi.repositories.base import BaseRepository


class PurchaseRepository(BaseRepository[PurchaseRecord]):
    """Purchase repository with settlement queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize purchase repository."""
        super().__init__(PurchaseRecord, session)

    async def get_by_tx_hash(
        self, tx_hash: str, for_update: bool = False
    ) -> PurchaseRecord | None:
        """
        Get purchase by transaction hash.

        Args:
            tx_hash: Normalized (lowercase) transaction hash
            for_update: Lock the row for the verification transaction

        Returns:
            Purchase or None
        """
        stmt = select(PurchaseRecord).where(PurchaseRecord.tx_hash == tx_hash)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_purchases(self, user_id: int) -> list[PurchaseRecord]:
        """Get all purchases of a user, newest first."""
        stmt = (
            select(PurchaseRecord)
            .where(PurchaseRecord.user_id == user_id)
            .order_by(PurchaseRecord.created_at.desc(), PurchaseRecord.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_pending(
        self, created_before: datetime | None = None, limit: int = 100
    ) -> list[PurchaseRecord]:
        """
        Find purchases still awaiting verification.

        Args:
            created_before: Only purchases older than this timestamp
            limit: Maximum number of rows

        Returns:
            Pending purchases, oldest first
        """
        stmt = select(PurchaseRecord).where(
            PurchaseRecord.status == PurchaseStatus.PENDING.value
        )
        if created_before is not None:
            stmt = stmt.where(PurchaseRecord.created_at <= created_before)
        stmt = stmt.order_by(PurchaseRecord.created_at.asc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
