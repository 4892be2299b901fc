"""
Referral earning model.

Ledger of MXI commissions credited to referrers, one row per purchase and
referral level.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from mxi.models.base import Base
from mxi.models.types import MoneyType, RateType


class ReferralEarning(Base):
    """Referral earning - commission credited to a referrer."""

    __tablename__ = "referral_earnings"
    __table_args__ = (
        CheckConstraint(
            "level >= 1 AND level <= 3", name="check_referral_level_range"
        ),
        CheckConstraint(
            "amount_mxi > 0", name="check_referral_amount_positive"
        ),
        UniqueConstraint(
            "purchase_id", "level", name="uq_referral_earning_purchase_level"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purchase_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchases.id", ondelete="SET NULL"), nullable=True, index=True
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    amount_mxi: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralEarning(referrer_id={self.referrer_id}, "
            f"source_user_id={self.source_user_id}, level={self.level}, "
            f"amount={self.amount_mxi})>"
        )
