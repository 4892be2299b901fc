"""
Pre-sale stage model.

A pricing tier with a fixed unit price and MXI allocation, sold sequentially.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from mxi.models.base import Base
from mxi.models.types import MoneyType, PriceType


class PreSaleStage(Base):
    """Pre-sale stage - price, allocation, sold amount."""

    __tablename__ = "presale_stages"
    __table_args__ = (
        CheckConstraint("price_usdt > 0", name="check_stage_price_positive"),
        CheckConstraint("sold_mxi >= 0", name="check_stage_sold_non_negative"),
        CheckConstraint(
            "sold_mxi <= total_mxi", name="check_stage_sold_not_exceeds_total"
        ),
    )

    stage: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    price_usdt: Mapped[Decimal] = mapped_column(PriceType, nullable=False)
    total_mxi: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    sold_mxi: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PreSaleStage(stage={self.stage}, price={self.price_usdt}, "
            f"sold={self.sold_mxi}/{self.total_mxi}, active={self.is_active})>"
        )

    @property
    def remaining_mxi(self) -> Decimal:
        """MXI still available in this stage."""
        return max(self.total_mxi - self.sold_mxi, Decimal("0"))

    @property
    def is_sold_out(self) -> bool:
        """Check if allocation is exhausted."""
        return self.sold_mxi >= self.total_mxi

    @property
    def progress_percent(self) -> Decimal:
        """Sold share of the allocation in percent."""
        if not self.total_mxi:
            return Decimal("0")
        return self.sold_mxi / self.total_mxi * 100
