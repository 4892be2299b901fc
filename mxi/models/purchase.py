"""
Purchase record model.

One row per on-chain USDT payment submitted for MXI. Records are never
deleted; verification moves them from pending to confirmed or failed.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mxi.models.base import Base
from mxi.models.enums import PurchaseStatus
from mxi.models.types import MoneyType

if TYPE_CHECKING:
    from mxi.models.user import UserAccount


class PurchaseRecord(Base):
    """Purchase record - USDT paid, MXI bought, settlement status."""

    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint("usdt_amount > 0", name="check_purchase_usdt_positive"),
        CheckConstraint("mxi_amount > 0", name="check_purchase_mxi_positive"),
        CheckConstraint(
            "stage >= 1", name="check_purchase_stage_positive"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False)
    tx_hash: Mapped[str] = mapped_column(
        String(66), unique=True, index=True, nullable=False
    )

    usdt_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    mxi_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    stage: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=PurchaseStatus.PENDING.value, nullable=False, index=True
    )
    confirmations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    block_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["UserAccount"] = relationship(
        "UserAccount", back_populates="purchases", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PurchaseRecord(id={self.id}, user_id={self.user_id}, "
            f"usdt={self.usdt_amount}, mxi={self.mxi_amount}, "
            f"stage={self.stage}, status={self.status})>"
        )

    @property
    def is_pending(self) -> bool:
        """Check if purchase awaits verification."""
        return self.status == PurchaseStatus.PENDING.value

    @property
    def is_confirmed(self) -> bool:
        """Check if purchase was credited."""
        return self.status == PurchaseStatus.CONFIRMED.value

    @property
    def is_failed(self) -> bool:
        """Check if purchase was rejected."""
        return self.status == PurchaseStatus.FAILED.value

    def matches(self, usdt_amount: Decimal, mxi_amount: Decimal, stage: int) -> bool:
        """Check amounts and stage against another copy of the purchase."""
        quantum = Decimal("0.00000001")
        return (
            self.stage == stage
            and Decimal(self.usdt_amount).quantize(quantum)
            == Decimal(usdt_amount).quantize(quantum)
            and Decimal(self.mxi_amount).quantize(quantum)
            == Decimal(mxi_amount).quantize(quantum)
        )
