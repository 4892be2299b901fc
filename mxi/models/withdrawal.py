"""
Withdrawal request model.

A user's request to move withdrawable MXI to an external wallet. Admins
move requests from pending through processing to completed, or reject them.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from mxi.models.base import Base
from mxi.models.enums import WithdrawalSource, WithdrawalStatus
from mxi.models.types import MoneyType


class WithdrawalRequest(Base):
    """Withdrawal request - amount, fee, destination and review status."""

    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_withdrawal_amount_positive"),
        CheckConstraint("fee >= 0", name="check_withdrawal_fee_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False)

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    fee: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    source: Mapped[str] = mapped_column(
        String(32),
        default=WithdrawalSource.REFERRAL_COMMISSIONS.value,
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20), default=WithdrawalStatus.PENDING.value, nullable=False, index=True
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WithdrawalRequest(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )

    @property
    def net_amount(self) -> Decimal:
        """Amount sent to the wallet after the processing fee."""
        return self.amount - self.fee

    @property
    def is_final(self) -> bool:
        """Check if no further status change is allowed."""
        return self.status in (
            WithdrawalStatus.COMPLETED.value,
            WithdrawalStatus.REJECTED.value,
        )
