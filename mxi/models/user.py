"""
User account model.

Represents a registered pre-sale participant.
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
from mxi.models.enums import KycStatus
from mxi.models.types import MoneyType

if TYPE_CHECKING:
    from mxi.models.purchase import PurchaseRecord
    from mxi.models.vesting import VestingState


class UserAccount(Base):
    """User account - identity, KYC status and referral edge."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "referral_earnings >= 0",
            name="check_user_referral_earnings_non_negative",
        ),
        CheckConstraint(
            "referred_by_id IS NULL OR referred_by_id != id",
            name="check_user_not_self_referred",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    kyc_status: Mapped[str] = mapped_column(
        String(20), default=KycStatus.PENDING.value, nullable=False, index=True
    )

    # Referral edge: referring user -> this user
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # MXI credited from referral commissions
    referral_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    referred_by: Mapped["UserAccount | None"] = relationship(
        "UserAccount", remote_side=[id], lazy="raise"
    )
    purchases: Mapped[list["PurchaseRecord"]] = relationship(
        "PurchaseRecord", back_populates="user", lazy="raise"
    )
    vesting_state: Mapped["VestingState | None"] = relationship(
        "VestingState", back_populates="user", uselist=False, lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserAccount(id={self.id}, email={self.email!r}, "
            f"kyc_status={self.kyc_status}, referred_by_id={self.referred_by_id})>"
        )

    @property
    def is_kyc_approved(self) -> bool:
        """Check if KYC was approved."""
        return self.kyc_status == KycStatus.APPROVED.value
