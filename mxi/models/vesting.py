"""
Vesting state model.

Holds the purchased principal and the accumulated reward balance of a user.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mxi.config.business_constants import VESTING_MONTHLY_RATE
from mxi.models.base import Base
from mxi.models.types import MoneyType, RateType

if TYPE_CHECKING:
    from mxi.models.user import UserAccount


class VestingState(Base):
    """Vesting state - principal, accumulated rewards, monthly rate."""

    __tablename__ = "vesting_states"
    __table_args__ = (
        CheckConstraint(
            "principal_mxi >= 0", name="check_vesting_principal_non_negative"
        ),
        CheckConstraint(
            "accumulated_rewards >= 0",
            name="check_vesting_rewards_non_negative",
        ),
        CheckConstraint(
            "monthly_rate >= 0", name="check_vesting_rate_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    principal_mxi: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    accumulated_rewards: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    monthly_rate: Mapped[Decimal] = mapped_column(
        RateType, default=VESTING_MONTHLY_RATE, nullable=False
    )
    last_update_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    user: Mapped["UserAccount"] = relationship(
        "UserAccount", back_populates="vesting_state", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<VestingState(user_id={self.user_id}, "
            f"principal={self.principal_mxi}, "
            f"rewards={self.accumulated_rewards}, rate={self.monthly_rate})>"
        )
