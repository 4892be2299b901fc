"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from mxi.models.base import Base
from mxi.models.enums import (
    KycStatus,
    PurchaseStatus,
    WithdrawalSource,
    WithdrawalStatus,
)
from mxi.models.presale_stage import PreSaleStage
from mxi.models.purchase import PurchaseRecord
from mxi.models.referral_earning import ReferralEarning
from mxi.models.user import UserAccount
from mxi.models.vesting import VestingState
from mxi.models.withdrawal import WithdrawalRequest

__all__ = [
    # Base
    "Base",
    # Enums
    "KycStatus",
    "PurchaseStatus",
    "WithdrawalSource",
    "WithdrawalStatus",
    # Core Models
    "UserAccount",
    "PurchaseRecord",
    "VestingState",
    "PreSaleStage",
    "ReferralEarning",
    "WithdrawalRequest",
]
