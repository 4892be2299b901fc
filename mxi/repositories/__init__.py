"""Data access layer."""

from mxi.repositories.base import BaseRepository
from mxi.repositories.presale_stage_repository import PresaleStageRepository
from mxi.repositories.purchase_repository import PurchaseRepository
from mxi.repositories.referral_earning_repository import ReferralEarningRepository
from mxi.repositories.user_repository import UserRepository
from mxi.repositories.vesting_repository import VestingRepository
from mxi.repositories.withdrawal_repository import WithdrawalRepository

__all__ = [
    "BaseRepository",
    "PresaleStageRepository",
    "PurchaseRepository",
    "ReferralEarningRepository",
    "UserRepository",
    "VestingRepository",
    "WithdrawalRepository",
]
