"""
Referral module.

3-level referral commissions on purchased MXI.
"""

from mxi.services.referral.calculator import (
    ReferralCommission,
    ReferralCommissionCalculator,
)
from mxi.services.referral.chain_manager import ReferralChainManager
from mxi.services.referral.config import REFERRAL_DEPTH, REFERRAL_RATES
from mxi.services.referral.reward_processor import (
    ProcessResult,
    ReferralRewardProcessor,
)
from mxi.services.referral.statistics import (
    ReferralStatisticsManager,
    ReferralStats,
)

__all__ = [
    "ProcessResult",
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    "ReferralChainManager",
    "ReferralCommission",
    "ReferralCommissionCalculator",
    "ReferralRewardProcessor",
    "ReferralStatisticsManager",
    "ReferralStats",
]
