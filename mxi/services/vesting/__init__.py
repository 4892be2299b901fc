"""
Vesting module.

Continuous accrual of the monthly vesting rate on purchased MXI.
"""

from mxi.services.vesting.calculator import AccrualResult, VestingAccrualCalculator
from mxi.services.vesting.service import VestingService, VestingSnapshot
from mxi.services.vesting.ticker import VestingRewardTicker

__all__ = [
    "AccrualResult",
    "VestingAccrualCalculator",
    "VestingRewardTicker",
    "VestingService",
    "VestingSnapshot",
]
