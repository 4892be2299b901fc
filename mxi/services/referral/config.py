"""
Referral system configuration.

Contains constants and configuration for the referral system.
"""

from decimal import Decimal

# 3-level referral program, commissions paid in MXI on each purchase
REFERRAL_DEPTH = 3
REFERRAL_RATES = {
    1: Decimal("0.05"),  # 5% for level 1 (direct referrer)
    2: Decimal("0.02"),  # 2% for level 2
    3: Decimal("0.01"),  # 1% for level 3
}
