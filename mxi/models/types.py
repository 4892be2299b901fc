"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for USDT and MXI amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Unit price type (USDT per MXI)
PriceType = DECIMAL(18, 8)

# Fractional rate type (0.03 = 3% monthly, 0.05 = 5% commission)
RateType = DECIMAL(10, 6)
