"""
Business logic constants for the MXI pre-sale.

Central location for business rules shared by services, jobs and the API.
"""

from decimal import Decimal


# Token units
MXI_SYMBOL = "MXI"
USDT_SYMBOL = "USDT"

# Purchase corridor (USDT)
PURCHASE_MIN_USDT = Decimal("20")
PURCHASE_MAX_USDT = Decimal("50000")

# Vesting: 3% simple monthly, metered per second over a 30-day month
VESTING_MONTHLY_RATE = Decimal("0.03")
SECONDS_PER_DAY = 24 * 3600
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY  # 2592000
VESTING_PROJECTION_DAYS = (7, 15, 30)

# Pre-sale stages: stage number -> price (USDT per MXI) and allocation (MXI)
PRESALE_STAGES = {
    1: {"price": Decimal("0.4"), "total_mxi": Decimal("8333333")},
    2: {"price": Decimal("0.7"), "total_mxi": Decimal("8333333")},
    3: {"price": Decimal("1.0"), "total_mxi": Decimal("8333334")},
}
PRESALE_TOTAL_MXI = sum(
    (stage["total_mxi"] for stage in PRESALE_STAGES.values()), Decimal("0")
)

# Settlement chain: BSC mainnet, USDT BEP20 (18 decimals)
BSC_CHAIN_ID = 56
BSC_CHAIN_ID_HEX = "0x38"
USDT_CONTRACT_ADDRESS = "0x55d398326f99059fF775485246999027B3197955"
PROJECT_WALLET_ADDRESS = "0x68F0d7c607617DA0b1a0dC7b72885E11ddFec623"
USDT_DECIMALS = 18

# Verification
REQUIRED_CONFIRMATIONS = 3
CONFIRMATION_POLL_INTERVAL_SECONDS = 5

BSCSCAN_TX_URL = "https://bscscan.com/tx/{tx_hash}"

# Withdrawals: only referral commissions leave before launch
WITHDRAWAL_MIN_MXI = Decimal("50")
WITHDRAWAL_FEE_RATE = Decimal("0.02")
