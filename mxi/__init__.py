"""MXI pre-sale core: vesting accrual, referral commissions and purchase settlement."""

__version__ = "1.0.0"
