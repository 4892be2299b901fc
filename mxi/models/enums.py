"""
Model enumerations.
"""

from enum import StrEnum


class KycStatus(StrEnum):
    """KYC review status of a user account."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PurchaseStatus(StrEnum):
    """Lifecycle status of a purchase record."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class WithdrawalStatus(StrEnum):
    """Lifecycle status of a withdrawal request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class WithdrawalSource(StrEnum):
    """Balance a withdrawal is paid from."""

    REFERRAL_COMMISSIONS = "referral_commissions"
