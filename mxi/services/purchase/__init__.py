"""
Purchase module.

Amount validation, settlement flow and backend verification.
"""

from mxi.services.purchase.models import VerificationResult, VerifyPurchaseRequest
from mxi.services.purchase.purchase_service import PurchaseService
from mxi.services.purchase.settlement import (
    PurchaseSettlementFlow,
    PurchaseTicket,
    SettlementState,
)
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.services.purchase.verification import PurchaseVerificationService
from mxi.services.purchase.verification_client import VerificationClient

__all__ = [
    "PurchaseAmountValidator",
    "PurchaseService",
    "PurchaseSettlementFlow",
    "PurchaseTicket",
    "PurchaseVerificationService",
    "SettlementState",
    "VerificationClient",
    "VerificationResult",
    "VerifyPurchaseRequest",
]
