"""Pre-sale stage pricing and allocation."""

from mxi.services.presale.stage_service import (
    PresaleStageService,
    calculate_mxi_amount,
)

__all__ = ["PresaleStageService", "calculate_mxi_amount"]
