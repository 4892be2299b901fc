"""
Amount validation for purchases.

Validates USDT purchase amounts against the pre-sale corridor.
"""

from decimal import Decimal

from loguru import logger

from mxi.config.business_constants import PURCHASE_MAX_USDT, PURCHASE_MIN_USDT
from mxi.utils.exceptions import ValidationError
from mxi.validators import parse_amount


class PurchaseAmountValidator:
    """Validator for purchase amounts."""

    def __init__(
        self,
        min_amount: Decimal = PURCHASE_MIN_USDT,
        max_amount: Decimal = PURCHASE_MAX_USDT,
    ) -> None:
        self.min_amount = min_amount
        self.max_amount = max_amount

    def validate_amount_in_corridor(self, amount: Decimal) -> tuple[bool, str | None]:
        """
        Validate that amount is within the purchase corridor (inclusive).

        Args:
            amount: Purchase amount in USDT

        Returns:
            Tuple of (is_valid, error_message)
        """
        if amount < self.min_amount or amount > self.max_amount:
            logger.debug(
                "Amount outside corridor",
                extra={
                    "amount": str(amount),
                    "min": str(self.min_amount),
                    "max": str(self.max_amount),
                },
            )
            return (
                False,
                f"Amount must be between {self.min_amount:.2f} "
                f"and {self.max_amount:.2f} USDT",
            )
        return True, None

    def validate(self, amount: str | int | float | Decimal | None) -> Decimal:
        """
        Parse and validate a purchase amount.

        Args:
            amount: Raw amount (string input or number)

        Returns:
            Amount as Decimal

        Raises:
            ValidationError: Unparseable or outside the corridor
        """
        is_valid, value, error = parse_amount(amount)
        if not is_valid:
            raise ValidationError(error, amount=amount)

        is_valid, error = self.validate_amount_in_corridor(value)
        if not is_valid:
            raise ValidationError(
                error,
                amount=str(value),
                min_amount=str(self.min_amount),
                max_amount=str(self.max_amount),
            )
        return value
