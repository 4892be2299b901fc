"""Token unit conversion between Decimal amounts and integer base units."""

from decimal import ROUND_DOWN, Decimal


def to_base_units(amount: Decimal, decimals: int) -> int:
    """
    Convert a token amount to integer base units (wei-style), rounding down.

    Examples:
        >>> to_base_units(Decimal("20"), 18)
        20000000000000000000
    """
    return int(
        (Decimal(str(amount)) * Decimal(10**decimals)).to_integral_value(ROUND_DOWN)
    )


def from_base_units(value: int, decimals: int) -> Decimal:
    """
    Convert integer base units to a token amount.

    Examples:
        >>> from_base_units(1500000000000000000, 18)
        Decimal('1.5')
    """
    return Decimal(value) / Decimal(10**decimals)
