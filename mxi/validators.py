"""Shared input validators for addresses, hashes, emails and amounts."""

import re
from decimal import Decimal, InvalidOperation

from web3 import Web3


TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Validate an EVM wallet address.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    try:
        int(address[2:], 16)
    except ValueError:
        return False, "Invalid address format"

    try:
        Web3.to_checksum_address(address)
        return True, None
    except (ValueError, TypeError) as e:
        from loguru import logger
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, "Invalid address format"


def validate_tx_hash(tx_hash: str) -> tuple[bool, str | None]:
    """
    Validate a transaction hash (0x + 64 hex chars).

    Args:
        tx_hash: Transaction hash

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False, "Transaction hash is empty"

    if not TX_HASH_PATTERN.match(tx_hash.strip()):
        return False, "Transaction hash must be 0x followed by 64 hex characters"

    return True, None


def validate_email(email: str) -> tuple[bool, str | None]:
    """Validate an email address."""
    if not email or not isinstance(email, str):
        return False, "Email is empty"

    email = email.strip()

    if "@" not in email:
        return False, "Email must contain '@'"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def parse_amount(
    amount: str | int | float | Decimal | None,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Parse an amount into a finite Decimal.

    Strings accept a comma as the decimal separator. Floats are converted
    through ``str`` to avoid binary artifacts.

    Returns:
        Tuple of (is_valid, parsed_value, error_message)

    Examples:
        >>> parse_amount("100,50")
        (True, Decimal('100.50'), None)
    """
    if amount is None or isinstance(amount, bool):
        return False, None, "Amount is empty"

    if isinstance(amount, Decimal):
        value = amount
    else:
        raw = str(amount).strip().replace(",", ".")
        if not raw:
            return False, None, "Amount is empty"
        try:
            value = Decimal(raw)
        except InvalidOperation:
            return False, None, "Invalid amount format"

    if not value.is_finite():
        return False, None, "Amount must be a finite number"

    return True, value, None


def normalize_wallet_address(address: str) -> str:
    """
    Normalize wallet address to checksum format.

    Raises:
        ValueError: If address is invalid
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise ValueError(error)

    return Web3.to_checksum_address(address.strip())


def normalize_tx_hash(tx_hash: str) -> str:
    """
    Normalize transaction hash to lowercase.

    Raises:
        ValueError: If hash is invalid
    """
    is_valid, error = validate_tx_hash(tx_hash)
    if not is_valid:
        raise ValueError(error)

    return tx_hash.strip().lower()


def normalize_email(email: str) -> str:
    """
    Normalize email to lowercase.

    Raises:
        ValueError: If email is invalid
    """
    is_valid, error = validate_email(email)
    if not is_valid:
        raise ValueError(error)

    return email.strip().lower()
