"""
Exception handling utilities.

Defines the pre-sale error taxonomy and categorized exception types for
proper error handling:

- ValidationError: bad input, recovered locally, never retried
- WalletError: wallet-side failure carrying a remediation action
- BackendError: data store or verification failure, logged and surfaced

A purchase that still needs confirmations is a result, not an error.
"""

from decimal import Decimal

from sqlalchemy.exc import OperationalError
from web3.exceptions import Web3Exception


# Remediation actions offered to the user
REMEDIATION_INSTALL = "install_wallet"
REMEDIATION_CONNECT = "connect_wallet"
REMEDIATION_SWITCH_NETWORK = "switch_network"
REMEDIATION_RETRY = "retry"
REMEDIATION_TOP_UP = "top_up"

# EIP-1193 provider error codes
WALLET_CODE_USER_REJECTED = 4001
WALLET_CODE_UNRECOGNIZED_CHAIN = 4902


class MXIError(Exception):
    """Base class for all pre-sale errors."""

    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **context: object) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Message safe to show to the user."""
        return self.message


class ValidationError(MXIError):
    """Input failed validation (amount out of bounds, missing fields)."""

    default_message = "Invalid input"


class WalletError(MXIError):
    """Wallet-side failure with an optional remediation action."""

    default_message = "Wallet operation failed"
    remediation: str | None = None


class WalletNotInstalledError(WalletError):
    """No wallet provider is available."""

    default_message = "No wallet provider found. Please install a wallet."
    remediation = REMEDIATION_INSTALL


class WalletNotConnectedError(WalletError):
    """Wallet provider exists but no account is connected."""

    default_message = "Please connect your wallet first."
    remediation = REMEDIATION_CONNECT


class WrongNetworkError(WalletError):
    """Wallet is connected to an unsupported chain."""

    default_message = "Wallet is connected to the wrong network."
    remediation = REMEDIATION_SWITCH_NETWORK

    def __init__(
        self,
        expected_chain_id: int | None,
        actual_chain_id: int | None,
        message: str | None = None,
        **context: object,
    ) -> None:
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        if message is None and actual_chain_id is not None:
            message = (
                f"Wallet is on chain {actual_chain_id}, "
                f"please switch to chain {expected_chain_id}."
            )
        super().__init__(
            message,
            expected_chain_id=expected_chain_id,
            actual_chain_id=actual_chain_id,
            **context,
        )


class UserRejectedError(WalletError):
    """User rejected the request in the wallet UI."""

    default_message = "You rejected the transaction in your wallet."
    remediation = REMEDIATION_RETRY


class InsufficientBalanceError(WalletError):
    """Wallet token balance is below the purchase amount."""

    default_message = "You don't have enough USDT in your wallet for this transaction."
    remediation = REMEDIATION_TOP_UP

    def __init__(
        self,
        balance: Decimal | None = None,
        required: Decimal | None = None,
        message: str | None = None,
    ) -> None:
        self.balance = balance
        self.required = required
        super().__init__(message, balance=balance, required=required)


class BackendError(MXIError):
    """Data store write or verification request failed."""

    default_message = "Unable to reach the server. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        **context: object,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **context)


# Exception categories based on handling strategy

# Must log but can continue - infrastructure failures surfaced as BackendError
MUST_LOG = (
    OperationalError,  # Database errors
    Web3Exception,     # Blockchain RPC errors
)

# Recovered locally - shown to the user, never retried automatically
USER_RECOVERABLE = (
    ValidationError,
    WalletError,
)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, (*MUST_LOG, BackendError))


def is_user_recoverable(exc: Exception) -> bool:
    """
    Check if the user can fix the failure themselves.

    Args:
        exc: Exception to check

    Returns:
        True for validation and wallet errors
    """
    return isinstance(exc, USER_RECOVERABLE)


def classify_wallet_error(
    exc: Exception, expected_chain_id: int | None = None
) -> WalletError:
    """
    Map a raw wallet provider error to the wallet taxonomy.

    Recognizes EIP-1193 error codes (``code`` attribute or first argument
    of a dict payload) and common provider messages.

    Args:
        exc: Error raised by the wallet provider
        expected_chain_id: Chain the wallet should be on, reported with
            wrong-network errors

    Returns:
        Matching WalletError instance
    """
    if isinstance(exc, WalletError):
        return exc

    code = getattr(exc, "code", None)
    if code is None and exc.args and isinstance(exc.args[0], dict):
        code = exc.args[0].get("code")

    message = str(exc)
    lowered = message.lower()

    if code == WALLET_CODE_USER_REJECTED or "rejected" in lowered or "denied" in lowered:
        return UserRejectedError()
    if "insufficient funds" in lowered or "insufficient balance" in lowered:
        return InsufficientBalanceError()
    if code == WALLET_CODE_UNRECOGNIZED_CHAIN:
        return WrongNetworkError(
            expected_chain_id,
            None,
            message="The network is not configured in your wallet.",
            code=code,
        )
    if "chain mismatch" in lowered or "wrong network" in lowered:
        return WrongNetworkError(expected_chain_id, None)
    if "not installed" in lowered or "no provider" in lowered:
        return WalletNotInstalledError()
    if "not connected" in lowered:
        return WalletNotConnectedError()

    return WalletError(message or WalletError.default_message, code=code)


_USER_MESSAGES = {
    "Network request failed": (
        "Network error. Please check your internet connection and try again."
    ),
    "Failed to fetch": (
        "Unable to connect to server. Please check your internet connection."
    ),
    "Insufficient USDT balance": InsufficientBalanceError.default_message,
    "Insufficient BNB for gas": (
        "You don't have enough BNB to pay for transaction fees."
    ),
    "Transaction was rejected": UserRejectedError.default_message,
    "Wallet not connected": WalletNotConnectedError.default_message,
}


def get_user_message(exc: BaseException) -> str:
    """
    Get a user-friendly message for any error.

    Args:
        exc: Error to describe

    Returns:
        Message suitable for display
    """
    if isinstance(exc, MXIError):
        return exc.user_message

    message = str(exc) or MXIError.default_message
    for key, friendly in _USER_MESSAGES.items():
        if key in message:
            return friendly
    return message
