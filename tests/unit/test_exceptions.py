"""Error taxonomy and wallet error classification tests."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from web3.exceptions import Web3Exception

from mxi.utils.exceptions import (
    REMEDIATION_CONNECT,
    REMEDIATION_RETRY,
    REMEDIATION_SWITCH_NETWORK,
    REMEDIATION_TOP_UP,
    BackendError,
    InsufficientBalanceError,
    MXIError,
    UserRejectedError,
    ValidationError,
    WalletError,
    WalletNotConnectedError,
    WalletNotInstalledError,
    WrongNetworkError,
    classify_wallet_error,
    get_user_message,
    is_user_recoverable,
    must_log,
)


class ProviderError(Exception):
    """Provider error carrying an EIP-1193 code."""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class TestClassifyWalletError:
    """Raw provider errors mapped to the wallet taxonomy."""

    def test_user_rejected_by_code(self):
        error = classify_wallet_error(ProviderError("whatever", code=4001))
        assert isinstance(error, UserRejectedError)
        assert error.remediation == REMEDIATION_RETRY

    def test_user_rejected_by_message(self):
        error = classify_wallet_error(Exception("User denied transaction signature"))
        assert isinstance(error, UserRejectedError)

    def test_code_in_dict_payload(self):
        error = classify_wallet_error(Exception({"code": 4001, "message": "x"}))
        assert isinstance(error, UserRejectedError)

    def test_insufficient_funds(self):
        error = classify_wallet_error(Exception("insufficient funds for gas * price"))
        assert isinstance(error, InsufficientBalanceError)
        assert error.remediation == REMEDIATION_TOP_UP

    def test_unrecognized_chain(self):
        error = classify_wallet_error(
            ProviderError("Unrecognized chain", code=4902), expected_chain_id=56
        )
        assert isinstance(error, WrongNetworkError)
        assert error.remediation == REMEDIATION_SWITCH_NETWORK
        assert error.expected_chain_id == 56
        assert error.context["code"] == 4902

    def test_chain_mismatch_message(self):
        error = classify_wallet_error(Exception("chain mismatch: expected 56"), 56)
        assert isinstance(error, WrongNetworkError)
        assert error.message == WrongNetworkError.default_message

    def test_not_installed(self):
        assert isinstance(
            classify_wallet_error(Exception("MetaMask not installed")),
            WalletNotInstalledError,
        )

    def test_not_connected(self):
        error = classify_wallet_error(Exception("Wallet not connected"))
        assert isinstance(error, WalletNotConnectedError)
        assert error.remediation == REMEDIATION_CONNECT

    def test_wallet_error_passthrough(self):
        original = WrongNetworkError(56, 1)
        assert classify_wallet_error(original) is original

    def test_unknown_error_keeps_message(self):
        error = classify_wallet_error(Exception("nonce too low"))
        assert type(error) is WalletError
        assert error.message == "nonce too low"


class TestErrorTypes:
    """Error payloads and categories."""

    def test_wrong_network_message(self):
        error = WrongNetworkError(56, 1)
        assert error.expected_chain_id == 56
        assert error.actual_chain_id == 1
        assert "chain 56" in error.message
        assert error.remediation == REMEDIATION_SWITCH_NETWORK

    def test_insufficient_balance_fields(self):
        error = InsufficientBalanceError(balance=Decimal("5"), required=Decimal("20"))
        assert error.balance == Decimal("5")
        assert error.required == Decimal("20")
        assert error.message == InsufficientBalanceError.default_message

    def test_backend_status_code(self):
        error = BackendError("boom", status_code=500)
        assert error.status_code == 500
        assert error.context["status_code"] == 500

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (BackendError(), True),
            (OperationalError("SELECT 1", {}, Exception("down")), True),
            (Web3Exception("rpc"), True),
            (ValidationError(), False),
            (ValueError("x"), False),
        ],
    )
    def test_must_log(self, exc, expected):
        assert must_log(exc) is expected

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (ValidationError(), True),
            (UserRejectedError(), True),
            (BackendError(), False),
            (MXIError(), False),
        ],
    )
    def test_is_user_recoverable(self, exc, expected):
        assert is_user_recoverable(exc) is expected


class TestUserMessages:
    """User-facing error messages."""

    def test_mxi_error_uses_own_message(self):
        assert get_user_message(ValidationError("Amount too low")) == "Amount too low"

    def test_known_raw_message_is_translated(self):
        message = get_user_message(RuntimeError("TypeError: Failed to fetch"))
        assert message == "Unable to connect to server. Please check your internet connection."

    def test_unknown_raw_message_passes_through(self):
        assert get_user_message(RuntimeError("odd")) == "odd"

    def test_empty_message_falls_back(self):
        assert get_user_message(RuntimeError()) == MXIError.default_message
