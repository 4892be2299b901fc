"""On-chain transaction checker tests with a mocked Web3 instance."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from web3.exceptions import TransactionNotFound, Web3Exception

from mxi.config.business_constants import (
    PROJECT_WALLET_ADDRESS,
    USDT_CONTRACT_ADDRESS,
    USDT_DECIMALS,
)
from mxi.services.blockchain.chain_checker import ChainTransactionChecker
from mxi.services.blockchain.constants import (
    TX_STATUS_PENDING,
    TX_STATUS_REVERTED,
    TX_STATUS_SUCCESS,
    TX_STATUS_UNKNOWN,
)
from mxi.services.blockchain.units import from_base_units, to_base_units


@pytest.fixture
def w3():
    return MagicMock()


@pytest.fixture
def checker(w3):
    checker = ChainTransactionChecker(
        "http://localhost:8545", USDT_CONTRACT_ADDRESS, USDT_DECIMALS, w3=w3
    )
    yield checker
    checker.close()


class TestTransactionStatus:
    """Receipt status and confirmation counting."""

    def test_confirmations_from_latest_block(self, checker, w3, sample_transaction_hash):
        w3.eth.get_transaction_receipt.return_value = {"blockNumber": 100, "status": 1}
        w3.eth.block_number = 103

        status = checker.check_transaction_status_sync(sample_transaction_hash)

        assert status.status == TX_STATUS_SUCCESS
        assert status.confirmations == 3
        assert status.block_number == 100
        assert status.is_mined

    def test_reverted(self, checker, w3, sample_transaction_hash):
        w3.eth.get_transaction_receipt.return_value = {"blockNumber": 100, "status": 0}
        w3.eth.block_number = 100

        status = checker.check_transaction_status_sync(sample_transaction_hash)

        assert status.status == TX_STATUS_REVERTED
        assert status.confirmations == 0

    def test_no_receipt_is_pending(self, checker, w3, sample_transaction_hash):
        w3.eth.get_transaction_receipt.side_effect = TransactionNotFound("not yet")

        status = checker.check_transaction_status_sync(sample_transaction_hash)

        assert status.status == TX_STATUS_PENDING
        assert not status.is_mined

    @pytest.mark.asyncio
    async def test_rpc_error_reports_unknown(self, checker, w3, sample_transaction_hash):
        w3.eth.get_transaction_receipt.side_effect = Web3Exception("rpc down")

        status = await checker.get_transaction_status(sample_transaction_hash)

        assert status.status == TX_STATUS_UNKNOWN


class TestTransferDetails:
    """Decoding the USDT transfer call."""

    def test_decodes_transfer(self, checker, w3, sample_wallet_address, sample_transaction_hash):
        w3.eth.get_transaction.return_value = {
            "from": sample_wallet_address.lower(),
            "to": USDT_CONTRACT_ADDRESS.lower(),
            "input": "0xa9059cbb",
        }
        w3.eth.contract.return_value.decode_function_input.return_value = (
            SimpleNamespace(fn_name="transfer"),
            {"_to": PROJECT_WALLET_ADDRESS.lower(), "_value": 400 * 10**18},
        )

        details = checker.fetch_transfer_details_sync(sample_transaction_hash)

        assert details.from_address == sample_wallet_address
        assert details.to_address.lower() == PROJECT_WALLET_ADDRESS.lower()
        assert details.token_address.lower() == USDT_CONTRACT_ADDRESS.lower()
        assert details.amount == Decimal("400")

    def test_not_a_token_call(self, checker, w3, sample_wallet_address, sample_transaction_hash):
        w3.eth.get_transaction.return_value = {
            "from": sample_wallet_address,
            "to": PROJECT_WALLET_ADDRESS,
            "input": "0x",
        }

        details = checker.fetch_transfer_details_sync(sample_transaction_hash)

        assert details.token_address is None
        assert details.amount == Decimal("0")

    def test_unknown_transaction(self, checker, w3, sample_transaction_hash):
        w3.eth.get_transaction.side_effect = TransactionNotFound("missing")
        assert checker.fetch_transfer_details_sync(sample_transaction_hash) is None


class TestUnits:
    """Token base unit conversion."""

    def test_to_base_units(self):
        assert to_base_units(Decimal("20"), 18) == 20 * 10**18

    def test_to_base_units_rounds_down(self):
        assert to_base_units(Decimal("1.0000009"), 6) == 1_000_000

    def test_from_base_units(self):
        assert from_base_units(1_500_000, 6) == Decimal("1.5")
