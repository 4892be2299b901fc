"""
On-chain transaction checks for purchase verification.

Synchronous Web3 calls run in a thread pool so the event loop stays free.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from mxi.services.blockchain.constants import (
    TX_STATUS_PENDING,
    TX_STATUS_REVERTED,
    TX_STATUS_SUCCESS,
    TX_STATUS_UNKNOWN,
    USDT_ABI,
)
from mxi.services.blockchain.units import from_base_units
from mxi.utils.security import mask_tx_hash


@dataclass(frozen=True)
class TransactionStatus:
    """Receipt status and confirmation depth of a transaction."""

    status: str
    confirmations: int = 0
    block_number: int | None = None

    @property
    def is_mined(self) -> bool:
        """Check if a receipt exists."""
        return self.status in (TX_STATUS_SUCCESS, TX_STATUS_REVERTED)


@dataclass(frozen=True)
class TransferDetails:
    """Decoded token transfer carried by a transaction."""

    from_address: str
    to_address: str | None
    token_address: str | None
    amount: Decimal


class TransactionChecker(Protocol):
    """Read-only chain access used by purchase verification."""

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus: ...

    async def fetch_transfer_details(self, tx_hash: str) -> TransferDetails | None: ...


class ChainTransactionChecker:
    """
    Web3-backed transaction checker.

    Confirmations are counted as ``latest_block - receipt_block``.
    """

    def __init__(
        self,
        rpc_url: str,
        usdt_contract_address: str,
        usdt_decimals: int,
        w3: Web3 | None = None,
        max_workers: int = 4,
    ) -> None:
        """
        Initialize checker.

        Args:
            rpc_url: JSON-RPC endpoint
            usdt_contract_address: USDT token contract
            usdt_decimals: USDT token decimals
            w3: Prebuilt Web3 instance (tests)
            max_workers: Thread pool size
        """
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))
        self.usdt_contract_address = to_checksum_address(usdt_contract_address)
        self.usdt_decimals = usdt_decimals
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="web3"
        )

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    def check_transaction_status_sync(self, tx_hash: str) -> TransactionStatus:
        """
        Check receipt status (sync method for executor).

        Args:
            tx_hash: Transaction hash

        Returns:
            TransactionStatus; pending when no receipt exists yet
        """
        try:
            receipt = self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return TransactionStatus(status=TX_STATUS_PENDING)

        if not receipt:
            return TransactionStatus(status=TX_STATUS_PENDING)

        current = self.w3.eth.block_number
        confirmations = max(0, current - receipt["blockNumber"])
        status = TX_STATUS_SUCCESS if receipt["status"] == 1 else TX_STATUS_REVERTED

        return TransactionStatus(
            status=status,
            confirmations=confirmations,
            block_number=receipt["blockNumber"],
        )

    def fetch_transfer_details_sync(self, tx_hash: str) -> TransferDetails | None:
        """
        Decode the USDT transfer of a transaction (sync method for executor).

        Args:
            tx_hash: Transaction hash

        Returns:
            TransferDetails, or None when the transaction is unknown
        """
        try:
            tx = self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None

        from_address = to_checksum_address(tx["from"])
        target = to_checksum_address(tx["to"]) if tx["to"] else None

        if target != self.usdt_contract_address:
            return TransferDetails(
                from_address=from_address,
                to_address=target,
                token_address=None,
                amount=Decimal("0"),
            )

        contract = self.w3.eth.contract(address=self.usdt_contract_address, abi=USDT_ABI)
        try:
            func, params = contract.decode_function_input(tx["input"])
        except ValueError as e:
            logger.debug(f"Could not decode token call {mask_tx_hash(tx_hash)}: {e}")
            return TransferDetails(
                from_address=from_address,
                to_address=None,
                token_address=self.usdt_contract_address,
                amount=Decimal("0"),
            )

        if func.fn_name != "transfer":
            return TransferDetails(
                from_address=from_address,
                to_address=None,
                token_address=self.usdt_contract_address,
                amount=Decimal("0"),
            )

        return TransferDetails(
            from_address=from_address,
            to_address=to_checksum_address(params["_to"]),
            token_address=self.usdt_contract_address,
            amount=from_base_units(params["_value"], self.usdt_decimals),
        )

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        """Async wrapper around the receipt check; RPC failures report unknown."""
        try:
            return await self._run(self.check_transaction_status_sync, tx_hash)
        except (TimeoutError, Web3Exception) as e:
            logger.warning(
                f"Failed to check transaction status {mask_tx_hash(tx_hash)}: {e}"
            )
            return TransactionStatus(status=TX_STATUS_UNKNOWN)

    async def fetch_transfer_details(self, tx_hash: str) -> TransferDetails | None:
        """Async wrapper around transfer decoding."""
        return await self._run(self.fetch_transfer_details_sync, tx_hash)

    def close(self) -> None:
        """Shut down the thread pool."""
        self._executor.shutdown(wait=False)
