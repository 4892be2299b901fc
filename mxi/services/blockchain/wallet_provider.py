"""
Wallet provider interface.

The settlement flow talks to a wallet only through ``WalletProvider``.
``Web3WalletProvider`` implements it with a local signing key and an RPC
endpoint per chain; browser and mobile wallet SDKs implement the same
contract on their side.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from mxi.services.blockchain.constants import (
    DEFAULT_TOKEN_GAS_LIMIT,
    GAS_LIMIT_MULTIPLIER,
    USDT_ABI,
)
from mxi.services.blockchain.units import from_base_units, to_base_units
from mxi.utils.exceptions import (
    WALLET_CODE_UNRECOGNIZED_CHAIN,
    WalletError,
    WalletNotConnectedError,
    WrongNetworkError,
    classify_wallet_error,
)
from mxi.utils.security import mask_address, mask_tx_hash


class WalletProvider(Protocol):
    """Contract every wallet integration fulfils."""

    @property
    def address(self) -> str | None: ...

    async def connect(self) -> str: ...

    async def get_network(self) -> int: ...

    async def switch_network(self, chain_id: int) -> None: ...

    async def get_token_balance(self, token_address: str, decimals: int) -> Decimal: ...

    async def transfer_token(
        self, token_address: str, to_address: str, amount: Decimal, decimals: int
    ) -> str: ...


class Web3WalletProvider:
    """
    Wallet backed by a local private key.

    Args:
        private_key: Hex private key of the paying account
        rpc_urls: Map of chain id to JSON-RPC endpoint
        chain_id: Chain selected initially
    """

    def __init__(
        self,
        private_key: str,
        rpc_urls: dict[int, str],
        chain_id: int,
        max_workers: int = 2,
    ) -> None:
        if chain_id not in rpc_urls:
            raise ValueError(f"No RPC endpoint configured for chain {chain_id}")

        self._account: LocalAccount = Account.from_key(private_key)
        self._rpc_urls = rpc_urls
        self._chain_id = chain_id
        self._w3 = Web3(Web3.HTTPProvider(rpc_urls[chain_id]))
        self._connected = False
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="wallet"
        )

    @property
    def address(self) -> str | None:
        """Connected account address, None before connect()."""
        return self._account.address if self._connected else None

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, func, *args)
        except (Web3Exception, ContractLogicError, ValueError) as e:
            raise classify_wallet_error(e, self._chain_id) from e

    async def connect(self) -> str:
        """Mark the account as connected and return its address."""
        self._connected = True
        logger.info(f"Wallet connected: {mask_address(self._account.address)}")
        return self._account.address

    async def get_network(self) -> int:
        """Chain id reported by the current RPC endpoint."""
        return await self._run(lambda: self._w3.eth.chain_id)

    async def switch_network(self, chain_id: int) -> None:
        """
        Point the wallet at another chain.

        Raises:
            WrongNetworkError: Chain is not configured (code 4902)
        """
        if chain_id not in self._rpc_urls:
            raise WrongNetworkError(
                chain_id,
                self._chain_id,
                message=f"Chain {chain_id} is not configured in this wallet",
                code=WALLET_CODE_UNRECOGNIZED_CHAIN,
            )
        self._w3 = Web3(Web3.HTTPProvider(self._rpc_urls[chain_id]))
        self._chain_id = chain_id
        logger.info(f"Wallet switched to chain {chain_id}")

    def _require_connected(self) -> str:
        if not self._connected:
            raise WalletNotConnectedError()
        return self._account.address

    async def get_token_balance(self, token_address: str, decimals: int) -> Decimal:
        """Token balance of the connected account."""
        owner = self._require_connected()
        contract = self._w3.eth.contract(
            address=to_checksum_address(token_address), abi=USDT_ABI
        )
        raw = await self._run(contract.functions.balanceOf(owner).call)
        return from_base_units(raw, decimals)

    def _send_transfer_sync(self, token_address: str, to_address: str, value: int) -> str:
        owner = self._account.address
        contract = self._w3.eth.contract(
            address=to_checksum_address(token_address), abi=USDT_ABI
        )
        func = contract.functions.transfer(to_checksum_address(to_address), value)

        try:
            gas_est = func.estimate_gas({"from": owner})
        except ContractLogicError:
            raise
        except Web3Exception as e:
            logger.warning(f"Gas estimation failed: {e}")
            gas_est = DEFAULT_TOKEN_GAS_LIMIT

        txn = func.build_transaction({
            "from": owner,
            "gas": int(gas_est * GAS_LIMIT_MULTIPLIER),
            "gasPrice": self._w3.eth.gas_price,
            "nonce": self._w3.eth.get_transaction_count(owner, "pending"),
            "chainId": self._chain_id,
        })
        signed = self._account.sign_transaction(txn)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def transfer_token(
        self, token_address: str, to_address: str, amount: Decimal, decimals: int
    ) -> str:
        """
        Send a token transfer and return its hash without waiting for mining.

        Raises:
            WalletError: Classified provider failure
        """
        self._require_connected()
        value = to_base_units(amount, decimals)
        tx_hash = await self._run(
            self._send_transfer_sync, token_address, to_address, value
        )
        logger.info(
            f"Token transfer sent: {amount} to {mask_address(to_address)}, "
            f"hash: {mask_tx_hash(tx_hash)}"
        )
        return tx_hash
