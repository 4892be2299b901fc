"""Blockchain access: transaction checks and wallet providers."""

from mxi.services.blockchain.chain_checker import (
    ChainTransactionChecker,
    TransactionChecker,
    TransactionStatus,
    TransferDetails,
)
from mxi.services.blockchain.wallet_provider import WalletProvider, Web3WalletProvider

__all__ = [
    "ChainTransactionChecker",
    "TransactionChecker",
    "TransactionStatus",
    "TransferDetails",
    "WalletProvider",
    "Web3WalletProvider",
]
