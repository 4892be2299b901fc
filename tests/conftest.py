"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings; tests never touch a real node or database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RPC_URL", "https://bsc-dataseed.binance.org/")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("LOG_FILE", "logs/test.log")

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dataclasses import dataclass
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from mxi.config.business_constants import (
    PROJECT_WALLET_ADDRESS,
    USDT_CONTRACT_ADDRESS,
)
from mxi.services.blockchain.chain_checker import TransactionStatus, TransferDetails
from mxi.services.blockchain.constants import TX_STATUS_SUCCESS
from mxi.validators import normalize_wallet_address


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_wallet_address():
    """Checksummed buyer wallet address."""
    return normalize_wallet_address("0x742d35cc6634c0532925a3b844bc9e7595f0beb0")


@pytest.fixture
def sample_transaction_hash():
    """Sample transaction hash (lowercase)."""
    return "0x" + "ab" * 32


@dataclass
class FakeTransactionChecker:
    """Configurable stand-in for ChainTransactionChecker."""

    status: str = TX_STATUS_SUCCESS
    confirmations: int = 3
    block_number: int | None = 1000
    from_address: str | None = None
    to_address: str = PROJECT_WALLET_ADDRESS
    token_address: str | None = USDT_CONTRACT_ADDRESS
    amount: Decimal = Decimal("400")
    error: Exception | None = None
    status_calls: int = 0

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        self.status_calls += 1
        if self.error is not None:
            raise self.error
        return TransactionStatus(
            status=self.status,
            confirmations=self.confirmations,
            block_number=self.block_number,
        )

    async def fetch_transfer_details(self, tx_hash: str) -> TransferDetails | None:
        return TransferDetails(
            from_address=self.from_address,
            to_address=self.to_address,
            token_address=self.token_address,
            amount=self.amount,
        )


@pytest.fixture
def fake_checker(sample_wallet_address):
    """Checker reporting a 3-confirmation, 400 USDT transfer from the sample wallet."""
    return FakeTransactionChecker(from_address=sample_wallet_address)
