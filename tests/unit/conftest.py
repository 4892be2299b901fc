"""Fixtures for unit tests (no database, no network)."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from mxi.config.business_constants import BSC_CHAIN_ID


@dataclass
class FakeVestingState:
    """Plain vesting inputs for calculator tests."""

    principal_mxi: Decimal
    accumulated_rewards: Decimal = Decimal("0")
    monthly_rate: Decimal = Decimal("0.03")
    last_update_at: datetime = field(
        default_factory=lambda: datetime(2025, 1, 1, tzinfo=UTC)
    )


@dataclass
class FakeWallet:
    """In-memory wallet provider."""

    address: str | None
    network: int = BSC_CHAIN_ID
    balance: Decimal = Decimal("1000")
    tx_hash: str = "0x" + "cd" * 32
    transfer_error: Exception | None = None
    transfers: list = field(default_factory=list)

    async def connect(self) -> str:
        return self.address

    async def get_network(self) -> int:
        return self.network

    async def switch_network(self, chain_id: int) -> None:
        self.network = chain_id

    async def get_token_balance(self, token_address: str, decimals: int) -> Decimal:
        return self.balance

    async def transfer_token(
        self, token_address: str, to_address: str, amount: Decimal, decimals: int
    ) -> str:
        if self.transfer_error is not None:
            raise self.transfer_error
        self.transfers.append((token_address, to_address, amount, decimals))
        return self.tx_hash


@pytest.fixture
def vesting_start():
    return datetime(2025, 1, 1, tzinfo=UTC)


@pytest.fixture
def fake_wallet(sample_wallet_address):
    return FakeWallet(address=sample_wallet_address)


@pytest.fixture
def stage_quoter():
    """Quotes at the stage 1 price (0.4 USDT per MXI)."""
    quoter = AsyncMock()

    async def _quote(usdt_amount, stage=None):
        return usdt_amount / Decimal("0.4"), SimpleNamespace(stage=1)

    quoter.calculate_mxi_amount.side_effect = _quote
    return quoter


@pytest.fixture
def recorder():
    recorder = AsyncMock()
    recorder.record_pending_purchase.return_value = SimpleNamespace(id=17)
    return recorder


@pytest.fixture
def verifier():
    return AsyncMock()


@pytest.fixture
def make_vesting_state(vesting_start):
    """Factory for plain vesting inputs starting at ``vesting_start``."""

    def _make(**overrides) -> FakeVestingState:
        overrides.setdefault("last_update_at", vesting_start)
        return FakeVestingState(**overrides)

    return _make
