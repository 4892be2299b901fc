"""
Purchase settlement flow.

Drives one purchase from amount entry to a verified, credited record:

    idle -> wallet_check -> submitted -> recorded_pending -> verifying
         -> confirmed | failed

Collaborators (wallet, stage pricing, purchase recorder, verifier) are
injected; the flow keeps only the state of the purchase in progress.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from mxi.config.business_constants import (
    CONFIRMATION_POLL_INTERVAL_SECONDS,
    REQUIRED_CONFIRMATIONS,
)
from mxi.services.blockchain.wallet_provider import WalletProvider
from mxi.services.purchase.models import VerificationResult, VerifyPurchaseRequest
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.services.purchase.verification_client import VerificationClient
from mxi.utils.exceptions import (
    BackendError,
    InsufficientBalanceError,
    MXIError,
    WalletError,
    WalletNotConnectedError,
    WrongNetworkError,
    classify_wallet_error,
)
from mxi.utils.security import mask_address, mask_tx_hash

if TYPE_CHECKING:
    from mxi.config.settings import Settings


class SettlementState(StrEnum):
    """State of the purchase in progress."""

    IDLE = "idle"
    WALLET_CHECK = "wallet_check"
    SUBMITTED = "submitted"
    RECORDED_PENDING = "recorded_pending"
    VERIFYING = "verifying"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class StageQuoter(Protocol):
    async def calculate_mxi_amount(
        self, usdt_amount: Decimal, stage: int | None = None
    ) -> tuple[Decimal, Any]: ...


class PurchaseRecorder(Protocol):
    async def record_pending_purchase(
        self,
        user_id: int,
        wallet_address: str,
        tx_hash: str,
        usdt_amount: Decimal,
        mxi_amount: Decimal,
        stage: int,
    ) -> Any: ...


class PurchaseVerifier(Protocol):
    async def verify_purchase(self, request: VerifyPurchaseRequest) -> VerificationResult: ...


@dataclass
class PurchaseTicket:
    """Purchase in progress."""

    user_id: int
    wallet_address: str
    usdt_amount: Decimal
    mxi_amount: Decimal
    stage: int
    tx_hash: str | None = None
    purchase_id: int | None = None
    confirmations: int = 0
    required: int = REQUIRED_CONFIRMATIONS
    failure_reason: str | None = None

    @property
    def missing_confirmations(self) -> int:
        return max(self.required - self.confirmations, 0)

    def to_request(self) -> VerifyPurchaseRequest:
        if self.tx_hash is None:
            raise ValueError("Ticket has no transaction hash yet")
        return VerifyPurchaseRequest(
            user_id=self.user_id,
            wallet=self.wallet_address,
            tx_hash=self.tx_hash,
            usdt_amount=self.usdt_amount,
            mxi_amount=self.mxi_amount,
            stage=self.stage,
        )


class PurchaseSettlementFlow:
    """
    One purchase at a time, from wallet checks to verification.

    Args:
        wallet: Connected wallet provider
        stages: Stage pricing (active stage and MXI quote)
        recorder: Writes the pending purchase record
        verifier: Verification endpoint client
        chain_id: Chain purchases settle on
        usdt_contract_address: Settlement token
        usdt_decimals: Settlement token decimals
        project_wallet_address: Payment destination
        validator: Purchase amount validator
        poll_interval: Default seconds between verification polls
    """

    def __init__(
        self,
        wallet: WalletProvider,
        stages: StageQuoter,
        recorder: PurchaseRecorder,
        verifier: PurchaseVerifier,
        chain_id: int,
        usdt_contract_address: str,
        usdt_decimals: int,
        project_wallet_address: str,
        validator: PurchaseAmountValidator | None = None,
        poll_interval: float = CONFIRMATION_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.wallet = wallet
        self.stages = stages
        self.recorder = recorder
        self.verifier = verifier
        self.chain_id = chain_id
        self.usdt_contract_address = usdt_contract_address
        self.usdt_decimals = usdt_decimals
        self.project_wallet_address = project_wallet_address
        self.validator = validator or PurchaseAmountValidator()
        self.poll_interval = poll_interval

        self.state = SettlementState.IDLE
        self.ticket: PurchaseTicket | None = None
        self.last_result: VerificationResult | None = None

    def reset(self) -> None:
        """Return to idle for a new purchase."""
        self.state = SettlementState.IDLE
        self.ticket = None
        self.last_result = None

    def _fail(self, reason: str) -> None:
        self.state = SettlementState.FAILED
        if self.ticket is not None:
            self.ticket.failure_reason = reason

    def validate_amount(self, amount: Any) -> Decimal:
        """Validate the entered USDT amount; no side effects."""
        return self.validator.validate(amount)

    async def check_wallet(self, amount: Decimal) -> str:
        """
        Check connection, network and USDT balance.

        Args:
            amount: USDT to pay

        Returns:
            Connected wallet address

        Raises:
            WalletNotConnectedError: No account connected
            WrongNetworkError: Wallet on another chain
            InsufficientBalanceError: USDT balance below amount
        """
        self.state = SettlementState.WALLET_CHECK
        try:
            address = self.wallet.address
            if not address:
                raise WalletNotConnectedError()

            network = await self.wallet.get_network()
            if network != self.chain_id:
                raise WrongNetworkError(self.chain_id, network)

            balance = await self.wallet.get_token_balance(
                self.usdt_contract_address, self.usdt_decimals
            )
            if balance < amount:
                raise InsufficientBalanceError(balance=balance, required=amount)
        except WalletError:
            self.state = SettlementState.IDLE
            raise
        except Exception as e:
            self.state = SettlementState.IDLE
            raise classify_wallet_error(e, self.chain_id) from e

        return address

    async def switch_network(self) -> None:
        """Remediation for WrongNetworkError: ask the wallet to switch."""
        try:
            await self.wallet.switch_network(self.chain_id)
        except WalletError:
            raise
        except Exception as e:
            raise classify_wallet_error(e, self.chain_id) from e

    async def submit(self, user_id: int, amount: Any) -> PurchaseTicket:
        """
        Validate, check the wallet, pay and record the pending purchase.

        Args:
            user_id: Buyer
            amount: USDT amount as entered

        Returns:
            Ticket in state recorded_pending

        Raises:
            ValidationError: Amount out of bounds or over the stage allocation
            WalletError: Wallet check or transfer failed
            BackendError: Pending record could not be written (the payment
                was sent; ``verify()`` can still settle it)
        """
        if self.state not in (
            SettlementState.IDLE,
            SettlementState.CONFIRMED,
            SettlementState.FAILED,
        ):
            raise MXIError(f"A purchase is already in progress ({self.state})")
        self.reset()

        usdt_amount = self.validate_amount(amount)
        address = await self.check_wallet(usdt_amount)

        # Price is fixed by the stage active at submission time
        try:
            mxi_amount, stage = await self.stages.calculate_mxi_amount(usdt_amount)
        except MXIError:
            self.state = SettlementState.IDLE
            raise

        self.ticket = PurchaseTicket(
            user_id=user_id,
            wallet_address=address,
            usdt_amount=usdt_amount,
            mxi_amount=mxi_amount,
            stage=stage.stage,
        )

        try:
            tx_hash = await self.wallet.transfer_token(
                self.usdt_contract_address,
                self.project_wallet_address,
                usdt_amount,
                self.usdt_decimals,
            )
        except Exception as e:
            error = classify_wallet_error(e, self.chain_id)
            self._fail(error.message)
            logger.warning(
                f"Purchase transfer failed for {mask_address(address)}: {error.message}"
            )
            raise error from e

        self.ticket.tx_hash = tx_hash
        self.state = SettlementState.SUBMITTED
        logger.info(
            "Purchase submitted",
            extra={
                "user_id": user_id,
                "tx_hash": mask_tx_hash(tx_hash),
                "usdt_amount": str(usdt_amount),
                "mxi_amount": str(mxi_amount),
                "stage": stage.stage,
            },
        )

        try:
            record = await self.recorder.record_pending_purchase(
                user_id=user_id,
                wallet_address=address,
                tx_hash=tx_hash,
                usdt_amount=usdt_amount,
                mxi_amount=mxi_amount,
                stage=stage.stage,
            )
        except MXIError:
            raise
        except Exception as e:
            logger.error(f"Failed to record pending purchase {mask_tx_hash(tx_hash)}: {e}")
            raise BackendError("Failed to record purchase") from e

        self.ticket.purchase_id = getattr(record, "id", None)
        self.state = SettlementState.RECORDED_PENDING
        return self.ticket

    async def verify(self) -> VerificationResult:
        """
        Call the verification endpoint once.

        Pending keeps the flow in ``verifying``; confirmed and failed are
        terminal.
        """
        if self.ticket is None or self.ticket.tx_hash is None:
            raise MXIError("No submitted purchase to verify")
        if self.state in (SettlementState.CONFIRMED, SettlementState.FAILED):
            return self.last_result

        self.state = SettlementState.VERIFYING
        result = await self.verifier.verify_purchase(self.ticket.to_request())
        self.last_result = result

        self.ticket.confirmations = result.confirmations
        self.ticket.required = result.required or self.ticket.required
        if result.purchase_id is not None:
            self.ticket.purchase_id = result.purchase_id

        if result.is_confirmed:
            self.state = SettlementState.CONFIRMED
        elif result.is_failed:
            self._fail(result.message or "Verification rejected the purchase")

        return result

    async def wait_for_confirmation(
        self,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
    ) -> VerificationResult:
        """
        Poll verification until confirmed or failed.

        Args:
            poll_interval: Seconds between polls (flow default when omitted)
            max_attempts: Stop after this many polls (unbounded when omitted)

        Returns:
            Last verification result (may still be pending when
            max_attempts is reached)
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        attempts = 0

        while True:
            result = await self.verify()
            attempts += 1

            if not result.is_pending:
                return result
            if max_attempts is not None and attempts >= max_attempts:
                return result

            logger.debug(
                f"Waiting for {result.missing_confirmations} more confirmations"
            )
            await asyncio.sleep(interval)


def create_settlement_flow(
    app_settings: "Settings",
    wallet: WalletProvider,
    stages: StageQuoter,
    recorder: PurchaseRecorder,
    verifier: PurchaseVerifier | None = None,
) -> PurchaseSettlementFlow:
    """
    Build a settlement flow from application settings.

    Args:
        app_settings: Chain, token, corridor and verification settings
        wallet: Connected wallet provider
        stages: Stage pricing
        recorder: Pending purchase recorder
        verifier: Verification client (built from ``verification_url`` when
            omitted)

    Returns:
        Flow in state idle
    """
    if verifier is None:
        verifier = VerificationClient(
            app_settings.verification_url,
            timeout=app_settings.verification_timeout,
        )

    return PurchaseSettlementFlow(
        wallet=wallet,
        stages=stages,
        recorder=recorder,
        verifier=verifier,
        chain_id=app_settings.chain_id,
        usdt_contract_address=app_settings.usdt_contract_address,
        usdt_decimals=app_settings.usdt_decimals,
        project_wallet_address=app_settings.project_wallet_address,
        validator=PurchaseAmountValidator(
            app_settings.purchase_min_usdt, app_settings.purchase_max_usdt
        ),
        poll_interval=app_settings.confirmation_poll_interval,
    )
