"""
Purchase verification service.

Server side of ``POST /verify-usdt-purchase``: checks the payment on chain
and, once it is deep enough, credits vesting principal, stage sales and
referral commissions in a single transaction.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.config.business_constants import REQUIRED_CONFIRMATIONS, VESTING_MONTHLY_RATE
from mxi.models.enums import PurchaseStatus
from mxi.models.purchase import PurchaseRecord
from mxi.repositories.purchase_repository import PurchaseRepository
from mxi.repositories.user_repository import UserRepository
from mxi.services.blockchain.chain_checker import TransactionChecker
from mxi.services.blockchain.constants import TX_STATUS_REVERTED, TX_STATUS_SUCCESS
from mxi.services.presale.stage_service import PresaleStageService
from mxi.services.purchase.models import VerificationResult, VerifyPurchaseRequest
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.services.realtime import EVENT_UPDATE, RealtimeEventStream, RowChange, row_to_dict
from mxi.services.referral.reward_processor import ReferralRewardProcessor
from mxi.services.vesting.service import VestingService
from mxi.utils.datetime_utils import utc_now
from mxi.utils.db_decorators import with_rollback_on_error
from mxi.utils.exceptions import BackendError, ValidationError
from mxi.utils.security import mask_address, mask_tx_hash


class PurchaseVerificationService:
    """
    Verifies USDT payments and credits confirmed purchases.

    Idempotency: the purchase row is locked by tx hash and a confirmed row
    is never credited again.
    """

    def __init__(
        self,
        session: AsyncSession,
        checker: TransactionChecker,
        project_wallet_address: str,
        usdt_contract_address: str,
        required_confirmations: int = REQUIRED_CONFIRMATIONS,
        validator: PurchaseAmountValidator | None = None,
        events: RealtimeEventStream | None = None,
        vesting_monthly_rate: Decimal = VESTING_MONTHLY_RATE,
    ) -> None:
        """
        Initialize verification service.

        Args:
            session: Async database session
            checker: On-chain transaction checker
            project_wallet_address: Wallet receiving USDT
            usdt_contract_address: USDT token contract
            required_confirmations: Blocks needed before crediting
            validator: Purchase amount validator
            events: Row change stream notified after commits
            vesting_monthly_rate: Rate for vesting states created on first purchase
        """
        self.session = session
        self.checker = checker
        self.project_wallet_address = project_wallet_address
        self.usdt_contract_address = usdt_contract_address
        self.required_confirmations = required_confirmations
        self.validator = validator or PurchaseAmountValidator()
        self.events = events

        self.purchase_repo = PurchaseRepository(session)
        self.user_repo = UserRepository(session)
        self.stage_service = PresaleStageService(session)
        self.vesting_service = VestingService(
            session, default_monthly_rate=vesting_monthly_rate
        )
        self.referral_processor = ReferralRewardProcessor(session)

    def _result(
        self, purchase: PurchaseRecord, **overrides
    ) -> VerificationResult:
        data = {
            "status": purchase.status,
            "confirmations": purchase.confirmations,
            "required": self.required_confirmations,
            "purchase_id": purchase.id,
            "message": purchase.failure_reason,
        }
        data.update(overrides)
        return VerificationResult(**data)

    async def _publish(self, table: str, entity) -> None:
        if self.events is None:
            return
        await self.events.publish(
            RowChange(table=table, event=EVENT_UPDATE, new=row_to_dict(entity))
        )

    @with_rollback_on_error
    async def verify_purchase(
        self, request: VerifyPurchaseRequest, now: datetime | None = None
    ) -> VerificationResult:
        """
        Verify a purchase by tx hash.

        Args:
            request: Validated request body
            now: Confirmation instant (defaults to current UTC time)

        Returns:
            VerificationResult (confirmed, pending or failed)

        Raises:
            ValidationError: Request contradicts stored data
            BackendError: Crediting failed
        """
        now = now or utc_now()
        self.validator.validate(request.usdt_amount)

        purchase = await self._load_or_create(request)

        if purchase.is_confirmed:
            logger.info(
                "Purchase already confirmed",
                extra={"purchase_id": purchase.id, "tx_hash": mask_tx_hash(purchase.tx_hash)},
            )
            await self.session.commit()
            return self._result(purchase, already_processed=True)

        if purchase.is_failed:
            await self.session.commit()
            return self._result(purchase, already_processed=True)

        tx_status = await self.checker.get_transaction_status(purchase.tx_hash)

        if tx_status.status == TX_STATUS_REVERTED:
            return await self._mark_failed(purchase, "Transaction reverted on chain")

        if tx_status.status != TX_STATUS_SUCCESS:
            await self.session.commit()
            return self._result(purchase, confirmations=0)

        purchase.confirmations = tx_status.confirmations
        purchase.block_number = tx_status.block_number

        if tx_status.confirmations < self.required_confirmations:
            await self.session.commit()
            logger.debug(
                "Purchase awaiting confirmations",
                extra={
                    "purchase_id": purchase.id,
                    "confirmations": tx_status.confirmations,
                    "required": self.required_confirmations,
                },
            )
            return self._result(purchase)

        mismatch = await self._check_transfer(purchase)
        if mismatch:
            return await self._mark_failed(purchase, mismatch)

        await self._confirm(purchase, now)
        return self._result(purchase)

    async def _load_or_create(self, request: VerifyPurchaseRequest) -> PurchaseRecord:
        purchase = await self.purchase_repo.get_by_tx_hash(
            request.tx_hash, for_update=True
        )

        if purchase is None:
            purchase = await self._create_from_request(request)
            if purchase is not None:
                return purchase

            # Another request inserted the same hash first
            purchase = await self.purchase_repo.get_by_tx_hash(
                request.tx_hash, for_update=True
            )
            if purchase is None:
                raise BackendError("Failed to record purchase", status_code=500)

        if purchase.user_id != request.user_id:
            raise ValidationError(
                "Transaction belongs to another user", tx_hash=request.tx_hash
            )
        if purchase.wallet_address.lower() != request.wallet.lower():
            raise ValidationError(
                "Wallet does not match the recorded purchase",
                tx_hash=request.tx_hash,
            )
        if not purchase.matches(request.usdt_amount, request.mxi_amount, request.stage):
            raise ValidationError(
                "Request does not match the recorded purchase",
                tx_hash=request.tx_hash,
            )

        if purchase.is_pending:
            await self.stage_service.check_declared_quote(
                purchase.usdt_amount, purchase.mxi_amount, purchase.stage
            )
        return purchase

    async def _create_from_request(
        self, request: VerifyPurchaseRequest
    ) -> PurchaseRecord | None:
        """
        Record a purchase whose client-side insert never arrived.

        Returns:
            New pending record, or None when the hash was inserted concurrently
        """
        if not await self.user_repo.exists(id=request.user_id):
            raise ValidationError("User not found", user_id=request.user_id)

        await self.stage_service.check_declared_quote(
            request.usdt_amount, request.mxi_amount, request.stage
        )

        try:
            purchase = await self.purchase_repo.create(
                user_id=request.user_id,
                wallet_address=request.wallet,
                tx_hash=request.tx_hash,
                usdt_amount=request.usdt_amount,
                mxi_amount=request.mxi_amount,
                stage=request.stage,
                status=PurchaseStatus.PENDING.value,
                confirmations=0,
            )
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Purchase inserted concurrently, reloading",
                extra={"tx_hash": mask_tx_hash(request.tx_hash)},
            )
            return None

        logger.info(
            "Pending purchase created during verification",
            extra={"purchase_id": purchase.id, "tx_hash": mask_tx_hash(request.tx_hash)},
        )
        return purchase

    async def _check_transfer(self, purchase: PurchaseRecord) -> str | None:
        """Return a failure reason when the on-chain transfer does not match."""
        details = await self.checker.fetch_transfer_details(purchase.tx_hash)

        if details is None:
            return "Transaction not found"
        if (details.token_address or "").lower() != self.usdt_contract_address.lower():
            return "Transaction is not a USDT transfer"
        if (details.to_address or "").lower() != self.project_wallet_address.lower():
            return "USDT was not sent to the project wallet"
        if details.from_address.lower() != purchase.wallet_address.lower():
            return "Sender does not match the purchase wallet"
        if details.amount < purchase.usdt_amount:
            logger.warning(
                "Transfer amount below declared amount",
                extra={
                    "purchase_id": purchase.id,
                    "declared": str(purchase.usdt_amount),
                    "transferred": str(details.amount),
                    "wallet": mask_address(purchase.wallet_address),
                },
            )
            return "Transferred amount is lower than the declared amount"
        return None

    async def _mark_failed(
        self, purchase: PurchaseRecord, reason: str
    ) -> VerificationResult:
        purchase.status = PurchaseStatus.FAILED.value
        purchase.failure_reason = reason
        await self.session.commit()
        await self._publish("purchases", purchase)

        logger.warning(
            "Purchase verification failed",
            extra={
                "purchase_id": purchase.id,
                "tx_hash": mask_tx_hash(purchase.tx_hash),
                "reason": reason,
            },
        )
        return self._result(purchase)

    async def _confirm(self, purchase: PurchaseRecord, now: datetime) -> None:
        """Credit a purchase: status, vesting principal, stage sales, referrals."""
        purchase.status = PurchaseStatus.CONFIRMED.value
        purchase.confirmed_at = now

        vesting_state = await self.vesting_service.add_principal(
            purchase.user_id, purchase.mxi_amount, now=now
        )

        try:
            await self.stage_service.record_sale(purchase.stage, purchase.mxi_amount)
        except ValidationError as e:
            logger.error(
                "Stage allocation exhausted for a paid purchase",
                extra={"purchase_id": purchase.id, "stage": purchase.stage},
            )
            raise BackendError(
                "Stage allocation exhausted, purchase needs manual review",
                status_code=500,
                purchase_id=purchase.id,
            ) from e

        referral = await self.referral_processor.process_rewards(
            purchase.user_id,
            purchase.mxi_amount,
            purchase_id=purchase.id,
            commit=False,
        )

        await self.session.commit()
        await self._publish("purchases", purchase)
        await self._publish("vesting_states", vesting_state)

        logger.info(
            "Purchase confirmed",
            extra={
                "purchase_id": purchase.id,
                "user_id": purchase.user_id,
                "mxi_amount": str(purchase.mxi_amount),
                "stage": purchase.stage,
                "referral_total": str(referral.total_rewards),
            },
        )
