"""
Purchase service.

Writes pending purchase records and answers purchase history queries.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.enums import PurchaseStatus
from mxi.models.purchase import PurchaseRecord
from mxi.repositories.purchase_repository import PurchaseRepository
from mxi.repositories.user_repository import UserRepository
from mxi.services.presale.stage_service import PresaleStageService
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.utils.exceptions import BackendError, ValidationError
from mxi.utils.security import mask_tx_hash
from mxi.validators import normalize_tx_hash, normalize_wallet_address


class PurchaseService:
    """Purchase record writes and reads."""

    def __init__(
        self,
        session: AsyncSession,
        validator: PurchaseAmountValidator | None = None,
    ) -> None:
        """
        Initialize purchase service.

        Args:
            session: Async database session
            validator: Purchase amount validator
        """
        self.session = session
        self.validator = validator or PurchaseAmountValidator()
        self.purchase_repo = PurchaseRepository(session)
        self.user_repo = UserRepository(session)
        self.stage_service = PresaleStageService(session)

    async def record_pending_purchase(
        self,
        user_id: int,
        wallet_address: str,
        tx_hash: str,
        usdt_amount: Decimal,
        mxi_amount: Decimal,
        stage: int,
        commit: bool = True,
    ) -> PurchaseRecord:
        """
        Write a pending purchase once the wallet returned a tx hash.

        Re-recording the same hash with the same data returns the existing row.

        Args:
            user_id: Buyer
            wallet_address: Paying wallet
            tx_hash: Transaction hash
            usdt_amount: USDT paid
            mxi_amount: MXI computed at the stage price
            stage: Stage active at submission
            commit: Commit after insert

        Returns:
            Purchase record

        Raises:
            ValidationError: Unknown user or stage, malformed hash, amount
                outside the corridor, MXI above the stage quote, or hash
                already recorded with other data
            BackendError: Insert failed
        """
        try:
            tx_hash = normalize_tx_hash(tx_hash)
            wallet_address = normalize_wallet_address(wallet_address)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        usdt_amount = self.validator.validate(usdt_amount)

        existing = await self.purchase_repo.get_by_tx_hash(tx_hash)
        if existing is not None:
            if existing.user_id != user_id:
                raise ValidationError(
                    "Transaction already registered by another user",
                    tx_hash=tx_hash,
                )
            if not existing.matches(usdt_amount, mxi_amount, stage):
                raise ValidationError(
                    "Transaction already registered with different amounts",
                    tx_hash=tx_hash,
                )
            return existing

        if not await self.user_repo.exists(id=user_id):
            raise ValidationError("User not found", user_id=user_id)

        await self.stage_service.check_declared_quote(usdt_amount, mxi_amount, stage)

        try:
            purchase = await self.purchase_repo.create(
                user_id=user_id,
                wallet_address=wallet_address,
                tx_hash=tx_hash,
                usdt_amount=usdt_amount,
                mxi_amount=mxi_amount,
                stage=stage,
                status=PurchaseStatus.PENDING.value,
                confirmations=0,
            )
            if commit:
                await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"Failed to record purchase {mask_tx_hash(tx_hash)}: {e}")
            raise BackendError("Failed to record purchase") from e

        logger.info(
            "Pending purchase recorded",
            extra={
                "purchase_id": purchase.id,
                "user_id": user_id,
                "tx_hash": mask_tx_hash(tx_hash),
                "usdt_amount": str(usdt_amount),
                "mxi_amount": str(mxi_amount),
                "stage": stage,
            },
        )
        return purchase

    async def get_user_purchases(self, user_id: int) -> list[PurchaseRecord]:
        """Purchase history, newest first."""
        return await self.purchase_repo.get_user_purchases(user_id)
