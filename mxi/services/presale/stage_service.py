"""
Pre-sale stage service.

Stage pricing, sold-allocation tracking and stage advancement.
"""

from decimal import ROUND_DOWN, Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.config.business_constants import PRESALE_STAGES
from mxi.models.presale_stage import PreSaleStage
from mxi.repositories.presale_stage_repository import PresaleStageRepository
from mxi.utils.datetime_utils import utc_now
from mxi.utils.exceptions import ValidationError


MXI_QUANTUM = Decimal("0.00000001")


def calculate_mxi_amount(usdt_amount: Decimal, price_usdt: Decimal) -> Decimal:
    """
    Convert a USDT amount to MXI at a stage price.

    Rounded down to 8 decimals so the buyer is never credited more than paid.

    Args:
        usdt_amount: USDT paid
        price_usdt: Stage price in USDT per MXI

    Returns:
        MXI amount

    Examples:
        >>> calculate_mxi_amount(Decimal("100"), Decimal("0.4"))
        Decimal('250.00000000')
    """
    if price_usdt <= 0:
        raise ValidationError("Stage price must be positive", price=str(price_usdt))
    if usdt_amount <= 0:
        raise ValidationError("Amount must be positive", amount=str(usdt_amount))
    return (usdt_amount / price_usdt).quantize(MXI_QUANTUM, rounding=ROUND_DOWN)


class PresaleStageService:
    """Pre-sale stage operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize stage service.

        Args:
            session: Async database session
        """
        self.session = session
        self.stage_repo = PresaleStageRepository(session)

    async def seed_default_stages(self) -> list[PreSaleStage]:
        """
        Create the default stages when the table is empty.

        Stage 1 is activated. Existing rows are left untouched.

        Returns:
            All stages ordered by number
        """
        existing = await self.stage_repo.get_ordered()
        if existing:
            return existing

        first = min(PRESALE_STAGES)
        for number, config in sorted(PRESALE_STAGES.items()):
            await self.stage_repo.create(
                stage=number,
                price_usdt=config["price"],
                total_mxi=config["total_mxi"],
                sold_mxi=Decimal("0"),
                is_active=number == first,
                starts_at=utc_now() if number == first else None,
            )
        await self.session.commit()

        logger.info(f"Seeded {len(PRESALE_STAGES)} pre-sale stages")
        return await self.stage_repo.get_ordered()

    async def get_active_stage(self) -> PreSaleStage | None:
        """
        Get the stage currently on sale.

        Sold-out stages are advanced past first.

        Returns:
            Active stage or None when every stage is sold out
        """
        stage = await self.stage_repo.get_active()
        while stage is not None and stage.is_sold_out:
            stage = await self.advance_stage(stage)
        return stage

    async def get_stage(self, stage: int) -> PreSaleStage | None:
        """Get a stage by number."""
        return await self.stage_repo.get_by_id(stage)

    async def calculate_mxi_amount(
        self, usdt_amount: Decimal, stage: int | None = None
    ) -> tuple[Decimal, PreSaleStage]:
        """
        Quote MXI for a USDT amount.

        Args:
            usdt_amount: USDT to pay
            stage: Stage number (active stage when omitted)

        Returns:
            Tuple of (mxi_amount, stage)

        Raises:
            ValidationError: Unknown stage, no active stage, or the quote
                exceeds the stage's remaining allocation
        """
        if stage is None:
            stage_row = await self.get_active_stage()
            if stage_row is None:
                raise ValidationError("Pre-sale is sold out")
        else:
            stage_row = await self.stage_repo.get_by_id(stage)
            if stage_row is None:
                raise ValidationError("Unknown pre-sale stage", stage=stage)

        mxi_amount = calculate_mxi_amount(usdt_amount, stage_row.price_usdt)
        if mxi_amount > stage_row.remaining_mxi:
            raise ValidationError(
                "Not enough MXI left in the current stage",
                stage=stage_row.stage,
                requested=str(mxi_amount),
                remaining=str(stage_row.remaining_mxi),
            )
        return mxi_amount, stage_row

    async def check_declared_quote(
        self, usdt_amount: Decimal, mxi_amount: Decimal, stage: int
    ) -> Decimal:
        """
        Check a declared MXI amount against the stage price.

        Args:
            usdt_amount: USDT paid
            mxi_amount: MXI the purchase claims
            stage: Stage the purchase was priced at

        Returns:
            MXI quoted at the stage price

        Raises:
            ValidationError: Unknown stage, non-positive MXI or MXI above the quote
        """
        stage_row = await self.stage_repo.get_by_id(stage)
        if stage_row is None:
            raise ValidationError("Unknown pre-sale stage", stage=stage)

        quoted = calculate_mxi_amount(usdt_amount, stage_row.price_usdt)
        if mxi_amount <= 0:
            raise ValidationError("MXI amount must be positive", mxi_amount=str(mxi_amount))
        if mxi_amount > quoted:
            raise ValidationError(
                "Declared MXI amount exceeds the stage price quote",
                declared=str(mxi_amount),
                quoted=str(quoted),
                stage=stage,
            )
        return quoted

    async def record_sale(self, stage: int, mxi_amount: Decimal) -> None:
        """
        Add sold MXI to a stage.

        Atomic increment guarded by the allocation. Does not commit.

        Raises:
            ValidationError: Sale would oversell the stage
        """
        if mxi_amount <= 0:
            raise ValidationError("Sold amount must be positive")

        updated = await self.stage_repo.increment_sold(stage, mxi_amount)
        if not updated:
            raise ValidationError(
                "Sale exceeds stage allocation",
                stage=stage,
                mxi_amount=str(mxi_amount),
            )

        logger.info(
            "Stage sale recorded",
            extra={"stage": stage, "mxi_amount": str(mxi_amount)},
        )

    async def advance_stage(self, current: PreSaleStage) -> PreSaleStage | None:
        """
        Deactivate a sold-out stage and activate the next one.

        Args:
            current: Sold-out active stage

        Returns:
            Newly active stage or None after the last stage
        """
        current.is_active = False
        next_stage = await self.stage_repo.get_by_id(current.stage + 1)

        if next_stage is not None:
            next_stage.is_active = True
            next_stage.starts_at = utc_now()

        await self.session.commit()

        logger.info(
            "Pre-sale stage advanced",
            extra={
                "from_stage": current.stage,
                "to_stage": next_stage.stage if next_stage else None,
            },
        )
        return next_stage
