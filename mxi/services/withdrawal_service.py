"""
Withdrawal service.

Users with approved KYC may request a withdrawal of their referral
commissions. Purchased MXI and vesting rewards stay locked until launch.
Admins move requests through processing to completed or rejected.
"""

from decimal import ROUND_DOWN, Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.config.business_constants import WITHDRAWAL_FEE_RATE, WITHDRAWAL_MIN_MXI
from mxi.models.enums import WithdrawalSource, WithdrawalStatus
from mxi.models.withdrawal import WithdrawalRequest
from mxi.repositories.user_repository import UserRepository
from mxi.repositories.withdrawal_repository import WithdrawalRepository
from mxi.services.presale.stage_service import MXI_QUANTUM
from mxi.utils.datetime_utils import utc_now
from mxi.utils.db_decorators import with_rollback_on_error
from mxi.utils.exceptions import ValidationError
from mxi.validators import normalize_wallet_address


# Admin status changes allowed from each open status
ALLOWED_TRANSITIONS = {
    WithdrawalStatus.PENDING: {
        WithdrawalStatus.PROCESSING,
        WithdrawalStatus.COMPLETED,
        WithdrawalStatus.REJECTED,
    },
    WithdrawalStatus.PROCESSING: {
        WithdrawalStatus.COMPLETED,
        WithdrawalStatus.REJECTED,
    },
}


def calculate_withdrawal_fee(amount: Decimal) -> Decimal:
    """Processing fee for a withdrawal, rounded down to 8 decimals."""
    return (amount * WITHDRAWAL_FEE_RATE).quantize(MXI_QUANTUM, rounding=ROUND_DOWN)


class WithdrawalService:
    """Withdrawal requests and their admin review."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)

    async def get_available_balance(self, user_id: int) -> Decimal:
        """
        Referral commissions not yet requested for withdrawal.

        Raises:
            ValidationError: Unknown user
        """
        earned = await self.user_repo.get_referral_earnings(user_id)
        if earned is None:
            raise ValidationError("User not found", user_id=user_id)

        reserved = await self.withdrawal_repo.get_reserved_amount(user_id)
        return max(earned - reserved, Decimal("0"))

    @with_rollback_on_error
    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal,
        wallet_address: str,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        """
        Create a pending withdrawal of referral commissions.

        The user row is locked so concurrent requests cannot both reserve
        the same balance.

        Args:
            user_id: Requesting user
            amount: Gross MXI to withdraw
            wallet_address: Destination wallet
            notes: Optional note from the user

        Returns:
            Created withdrawal request

        Raises:
            ValidationError: KYC not approved, bad wallet, amount below the
                minimum or above the available balance
        """
        user = await self.user_repo.get_by_id(user_id, for_update=True)
        if user is None:
            raise ValidationError("User not found", user_id=user_id)
        if not user.is_kyc_approved:
            raise ValidationError(
                "KYC verification must be approved before withdrawing",
                user_id=user_id,
                kyc_status=user.kyc_status,
            )

        try:
            wallet_address = normalize_wallet_address(wallet_address)
        except ValueError as e:
            raise ValidationError(str(e), field="wallet_address") from e

        if amount < WITHDRAWAL_MIN_MXI:
            raise ValidationError(
                f"Minimum withdrawal is {WITHDRAWAL_MIN_MXI} MXI",
                amount=str(amount),
            )

        earned = await self.user_repo.get_referral_earnings(user_id)
        reserved = await self.withdrawal_repo.get_reserved_amount(user_id)
        available = earned - reserved
        if amount > available:
            raise ValidationError(
                "Insufficient withdrawable balance",
                requested=str(amount),
                available=str(available),
            )

        fee = calculate_withdrawal_fee(amount)
        withdrawal = await self.withdrawal_repo.create(
            user_id=user_id,
            wallet_address=wallet_address,
            amount=amount,
            fee=fee,
            source=WithdrawalSource.REFERRAL_COMMISSIONS.value,
            status=WithdrawalStatus.PENDING.value,
            notes=notes,
        )
        await self.session.commit()

        logger.info(
            "Withdrawal request created",
            extra={
                "withdrawal_id": withdrawal.id,
                "user_id": user_id,
                "amount": str(amount),
                "fee": str(fee),
            },
        )
        return withdrawal

    async def get_user_withdrawals(self, user_id: int) -> list[WithdrawalRequest]:
        """Withdrawal history of a user, newest first."""
        return await self.withdrawal_repo.get_by_user(user_id)

    @with_rollback_on_error
    async def update_status(
        self,
        withdrawal_id: int,
        status: WithdrawalStatus | str,
        admin_id: int | None = None,
        admin_notes: str | None = None,
    ) -> WithdrawalRequest:
        """
        Move a withdrawal to a new status (admin action).

        Completed and rejected requests are final and record who processed
        them and when. A rejected request releases its amount back to the
        user's available balance.

        Raises:
            ValidationError: Unknown withdrawal or status, or a transition
                out of a final status
        """
        try:
            status = WithdrawalStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown withdrawal status: {status}") from e

        withdrawal = await self.withdrawal_repo.get_by_id(withdrawal_id, for_update=True)
        if withdrawal is None:
            raise ValidationError("Withdrawal not found", withdrawal_id=withdrawal_id)

        current = WithdrawalStatus(withdrawal.status)
        if status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise ValidationError(
                f"Cannot change withdrawal from {current.value} to {status.value}",
                withdrawal_id=withdrawal_id,
            )

        withdrawal.status = status.value
        if admin_notes is not None:
            withdrawal.admin_notes = admin_notes
        if withdrawal.is_final:
            withdrawal.processed_at = utc_now()
            withdrawal.processed_by = admin_id

        await self.session.commit()

        logger.info(
            "Withdrawal status updated",
            extra={
                "withdrawal_id": withdrawal_id,
                "from_status": current.value,
                "to_status": status.value,
                "admin_id": admin_id,
            },
        )
        return withdrawal
