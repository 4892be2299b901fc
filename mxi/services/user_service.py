"""
User service.

Registration with referral links and KYC status changes.
"""

import secrets
import string

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mxi.models.enums import KycStatus
from mxi.models.user import UserAccount
from mxi.repositories.user_repository import UserRepository
from mxi.services.referral.chain_manager import ReferralChainManager
from mxi.utils.db_decorators import with_rollback_on_error
from mxi.utils.exceptions import ValidationError
from mxi.utils.security import mask_email
from mxi.validators import normalize_email


REFERRAL_CODE_PREFIX = "MXI"
REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code() -> str:
    """Random referral code, e.g. ``MXI4K7Q2Z``."""
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH)
    )
    return f"{REFERRAL_CODE_PREFIX}{suffix}"


class UserService:
    """User registration and admin status changes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.chain_manager = ReferralChainManager(session)

    async def _unique_referral_code(self) -> str:
        while True:
            code = generate_referral_code()
            if not await self.user_repo.get_by_referral_code(code):
                return code

    @with_rollback_on_error
    async def register_user(
        self,
        email: str,
        name: str,
        referral_code: str | None = None,
    ) -> UserAccount:
        """
        Register new user with referral support.

        Args:
            email: User email
            name: Display name
            referral_code: Referral code of the inviting user

        Returns:
            Created user

        Raises:
            ValidationError: Bad email, duplicate email or unknown referral code
        """
        try:
            email = normalize_email(email)
        except ValueError as e:
            raise ValidationError(str(e), field="email") from e

        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")

        if await self.user_repo.get_by_email(email):
            raise ValidationError("Email already registered", field="email")

        referrer_id = None
        if referral_code:
            referrer = await self.user_repo.get_by_referral_code(
                referral_code.strip().upper()
            )
            if referrer is None:
                raise ValidationError("Referral code not found", field="referral_code")

            is_valid, error = await self.chain_manager.validate_referral_link(
                None, referrer.id
            )
            if not is_valid:
                raise ValidationError(error, field="referral_code")
            referrer_id = referrer.id

        user = await self.user_repo.create(
            email=email,
            name=name,
            referral_code=await self._unique_referral_code(),
            referred_by_id=referrer_id,
            kyc_status=KycStatus.PENDING.value,
        )
        await self.session.commit()

        logger.info(
            "User registered",
            extra={
                "user_id": user.id,
                "email": mask_email(email),
                "referred_by_id": referrer_id,
            },
        )
        return user

    @with_rollback_on_error
    async def link_referrer(self, user_id: int, referral_code: str) -> UserAccount:
        """
        Attach a referrer to an existing user without one.

        Raises:
            ValidationError: Unknown user or code, already linked, self
                referral or a link that would close a cycle
        """
        user = await self.user_repo.get_by_id(user_id, for_update=True)
        if user is None:
            raise ValidationError("User not found", user_id=user_id)
        if user.referred_by_id is not None:
            raise ValidationError("Referrer already set", user_id=user_id)

        referrer = await self.user_repo.get_by_referral_code(
            referral_code.strip().upper()
        )
        if referrer is None:
            raise ValidationError("Referral code not found", field="referral_code")

        is_valid, error = await self.chain_manager.validate_referral_link(
            user.id, referrer.id
        )
        if not is_valid:
            raise ValidationError(error, user_id=user_id, referrer_id=referrer.id)

        user.referred_by_id = referrer.id
        await self.session.commit()

        logger.info(
            "Referrer linked",
            extra={"user_id": user_id, "referrer_id": referrer.id},
        )
        return user

    @with_rollback_on_error
    async def set_kyc_status(self, user_id: int, status: KycStatus | str) -> UserAccount:
        """
        Set the KYC status of a user (admin action).

        Raises:
            ValidationError: Unknown user or status
        """
        try:
            status = KycStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown KYC status: {status}") from e

        user = await self.user_repo.update(user_id, kyc_status=status.value)
        if user is None:
            raise ValidationError("User not found", user_id=user_id)

        await self.session.commit()
        logger.info(f"KYC status of user {user_id} set to {status.value}")
        return user
