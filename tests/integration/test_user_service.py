"""User registration, referral linking and KYC integration tests."""

import pytest

from mxi.models.enums import KycStatus
from mxi.services.user_service import UserService, generate_referral_code
from mxi.utils.exceptions import ValidationError


@pytest.fixture
def service(db_session):
    return UserService(db_session)


class TestReferralCode:
    def test_format(self):
        code = generate_referral_code()
        assert code.startswith("MXI")
        assert len(code) == 9
        assert code[3:].isalnum() and code[3:].upper() == code[3:]


class TestRegisterUser:
    """Registration."""

    @pytest.mark.asyncio
    async def test_register(self, service):
        user = await service.register_user("  Ana@Example.com ", "Ana")

        assert user.id is not None
        assert user.email == "ana@example.com"
        assert user.kyc_status == KycStatus.PENDING.value
        assert user.referral_code.startswith("MXI")
        assert user.referred_by_id is None

    @pytest.mark.asyncio
    async def test_register_with_referral_code(self, service, make_user):
        referrer = await make_user("Ref")
        referrer_id, code = referrer.id, referrer.referral_code

        user = await service.register_user("new@example.com", "New", code.lower())

        assert user.referred_by_id == referrer_id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service):
        await service.register_user("ana@example.com", "Ana")

        with pytest.raises(ValidationError, match="already registered"):
            await service.register_user("ANA@example.com", "Ana again")

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, service):
        with pytest.raises(ValidationError, match="Referral code not found"):
            await service.register_user("ana@example.com", "Ana", "MXINOPE00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,name", [("not-an-email", "Ana"), ("ana@example.com", " ")])
    async def test_invalid_input(self, service, email, name):
        with pytest.raises(ValidationError):
            await service.register_user(email, name)


class TestLinkReferrer:
    """Attaching a referrer after registration."""

    @pytest.mark.asyncio
    async def test_link(self, service, make_user):
        referrer = await make_user("Ref")
        user = await make_user("Solo")
        referrer_id, code, user_id = referrer.id, referrer.referral_code, user.id

        linked = await service.link_referrer(user_id, code)

        assert linked.referred_by_id == referrer_id

    @pytest.mark.asyncio
    async def test_already_linked(self, service, referral_chain):
        x_id = referral_chain["X"].id
        code = referral_chain["C"].referral_code

        with pytest.raises(ValidationError, match="already set"):
            await service.link_referrer(x_id, code)

    @pytest.mark.asyncio
    async def test_cycle(self, service, referral_chain):
        c_id = referral_chain["C"].id
        code = referral_chain["X"].referral_code

        with pytest.raises(ValidationError, match="cycle"):
            await service.link_referrer(c_id, code)

    @pytest.mark.asyncio
    async def test_self(self, service, make_user):
        user = await make_user("Solo")
        user_id, code = user.id, user.referral_code

        with pytest.raises(ValidationError, match="cannot refer yourself"):
            await service.link_referrer(user_id, code)


class TestKycStatus:
    """Admin KYC changes."""

    @pytest.mark.asyncio
    async def test_approve(self, service, make_user):
        user = await make_user()

        updated = await service.set_kyc_status(user.id, "approved")

        assert updated.is_kyc_approved

    @pytest.mark.asyncio
    async def test_unknown_status(self, service, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await service.set_kyc_status(user.id, "maybe")

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(ValidationError):
            await service.set_kyc_status(999, KycStatus.REJECTED)
