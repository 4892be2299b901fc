"""Referral chain, reward processing and statistics integration tests."""

from decimal import Decimal

import pytest

from mxi.services.purchase.purchase_service import PurchaseService
from mxi.services.referral.chain_manager import ReferralChainManager
from mxi.services.referral.reward_processor import ReferralRewardProcessor
from mxi.services.referral.statistics import ReferralStatisticsManager


@pytest.fixture
def ids(referral_chain):
    return {name: user.id for name, user in referral_chain.items()}


class TestReferralChainManager:
    """Ancestor chains and link validation."""

    @pytest.mark.asyncio
    async def test_chain_of_buyer(self, db_session, ids):
        chain = await ReferralChainManager(db_session).get_referrer_chain(ids["X"])
        assert chain == [ids["A"], ids["B"], ids["C"]]

    @pytest.mark.asyncio
    async def test_chain_capped_at_three_levels(self, db_session, make_user, referral_chain, ids):
        y = await make_user("Y", referred_by=referral_chain["X"])

        chain = await ReferralChainManager(db_session).get_referrer_chain(y.id)

        assert chain == [ids["X"], ids["A"], ids["B"]]

    @pytest.mark.asyncio
    async def test_top_of_tree(self, db_session, ids):
        assert await ReferralChainManager(db_session).get_referrer_chain(ids["C"]) == []

    @pytest.mark.asyncio
    async def test_link_valid_for_new_user(self, db_session, ids):
        manager = ReferralChainManager(db_session)
        assert await manager.validate_referral_link(None, ids["A"]) == (True, None)

    @pytest.mark.asyncio
    async def test_self_referral(self, db_session, ids):
        manager = ReferralChainManager(db_session)
        assert await manager.validate_referral_link(ids["A"], ids["A"]) == (
            False,
            "You cannot refer yourself",
        )

    @pytest.mark.asyncio
    async def test_unknown_referrer(self, db_session, ids):
        manager = ReferralChainManager(db_session)
        assert await manager.validate_referral_link(ids["A"], 999) == (
            False,
            "Referrer not found",
        )

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, db_session, ids):
        """C referred by X would close C -> B -> A -> X -> C."""
        manager = ReferralChainManager(db_session)
        assert await manager.validate_referral_link(ids["C"], ids["X"]) == (
            False,
            "Referral link would create a cycle",
        )


class TestReferralRewardProcessor:
    """Commission crediting."""

    @pytest.mark.asyncio
    async def test_credits_three_levels(self, db_session, ids):
        result = await ReferralRewardProcessor(db_session).process_rewards(
            ids["X"], Decimal("1000")
        )

        assert result.success
        assert result.rewards_count == 3
        assert result.total_rewards == Decimal("80")
        assert [c.referrer_id for c in result.credited] == [ids["A"], ids["B"], ids["C"]]

    @pytest.mark.asyncio
    async def test_no_referrer(self, db_session, ids):
        result = await ReferralRewardProcessor(db_session).process_rewards(
            ids["C"], Decimal("1000")
        )

        assert result.success
        assert result.rewards_count == 0
        assert result.total_rewards == Decimal("0")

    @pytest.mark.asyncio
    async def test_same_purchase_not_credited_twice(
        self, db_session, ids, stages, sample_wallet_address, sample_transaction_hash
    ):
        purchase = await PurchaseService(db_session).record_pending_purchase(
            user_id=ids["X"],
            wallet_address=sample_wallet_address,
            tx_hash=sample_transaction_hash,
            usdt_amount=Decimal("400"),
            mxi_amount=Decimal("1000"),
            stage=1,
        )
        processor = ReferralRewardProcessor(db_session)

        await processor.process_rewards(ids["X"], Decimal("1000"), purchase_id=purchase.id)
        again = await processor.process_rewards(
            ids["X"], Decimal("1000"), purchase_id=purchase.id
        )

        assert again.rewards_count == 0
        assert again.skipped_levels == [1, 2, 3]
        stats = await ReferralStatisticsManager(db_session).get_referral_stats(ids["A"])
        assert stats.level1_mxi == Decimal("50")


class TestReferralStatistics:
    """Referral dashboard figures."""

    @pytest.mark.asyncio
    async def test_counts_per_level(self, db_session, ids):
        levels = await ReferralStatisticsManager(db_session).get_referred_by_level(ids["C"])
        assert levels == {1: [ids["B"]], 2: [ids["A"]], 3: [ids["X"]]}

    @pytest.mark.asyncio
    async def test_stats_after_purchase(self, db_session, ids):
        await ReferralRewardProcessor(db_session).process_rewards(ids["X"], Decimal("1000"))

        stats = await ReferralStatisticsManager(db_session).get_referral_stats(ids["C"])

        assert stats.level1_count == 1
        assert stats.level2_count == 1
        assert stats.level3_count == 1
        assert stats.total_referrals == 3
        assert stats.level3_mxi == Decimal("10")
        assert stats.total_mxi_earned == Decimal("10")
        assert stats.to_dict()["level1Count"] == 1

    @pytest.mark.asyncio
    async def test_stats_without_referrals(self, db_session, ids):
        stats = await ReferralStatisticsManager(db_session).get_referral_stats(ids["X"])

        assert stats.total_referrals == 0
        assert stats.total_mxi_earned == Decimal("0")
