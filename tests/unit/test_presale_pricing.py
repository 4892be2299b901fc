"""Pre-sale stage pricing tests."""

from decimal import Decimal

import pytest

from mxi.config.business_constants import PRESALE_STAGES, PRESALE_TOTAL_MXI
from mxi.services.presale.stage_service import calculate_mxi_amount
from mxi.utils.exceptions import ValidationError


class TestStageConfiguration:
    """Stage prices and allocations."""

    def test_stage_prices(self):
        assert [PRESALE_STAGES[n]["price"] for n in (1, 2, 3)] == [
            Decimal("0.4"),
            Decimal("0.7"),
            Decimal("1.0"),
        ]

    def test_prices_increase_by_stage(self):
        prices = [PRESALE_STAGES[n]["price"] for n in sorted(PRESALE_STAGES)]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    def test_total_allocation(self):
        assert PRESALE_TOTAL_MXI == Decimal("25000000")


class TestCalculateMxiAmount:
    """USDT to MXI conversion."""

    def test_stage_one(self):
        assert calculate_mxi_amount(Decimal("100"), Decimal("0.4")) == Decimal("250")

    def test_minimum_purchase(self):
        assert calculate_mxi_amount(Decimal("20"), Decimal("0.4")) == Decimal("50")

    def test_same_usdt_buys_less_in_later_stages(self):
        amounts = [
            calculate_mxi_amount(Decimal("1000"), PRESALE_STAGES[n]["price"])
            for n in (1, 2, 3)
        ]
        assert amounts[0] > amounts[1] > amounts[2]

    def test_rounds_down_to_eight_decimals(self):
        assert calculate_mxi_amount(Decimal("100"), Decimal("0.7")) == Decimal(
            "142.85714285"
        )

    @pytest.mark.parametrize(
        "usdt,price",
        [
            (Decimal("100"), Decimal("0")),
            (Decimal("100"), Decimal("-1")),
            (Decimal("0"), Decimal("0.4")),
        ],
    )
    def test_rejects_non_positive_inputs(self, usdt, price):
        with pytest.raises(ValidationError):
            calculate_mxi_amount(usdt, price)
