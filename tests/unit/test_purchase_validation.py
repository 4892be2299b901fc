"""Purchase amount validation and input validator tests."""

from decimal import Decimal

import pytest

from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.utils.exceptions import ValidationError
from mxi.validators import (
    normalize_email,
    normalize_tx_hash,
    normalize_wallet_address,
    parse_amount,
    validate_tx_hash,
    validate_wallet_address,
)


@pytest.fixture
def validator():
    return PurchaseAmountValidator()


class TestPurchaseAmountValidator:
    """Purchase corridor 20 - 50000 USDT."""

    @pytest.mark.parametrize("amount", ["20", "20.00", "100", "50000", Decimal("49999.99")])
    def test_accepts_amounts_in_corridor(self, validator, amount):
        assert validator.validate(amount) == Decimal(amount)

    @pytest.mark.parametrize("amount", ["19.99", "0", "-5", "50000.01", "100000"])
    def test_rejects_amounts_outside_corridor(self, validator, amount):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(amount)
        assert "between 20.00 and 50000.00 USDT" in exc_info.value.message

    @pytest.mark.parametrize("amount", ["abc", "", None, "NaN", "Infinity"])
    def test_rejects_unparseable(self, validator, amount):
        with pytest.raises(ValidationError):
            validator.validate(amount)

    def test_comma_decimal_separator(self, validator):
        assert validator.validate("100,5") == Decimal("100.5")

    def test_corridor_check_is_inclusive(self, validator):
        assert validator.validate_amount_in_corridor(Decimal("20")) == (True, None)
        assert validator.validate_amount_in_corridor(Decimal("50000")) == (True, None)

    def test_custom_bounds(self):
        validator = PurchaseAmountValidator(Decimal("50"), Decimal("100"))
        is_valid, error = validator.validate_amount_in_corridor(Decimal("20"))
        assert is_valid is False
        assert error == "Amount must be between 50.00 and 100.00 USDT"


class TestInputValidators:
    """Address, hash, email and amount parsing."""

    def test_wallet_address(self, sample_wallet_address):
        assert validate_wallet_address(sample_wallet_address) == (True, None)
        assert validate_wallet_address("0x1234")[0] is False
        assert validate_wallet_address("")[0] is False

    def test_wallet_address_checksummed(self, sample_wallet_address):
        assert normalize_wallet_address(sample_wallet_address.lower()) == sample_wallet_address

    def test_tx_hash(self, sample_transaction_hash):
        assert validate_tx_hash(sample_transaction_hash) == (True, None)
        assert validate_tx_hash("0x1234")[0] is False

    def test_tx_hash_lowercased(self):
        assert normalize_tx_hash("0x" + "AB" * 32) == "0x" + "ab" * 32

    def test_invalid_tx_hash_raises(self):
        with pytest.raises(ValueError):
            normalize_tx_hash("not-a-hash")

    def test_email(self):
        assert normalize_email("  Jo@Example.COM ") == "jo@example.com"
        with pytest.raises(ValueError):
            normalize_email("no-at-sign")

    def test_parse_amount(self):
        assert parse_amount("100,50") == (True, Decimal("100.50"), None)
        assert parse_amount(12.5) == (True, Decimal("12.5"), None)
        assert parse_amount(True)[0] is False
