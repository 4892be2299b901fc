"""Verification request and result tests."""

from decimal import Decimal

import pytest

from mxi.services.purchase.models import VerificationResult, VerifyPurchaseRequest
from mxi.utils.exceptions import ValidationError


@pytest.fixture
def payload(sample_wallet_address, sample_transaction_hash):
    return {
        "userId": 5,
        "wallet": sample_wallet_address.lower(),
        "txHash": sample_transaction_hash.upper().replace("0X", "0x"),
        "usdtPagados": "400",
        "mxiComprados": "1000",
        "stage": 1,
    }


class TestVerifyPurchaseRequest:
    """Parsing the verification request body."""

    def test_from_payload_normalizes(self, payload, sample_wallet_address, sample_transaction_hash):
        request = VerifyPurchaseRequest.from_payload(payload)

        assert request.user_id == 5
        assert request.wallet == sample_wallet_address
        assert request.tx_hash == sample_transaction_hash
        assert request.usdt_amount == Decimal("400")
        assert request.mxi_amount == Decimal("1000")
        assert request.stage == 1

    @pytest.mark.parametrize("field", ["userId", "wallet", "txHash", "usdtPagados", "mxiComprados", "stage"])
    def test_missing_field(self, payload, field):
        del payload[field]
        with pytest.raises(ValidationError) as exc_info:
            VerifyPurchaseRequest.from_payload(payload)
        assert field in exc_info.value.message

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            VerifyPurchaseRequest.from_payload(["not", "a", "dict"])

    @pytest.mark.parametrize(
        "field,value",
        [
            ("wallet", "0x1234"),
            ("txHash", "0xabc"),
            ("userId", "abc"),
            ("userId", True),
            ("userId", -1),
            ("userId", 1.5),
            ("stage", 0),
            ("usdtPagados", "lots"),
            ("mxiComprados", "-3"),
        ],
    )
    def test_malformed_field(self, payload, field, value):
        payload[field] = value
        with pytest.raises(ValidationError):
            VerifyPurchaseRequest.from_payload(payload)

    def test_numeric_string_ids_accepted(self, payload):
        payload["userId"] = "5"
        assert VerifyPurchaseRequest.from_payload(payload).user_id == 5

    def test_to_payload_round_trip(self, payload):
        request = VerifyPurchaseRequest.from_payload(payload)
        body = request.to_payload()

        assert body["usdtPagados"] == "400"
        assert VerifyPurchaseRequest.from_payload(body) == request


class TestVerificationResult:
    """Verification outcome mapping."""

    @pytest.mark.parametrize(
        "status,http_status",
        [("confirmed", 200), ("pending", 202), ("failed", 422)],
    )
    def test_http_status(self, status, http_status):
        assert VerificationResult(status=status).http_status == http_status

    def test_missing_confirmations(self):
        result = VerificationResult(status="pending", confirmations=1, required=3)
        assert result.missing_confirmations == 2
        assert result.is_pending

    def test_missing_confirmations_never_negative(self):
        result = VerificationResult(status="confirmed", confirmations=10, required=3)
        assert result.missing_confirmations == 0

    def test_to_dict(self):
        result = VerificationResult(
            status="confirmed", confirmations=3, required=3, purchase_id=9
        )
        assert result.to_dict() == {
            "ok": True,
            "status": "confirmed",
            "confirmations": 3,
            "required": 3,
            "missingConfirmations": 0,
            "alreadyProcessed": False,
            "purchaseId": 9,
            "message": None,
        }

    def test_from_dict(self):
        result = VerificationResult.from_dict(
            {"status": "failed", "message": "Transaction reverted on chain"}
        )
        assert result.is_failed
        assert result.confirmations == 0
        assert result.message == "Transaction reverted on chain"
