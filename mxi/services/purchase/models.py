"""
Purchase verification data objects.

Request and result shapes shared by the verification service, the HTTP
endpoint and the verification client.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from mxi.models.enums import PurchaseStatus
from mxi.utils.exceptions import ValidationError
from mxi.validators import normalize_tx_hash, normalize_wallet_address, parse_amount


REQUIRED_FIELDS = ("userId", "wallet", "txHash", "usdtPagados", "mxiComprados", "stage")


def _parse_positive_int(payload: dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool):
        raise ValidationError(f"Field '{key}' must be an integer", field=key)
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Field '{key}' must be an integer", field=key) from None
    if parsed <= 0 or str(parsed) != str(value).strip():
        raise ValidationError(f"Field '{key}' must be a positive integer", field=key)
    return parsed


def _parse_positive_amount(payload: dict[str, Any], key: str) -> Decimal:
    is_valid, value, error = parse_amount(payload[key])
    if not is_valid:
        raise ValidationError(f"Field '{key}': {error}", field=key)
    if value <= 0:
        raise ValidationError(f"Field '{key}' must be positive", field=key)
    return value


@dataclass(frozen=True)
class VerifyPurchaseRequest:
    """Body of ``POST /verify-usdt-purchase``."""

    user_id: int
    wallet: str
    tx_hash: str
    usdt_amount: Decimal
    mxi_amount: Decimal
    stage: int

    @classmethod
    def from_payload(cls, payload: Any) -> "VerifyPurchaseRequest":
        """
        Build a request from a JSON body.

        Raises:
            ValidationError: Missing or malformed fields
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        missing = [key for key in REQUIRED_FIELDS if payload.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", missing=missing
            )

        try:
            wallet = normalize_wallet_address(str(payload["wallet"]))
        except ValueError as e:
            raise ValidationError(f"Invalid wallet: {e}", field="wallet") from e

        try:
            tx_hash = normalize_tx_hash(str(payload["txHash"]))
        except ValueError as e:
            raise ValidationError(f"Invalid txHash: {e}", field="txHash") from e

        return cls(
            user_id=_parse_positive_int(payload, "userId"),
            wallet=wallet,
            tx_hash=tx_hash,
            usdt_amount=_parse_positive_amount(payload, "usdtPagados"),
            mxi_amount=_parse_positive_amount(payload, "mxiComprados"),
            stage=_parse_positive_int(payload, "stage"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body (amounts as strings)."""
        return {
            "userId": self.user_id,
            "wallet": self.wallet,
            "txHash": self.tx_hash,
            "usdtPagados": str(self.usdt_amount),
            "mxiComprados": str(self.mxi_amount),
            "stage": self.stage,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of one verification attempt."""

    status: str
    confirmations: int = 0
    required: int = 0
    message: str | None = None
    already_processed: bool = False
    purchase_id: int | None = None

    @property
    def missing_confirmations(self) -> int:
        """Confirmations still needed (0 once enough)."""
        return max(self.required - self.confirmations, 0)

    @property
    def is_confirmed(self) -> bool:
        return self.status == PurchaseStatus.CONFIRMED.value

    @property
    def is_pending(self) -> bool:
        return self.status == PurchaseStatus.PENDING.value

    @property
    def is_failed(self) -> bool:
        return self.status == PurchaseStatus.FAILED.value

    @property
    def http_status(self) -> int:
        """HTTP status the endpoint answers with."""
        if self.is_confirmed:
            return 200
        if self.is_pending:
            return 202
        return 422

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.is_confirmed,
            "status": self.status,
            "confirmations": self.confirmations,
            "required": self.required,
            "missingConfirmations": self.missing_confirmations,
            "alreadyProcessed": self.already_processed,
            "purchaseId": self.purchase_id,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerificationResult":
        return cls(
            status=data["status"],
            confirmations=int(data.get("confirmations") or 0),
            required=int(data.get("required") or 0),
            message=data.get("message"),
            already_processed=bool(data.get("alreadyProcessed", False)),
            purchase_id=data.get("purchaseId"),
        )
