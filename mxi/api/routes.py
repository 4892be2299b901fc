"""
HTTP route handlers.

POST /verify-usdt-purchase answers:
    200 confirmed, 202 needs more confirmations, 400 invalid request,
    422 verification rejected the payment, 500 backend failure.
"""

from aiohttp import web
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from mxi.api.keys import CHECKER_KEY, EVENTS_KEY, SESSION_MAKER_KEY, SETTINGS_KEY
from mxi.services.purchase.models import VerifyPurchaseRequest
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.services.purchase.verification import PurchaseVerificationService
from mxi.utils.exceptions import (
    MUST_LOG,
    BackendError,
    ValidationError,
    get_user_message,
)
from mxi.utils.security import mask_tx_hash


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"ok": False, "error": message}, status=status)


async def verify_purchase_handler(request: web.Request) -> web.Response:
    """Verify a USDT purchase by transaction hash."""
    try:
        payload = await request.json()
    except ValueError:
        return _error("Request body must be valid JSON", 400)

    try:
        verify_request = VerifyPurchaseRequest.from_payload(payload)
    except ValidationError as e:
        return _error(e.user_message, 400)

    app_settings = request.app[SETTINGS_KEY]
    session_maker = request.app[SESSION_MAKER_KEY]

    async with session_maker() as session:
        service = PurchaseVerificationService(
            session,
            checker=request.app[CHECKER_KEY],
            project_wallet_address=app_settings.project_wallet_address,
            usdt_contract_address=app_settings.usdt_contract_address,
            required_confirmations=app_settings.required_confirmations,
            validator=PurchaseAmountValidator(
                app_settings.purchase_min_usdt, app_settings.purchase_max_usdt
            ),
            events=request.app[EVENTS_KEY],
            vesting_monthly_rate=app_settings.vesting_monthly_rate,
        )
        try:
            result = await service.verify_purchase(verify_request)
        except ValidationError as e:
            return _error(e.user_message, 400)
        except BackendError as e:
            logger.error(
                f"Verification failed for {mask_tx_hash(verify_request.tx_hash)}: {e}"
            )
            return _error(get_user_message(e), 500)
        except (*MUST_LOG, SQLAlchemyError) as e:
            logger.exception(
                f"Verification error for {mask_tx_hash(verify_request.tx_hash)}: {e}"
            )
            return _error(BackendError.default_message, 500)

    return web.json_response(result.to_dict(), status=result.http_status)


async def health_handler(request: web.Request) -> web.Response:
    """Liveness with a database round trip."""
    try:
        async with request.app[SESSION_MAKER_KEY]() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {"status": "unhealthy", "database": False, "error": str(e)},
            status=503,
        )

    return web.json_response({"status": "healthy", "database": True})


def setup_routes(app: web.Application) -> None:
    app.router.add_post("/verify-usdt-purchase", verify_purchase_handler)
    app.router.add_get("/health", health_handler)
