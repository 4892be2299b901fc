"""
Pending purchase recheck task.

Re-verifies purchases that stayed pending after the client stopped polling
(app closed, network lost), so confirmed payments are still credited.
"""

from datetime import timedelta

import dramatiq
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from mxi.config.settings import settings
from mxi.repositories.purchase_repository import PurchaseRepository
from mxi.services.blockchain.chain_checker import (
    ChainTransactionChecker,
    TransactionChecker,
)
from mxi.services.purchase.models import VerifyPurchaseRequest
from mxi.services.purchase.validation import PurchaseAmountValidator
from mxi.services.purchase.verification import PurchaseVerificationService
from mxi.utils.datetime_utils import utc_now
from mxi.utils.exceptions import MXIError
from mxi.utils.security import mask_tx_hash


@dramatiq.actor(max_retries=1, time_limit=300_000)  # 5 min
def recheck_pending_purchases(limit: int = 100) -> None:
    """
    Re-verify stale pending purchases.

    Args:
        limit: Maximum purchases per run
    """
    checker = ChainTransactionChecker(
        settings.rpc_url,
        settings.usdt_contract_address,
        settings.usdt_decimals,
    )
    try:
        stats = run_async(_recheck_pending_purchases_async(checker, limit))
    finally:
        checker.close()

    logger.info(
        f"Pending purchase recheck complete: {stats['checked']} checked, "
        f"{stats['confirmed']} confirmed, {stats['failed']} failed, "
        f"{stats['errors']} errors"
    )


async def _recheck_pending_purchases_async(
    checker: TransactionChecker,
    limit: int,
    database_url: str | None = None,
) -> dict:
    """Async implementation of the pending purchase recheck."""
    stats = {"checked": 0, "confirmed": 0, "failed": 0, "pending": 0, "errors": 0}
    cutoff = utc_now() - timedelta(minutes=settings.pending_purchase_recheck_minutes)

    async with create_local_session(database_url) as session:
        pending = await PurchaseRepository(session).find_pending(
            created_before=cutoff, limit=limit
        )
        requests = [
            VerifyPurchaseRequest(
                user_id=purchase.user_id,
                wallet=purchase.wallet_address,
                tx_hash=purchase.tx_hash,
                usdt_amount=purchase.usdt_amount,
                mxi_amount=purchase.mxi_amount,
                stage=purchase.stage,
            )
            for purchase in pending
        ]

        service = PurchaseVerificationService(
            session,
            checker=checker,
            project_wallet_address=settings.project_wallet_address,
            usdt_contract_address=settings.usdt_contract_address,
            required_confirmations=settings.required_confirmations,
            validator=PurchaseAmountValidator(
                settings.purchase_min_usdt, settings.purchase_max_usdt
            ),
            vesting_monthly_rate=settings.vesting_monthly_rate,
        )

        for request in requests:
            stats["checked"] += 1
            try:
                result = await service.verify_purchase(request)
            except MXIError as e:
                stats["errors"] += 1
                logger.error(
                    f"Recheck failed for {mask_tx_hash(request.tx_hash)}: {e}"
                )
                continue

            stats[result.status] += 1

    return stats
