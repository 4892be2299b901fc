"""
Verification client.

aiohttp client the settlement flow uses to call the verification endpoint.
"""

import aiohttp
from loguru import logger

from mxi.services.purchase.models import VerificationResult, VerifyPurchaseRequest
from mxi.utils.exceptions import BackendError, ValidationError
from mxi.utils.security import mask_tx_hash


class VerificationClient:
    """HTTP client for ``POST /verify-usdt-purchase``."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize verification client.

        Args:
            url: Full endpoint URL
            timeout: Request timeout in seconds
            session: Shared client session (created lazily otherwise)
        """
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def verify_purchase(self, request: VerifyPurchaseRequest) -> VerificationResult:
        """
        Ask the backend to verify a purchase.

        Args:
            request: Purchase to verify

        Returns:
            VerificationResult (200 confirmed, 202 pending, 422 failed)

        Raises:
            ValidationError: Backend rejected the request body (400)
            BackendError: Network failure or server error
        """
        session = await self._get_session()

        try:
            async with session.post(self.url, json=request.to_payload()) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None
                status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(
                f"Verification request failed for {mask_tx_hash(request.tx_hash)}: {e}"
            )
            raise BackendError("Failed to reach verification service") from e

        if not isinstance(data, dict):
            raise BackendError(
                "Verification service returned an invalid response",
                status_code=status,
            )

        if status == 400:
            raise ValidationError(data.get("error") or "Invalid verification request")

        if status in (200, 202, 422) and "status" in data:
            return VerificationResult.from_dict(data)

        logger.error(
            "Verification service error",
            extra={"status": status, "tx_hash": mask_tx_hash(request.tx_hash)},
        )
        raise BackendError(
            data.get("error") or "Verification service error", status_code=status
        )

    async def close(self) -> None:
        """Close the owned client session."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
