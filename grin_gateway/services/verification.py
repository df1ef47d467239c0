from abc import ABC, abstractmethod
import asyncio
from decimal import Decimal
from typing import Optional

import aiohttp
from pydantic import BaseModel, ValidationError

from grin_gateway.config import VERIFICATION_TIMEOUT
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exceptions import OracleTransientError
from grin_gateway.utils.common import amount_within_tolerance
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentVerificationOracle(ABC):
    """Answers whether a payment reference has been paid for an amount."""

    @abstractmethod
    async def verify(self, reference: str, expected_amount: Decimal) -> bool:
        """
        Pure query, safe to repeat.

        Raises OracleTransientError when no answer can be given right now.
        """
        raise NotImplementedError


class UnverifiedPaymentOracle(PaymentVerificationOracle):
    """Used when no verification service is configured. Never confirms a payment."""

    async def verify(self, reference: str, expected_amount: Decimal) -> bool:
        logger.info(f"Verifying payment: {reference}, Expected amount: {expected_amount}")
        return False


class PaymentReceipt(BaseModel):
    """Body returned by the verification service for a reference"""

    reference: str
    received: bool = False
    amount: Optional[Decimal] = None


class HttpVerificationOracle(PaymentVerificationOracle):
    """
    Asks a verification service (GRIN wallet listener or node indexer) for a receipt.

    GET {base_url}/payments/{reference} with an X-API-KEY header.
    404 means nothing was received yet; 5xx, timeouts and connection errors are
    transient.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        tolerance: Decimal = Decimal("0"),
        timeout: float = VERIFICATION_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.tolerance = tolerance
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"accept": "application/json"}
        if api_key:
            self.headers["X-API-KEY"] = api_key

    async def verify(self, reference: str, expected_amount: Decimal) -> bool:
        receipt = await self._fetch_receipt(reference)
        if receipt is None or not receipt.received:
            return False

        if receipt.reference != reference:
            logger.warning(f"Receipt reference mismatch: asked {reference}, got {receipt.reference}")
            return False

        if receipt.amount is None:
            return False

        matched = amount_within_tolerance(Decimal(expected_amount), receipt.amount, self.tolerance)
        if not matched:
            logger.warning(
                f"Payment {reference} received {receipt.amount} GRIN, expected {expected_amount}"
            )
        return matched

    async def _fetch_receipt(self, reference: str) -> Optional[PaymentReceipt]:
        try:
            async with aiohttp.ClientSession(headers=self.headers, timeout=self.timeout) as session:
                async with session.get(f"{self.base_url}/payments/{reference}") as response:
                    if response.status == 404:
                        return None
                    if response.status >= 500 or response.status == 429:
                        raise OracleTransientError(
                            f"Verification service error: {response.status}"
                        )
                    if response.status >= 400:
                        raise OracleTransientError(
                            f"Verification service rejected request: {response.status}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise OracleTransientError(f"Verification service unreachable: {e}") from e

        try:
            return PaymentReceipt(**data)
        except (TypeError, ValidationError) as e:
            raise OracleTransientError(f"Malformed verification response: {e}") from e


def build_oracle(settings: GatewaySettings) -> PaymentVerificationOracle:
    if settings.verification_url:
        return HttpVerificationOracle(
            base_url=settings.verification_url,
            api_key=settings.api_key,
            tolerance=settings.amount_tolerance,
        )
    return UnverifiedPaymentOracle()
