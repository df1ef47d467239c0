from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from grin_gateway.config import RATE_REFRESH_INTERVAL
from grin_gateway.models.database_models import Order
from grin_gateway.models.enums import (
    CheckoutResult,
    OrderStatus,
    PAYABLE_STATUSES,
    PAYMENT_METHOD_GRIN,
    META_PAYMENT_REFERENCE,
    META_GRIN_AMOUNT,
    META_EXCHANGE_RATE,
)
from grin_gateway.models.schemas.checkout import (
    CheckoutResponse,
    PaymentInstructions,
    RateRefreshResponse,
)
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exceptions import (
    ConfigurationError,
    GatewayError,
    InvalidRateError,
    OrderNotFoundError,
    OrderNotPayableError,
)
from grin_gateway.services.exchange_rate import ExchangeRateProvider
from grin_gateway.services.order import OrderService
from grin_gateway.services.storefront import Storefront
from grin_gateway.utils.common import (
    format_grin_amount,
    generate_payment_reference,
    to_grin_amount,
)
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)

AWAITING_PAYMENT_NOTE = "Awaiting GRIN payment"


class CheckoutService:
    def __init__(
        self,
        db: Session,
        settings: GatewaySettings,
        rates: ExchangeRateProvider,
        storefront: Optional[Storefront] = None,
    ):
        self.orders = OrderService(db)
        self.settings = settings
        self.rates = rates
        self.storefront = storefront or Storefront()

    async def _get_order(self, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _grin_amount(self, total: Decimal) -> tuple[Decimal, Decimal]:
        rate = await self.rates.get_rate(self.settings)
        if rate <= 0:
            raise InvalidRateError(rate)
        return to_grin_amount(Decimal(total) / rate), rate

    async def initiate_checkout(self, order_id: str) -> CheckoutResponse:
        """
        Start a GRIN payment for an order

        order_id: str

        Returns: CheckoutResponse
            - result: CheckoutResult
            - redirect: str (order received page)

        Raises OrderNotFoundError, OrderNotPayableError, ConfigurationError or
        InvalidRateError; nothing is written when one of them is raised.
        """
        if not self.settings.enabled:
            raise ConfigurationError("GRIN payments are disabled")

        order = await self._get_order(order_id)
        if order.status not in PAYABLE_STATUSES:
            raise OrderNotPayableError(order.id, order.status.value)

        payment_reference = generate_payment_reference(
            order.id, random_suffix=self.settings.reference_random_suffix
        )
        grin_amount, rate = await self._grin_amount(order.total)

        # Reference, amount, method and status land in a single commit,
        # and only while the order is still payable
        started = await self.orders.update_metadata(
            order,
            {
                META_PAYMENT_REFERENCE: payment_reference,
                META_GRIN_AMOUNT: str(grin_amount),
                META_EXCHANGE_RATE: str(rate),
            },
            note=AWAITING_PAYMENT_NOTE,
            payment_method=PAYMENT_METHOD_GRIN,
            status=OrderStatus.PENDING,
        )
        if not started:
            self.orders.db.refresh(order)
            raise OrderNotPayableError(order.id, order.status.value)

        try:
            await self.storefront.empty_cart(order)
        except Exception as e:
            logger.warning(f"Could not empty cart for order {order.id}: {e}")

        logger.info(
            f"Payment process initiated for order {order.id}. GRIN amount: {grin_amount}"
        )

        return CheckoutResponse(
            result=CheckoutResult.SUCCESS,
            redirect=self.storefront.get_return_url(order),
        )

    async def refresh_amount(self, order_id: str) -> RateRefreshResponse:
        """
        Recompute the GRIN amount of a pending order at the current rate.

        Any failure answers success=False without writing.
        """
        try:
            order = await self._get_order(order_id)
            if (
                order.status != OrderStatus.PENDING
                or order.payment_method != PAYMENT_METHOD_GRIN
            ):
                logger.info(f"Rate refresh ignored for order {order.id} with status {order.status.value}")
                return RateRefreshResponse(success=False)

            grin_amount, rate = await self._grin_amount(order.total)
        except GatewayError as e:
            logger.warning(f"Rate refresh failed for order {order_id}: {e}")
            return RateRefreshResponse(success=False)

        refreshed = await self.orders.update_metadata(
            order,
            {META_GRIN_AMOUNT: str(grin_amount), META_EXCHANGE_RATE: str(rate)},
            statuses=[OrderStatus.PENDING],
        )
        if not refreshed:
            return RateRefreshResponse(success=False)
        return RateRefreshResponse(success=True, grin_amount=format_grin_amount(grin_amount))

    async def payment_instructions(self, order_id: str) -> PaymentInstructions:
        """Data for the thank-you page of a GRIN order"""
        order = await self._get_order(order_id)
        metadata = order.metadata_ or {}
        payment_reference = metadata.get(META_PAYMENT_REFERENCE)
        grin_amount = metadata.get(META_GRIN_AMOUNT)
        if order.payment_method != PAYMENT_METHOD_GRIN or not payment_reference or not grin_amount:
            raise OrderNotFoundError(order_id)

        return PaymentInstructions(
            order_id=order.id,
            title=self.settings.title,
            description=self.settings.description,
            slatepack_address=self.settings.slatepack_address,
            payment_reference=payment_reference,
            grin_amount=format_grin_amount(grin_amount),
            refresh_interval_seconds=RATE_REFRESH_INTERVAL,
        )
