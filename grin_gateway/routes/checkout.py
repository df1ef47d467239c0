from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from grin_gateway.database.dependencies import (
    get_db,
    get_exchange_rate_provider,
    get_gateway_settings,
    get_storefront,
)
from grin_gateway.models.enums import CheckoutResult
from grin_gateway.models.schemas.checkout import (
    CheckoutResponse,
    PaymentInstructions,
    RateRefreshRequest,
    RateRefreshResponse,
)
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.checkout import CheckoutService
from grin_gateway.services.exceptions import GatewayError, OrderNotFoundError
from grin_gateway.services.exchange_rate import ExchangeRateProvider
from grin_gateway.services.storefront import Storefront
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/checkout", tags=["Checkout"])

PAYMENT_ERROR_MESSAGE = "Payment error. Please try again or choose another payment method."


def get_checkout_service(
    db: Session = Depends(get_db),
    settings: GatewaySettings = Depends(get_gateway_settings),
    rates: ExchangeRateProvider = Depends(get_exchange_rate_provider),
    storefront: Storefront = Depends(get_storefront),
) -> CheckoutService:
    return CheckoutService(db, settings, rates, storefront)


@router.post("/update-exchange-rate", response_model=RateRefreshResponse)
async def update_exchange_rate(
    req: RateRefreshRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """API Route polled by the payment page to refresh the GRIN amount"""
    return await service.refresh_amount(req.order_id)


@router.post("/{order_id}", response_model=CheckoutResponse)
async def checkout(
    order_id: str,
    response: Response,
    service: CheckoutService = Depends(get_checkout_service),
):
    """API Route for paying an order with GRIN"""

    try:
        return await service.initiate_checkout(order_id)
    except OrderNotFoundError as e:
        logger.warning(f"Checkout failed: {e}")
        response.status_code = status.HTTP_404_NOT_FOUND
    except GatewayError as e:
        logger.error(f"Checkout failed for order {order_id}: {e}")
        response.status_code = status.HTTP_400_BAD_REQUEST

    return CheckoutResponse(result=CheckoutResult.FAILURE, message=PAYMENT_ERROR_MESSAGE)


@router.get("/{order_id}/instructions", response_model=PaymentInstructions)
async def payment_instructions(
    order_id: str,
    service: CheckoutService = Depends(get_checkout_service),
):
    """API Route for the GRIN payment instructions shown after checkout"""

    try:
        return await service.payment_instructions(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
