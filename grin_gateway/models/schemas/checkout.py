from typing import List, Optional
from pydantic import BaseModel, Field

from grin_gateway.models.enums import CheckoutResult


HOW_TO_PAY_STEPS = [
    "Open your GRIN wallet",
    "Create a new transaction using the Slatepack address above",
    "Enter the exact amount shown",
    "Include the payment reference in the transaction message",
    "Complete the transaction",
]


class CheckoutResponse(BaseModel):
    """Response model for the checkout trigger"""

    result: CheckoutResult = Field(examples=[CheckoutResult.SUCCESS])
    redirect: Optional[str] = Field(
        default=None,
        examples=["https://shop.example.com/checkout/order-received/cm5h7ubkp0000v450cwvq6kc7/"],
        title="Redirect target",
    )
    message: Optional[str] = Field(default=None, title="Customer facing error message")


class RateRefreshRequest(BaseModel):
    order_id: str = Field(examples=["cm5h7ubkp0000v450cwvq6kc7"])


class RateRefreshResponse(BaseModel):
    """Response model for the exchange rate polling call"""

    success: bool
    grin_amount: Optional[str] = Field(
        default=None, examples=["80.00000000"], title="GRIN amount (8 decimal places)"
    )


class PaymentInstructions(BaseModel):
    """Data rendered on the thank-you page"""

    order_id: str
    title: str
    description: str
    slatepack_address: str
    payment_reference: str
    grin_amount: str = Field(examples=["80.00000000"])
    steps: List[str] = Field(default_factory=lambda: list(HOW_TO_PAY_STEPS))
    refresh_interval_seconds: int = Field(default=60)
