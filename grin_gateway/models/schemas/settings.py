import os
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from grin_gateway.models.enums import ExchangeRateSource
from grin_gateway.services.exceptions import ConfigurationError
from grin_gateway.utils.coingecko.types import VSCurrency


class GatewaySettings(BaseModel):
    """GRIN gateway settings, as configured by the shop owner"""

    enabled: bool = Field(default=False, title="Enable GRIN Payments")
    title: str = Field(
        default="GRIN Payment",
        description="Payment method title that customers see at checkout",
    )
    description: str = Field(
        default="Pay with GRIN cryptocurrency using Slatepack",
        description="Payment method description that customers see at checkout",
    )
    slatepack_address: str = Field(default="", description="Your GRIN Slatepack address")
    api_key: Optional[str] = Field(
        default=None, description="API key for the GRIN node or verification service"
    )
    exchange_rate_source: ExchangeRateSource = Field(default=ExchangeRateSource.COINGECKO)
    manual_exchange_rate: Optional[Decimal] = Field(
        default=Decimal("1"),
        description="GRIN to store currency exchange rate (if using manual input)",
    )
    store_currency: VSCurrency = Field(default=VSCurrency.USD)

    verification_url: Optional[str] = Field(
        default=None, description="Base URL of the payment verification service"
    )
    amount_tolerance: Decimal = Field(default=Decimal("0.005"), ge=0, lt=1)
    reference_random_suffix: bool = Field(default=False)

    @field_validator("enabled", "reference_random_suffix", mode="before")
    @classmethod
    def parse_yes_no(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return v

    @field_validator("manual_exchange_rate", "verification_url", "api_key", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("store_currency", mode="before")
    @classmethod
    def lower_currency(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Load settings from GRIN_* environment variables"""
        values = {
            "enabled": os.getenv("GRIN_ENABLED", "no"),
            "title": os.getenv("GRIN_TITLE"),
            "description": os.getenv("GRIN_DESCRIPTION"),
            "slatepack_address": os.getenv("GRIN_SLATEPACK_ADDRESS"),
            "api_key": os.getenv("GRIN_API_KEY"),
            "exchange_rate_source": os.getenv("GRIN_EXCHANGE_RATE_SOURCE"),
            "manual_exchange_rate": os.getenv("GRIN_MANUAL_EXCHANGE_RATE"),
            "store_currency": os.getenv("GRIN_STORE_CURRENCY"),
            "verification_url": os.getenv("GRIN_VERIFICATION_URL"),
            "amount_tolerance": os.getenv("GRIN_AMOUNT_TOLERANCE"),
            "reference_random_suffix": os.getenv("GRIN_REFERENCE_RANDOM_SUFFIX"),
        }
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid GRIN gateway settings: {e}") from e
