import secrets
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from grin_gateway.config import ADMIN_API_KEY
from grin_gateway.database.database import get_db
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exceptions import ConfigurationError
from grin_gateway.services.exchange_rate import ExchangeRateProvider
from grin_gateway.services.storefront import Storefront
from grin_gateway.services.verification import PaymentVerificationOracle, build_oracle


api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


@lru_cache
def _load_gateway_settings() -> GatewaySettings:
    return GatewaySettings.from_env()


def get_gateway_settings() -> GatewaySettings:
    try:
        return _load_gateway_settings()
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="GRIN gateway is misconfigured"
        ) from e


def get_exchange_rate_provider() -> ExchangeRateProvider:
    return ExchangeRateProvider()


def get_storefront() -> Storefront:
    return Storefront()


def get_verification_oracle(
    settings: GatewaySettings = Depends(get_gateway_settings),
) -> PaymentVerificationOracle:
    return build_oracle(settings)


def require_admin_key(api_key: str = Depends(api_key_header)) -> str:
    if not ADMIN_API_KEY or not api_key or not secrets.compare_digest(api_key, ADMIN_API_KEY):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")
    return api_key
