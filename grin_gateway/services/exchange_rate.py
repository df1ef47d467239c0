from decimal import Decimal, InvalidOperation
from typing import Optional

from grin_gateway.models.enums import ExchangeRateSource
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.coingecko import CoinGeckoService, GRIN_COINGECKO_ID
from grin_gateway.services.exceptions import ConfigurationError
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)


class ExchangeRateProvider:
    """Resolves the GRIN price in the store currency."""

    def __init__(self, coingecko: Optional[CoinGeckoService] = None):
        self.coingecko = coingecko

    @staticmethod
    def manual_rate(settings: GatewaySettings) -> Decimal:
        """
        Configured manual rate.

        Zero or negative values are returned as is; the caller decides
        whether they are usable.
        """
        if settings.manual_exchange_rate is None:
            raise ConfigurationError("No manual GRIN exchange rate configured")
        try:
            return Decimal(str(settings.manual_exchange_rate))
        except InvalidOperation as e:
            raise ConfigurationError(
                f"Malformed manual GRIN exchange rate: {settings.manual_exchange_rate}"
            ) from e

    async def get_rate(self, settings: GatewaySettings) -> Decimal:
        """
        Get the current GRIN rate for the store currency.

        Args:
            settings: gateway settings holding the source and manual rate

        Returns: Decimal rate, one GRIN expressed in the store currency
        """
        if settings.exchange_rate_source == ExchangeRateSource.MANUAL:
            return self.manual_rate(settings)

        try:
            price = await self._fetch_quote(settings)
            return Decimal(str(price.price))
        except Exception as e:
            logger.warning(
                f"Error fetching GRIN exchange rate from CoinGecko, falling back to manual rate: {e}"
            )
            return self.manual_rate(settings)

    async def _fetch_quote(self, settings: GatewaySettings):
        if self.coingecko is not None:
            return await self.coingecko.get_price(GRIN_COINGECKO_ID, settings.store_currency)

        async with CoinGeckoService() as cg:
            return await cg.get_price(GRIN_COINGECKO_ID, settings.store_currency)
