from typing import Dict, Optional
import os
import logging
import asyncio
import aiohttp
from aiocache import Cache, cached
from aiocache.serializers import PickleSerializer

from grin_gateway.config import EXCHANGE_RATE_TIMEOUT, RATE_CACHE_TTL
from grin_gateway.utils.coingecko.types import Price, VSCurrency, PriceParams

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

logger = logging.getLogger(__name__)

GRIN_COINGECKO_ID = "grin"


class CoinGeckoError(Exception):
    """Base exception for CoinGecko service errors."""

    pass


class RateLimitError(CoinGeckoError):
    """Raised when rate limit is reached."""

    pass


def parse_price(
    data: Dict, coin_id: str, vs_currency: VSCurrency
) -> Price:
    """
    Pick a single price out of a /simple/price response body.

    Raises CoinGeckoError when the coin or the vs currency is missing,
    or when the quoted price is not positive.
    """
    coin_data = (data or {}).get(coin_id)
    if not coin_data:
        raise CoinGeckoError(f"No price data for {coin_id}")

    price = coin_data.get(vs_currency.value)
    if price is None:
        raise CoinGeckoError(f"No {vs_currency.value} price for {coin_id}")
    if float(price) <= 0:
        raise CoinGeckoError(f"Non positive {vs_currency.value} price for {coin_id}: {price}")

    return Price(
        currency_id=coin_id,
        price=price,
        vs_currency=vs_currency,
        last_updated_at=coin_data.get("last_updated_at"),
    )


class CoinGeckoService:
    """Service wrapper around CoinGecko API with caching."""

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(self, api_key: Optional[str] = None, timeout: float = EXCHANGE_RATE_TIMEOUT):
        """
        Initialize the CoinGecko service.

        Args:
            api_key: Optional API key for CoinGecko Pro
            timeout: Total timeout in seconds for a single request
        """
        self.api_key = os.getenv("COINGECKO_API_KEY") if not api_key else api_key
        self.session = None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"accept": "application/json"}
        self.base_url = self.BASE_URL
        if self.api_key:
            self.headers["x-cg-pro-api-key"] = self.api_key
            self.base_url = self.PRO_BASE_URL

    async def __aenter__(self):
        """Context manager entry."""

        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(headers=self.headers, timeout=self.timeout)

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        if self.session and not self.session.closed:
            await self.session.close()

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(
            (aiohttp.ClientError, asyncio.TimeoutError, RateLimitError)
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    @cached(
        ttl=RATE_CACHE_TTL,
        cache=Cache.MEMORY,
        serializer=PickleSerializer(),
        key_builder=lambda f, self, coin_id, vs_currency: f"_get_price:{coin_id}@{vs_currency.value}",
    )
    async def _get_price(self, coin_id: str, vs_currency: VSCurrency) -> Price:
        """
        Get a single coin price with caching.

        Args:
            coin_id: CoinGecko coin ID
            vs_currency: Currency to get the price in
        """
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(headers=self.headers, timeout=self.timeout)

        try:
            params = PriceParams(
                ids=[coin_id],
                include_last_updated_at=True,
                vs_currencies=[vs_currency],
            )

            async with self.session.get(
                f"{self.base_url}/simple/price", params=params.to_query_params()
            ) as response:
                if response.status == 429:
                    raise RateLimitError("Rate limit reached")
                elif response.status >= 400:
                    raise CoinGeckoError(f"API error: {response.status}")

                data = await response.json()
                return parse_price(data, coin_id, vs_currency)

        except Exception as e:
            logger.error(f"Error fetching price for {coin_id}: {e}")
            raise

    async def get_price(
        self,
        coin_id: str = GRIN_COINGECKO_ID,
        vs_currency: VSCurrency = VSCurrency.USD,
    ) -> Price:
        """
        Get the current price of a coin.

        Args:
            coin_id: CoinGecko coin ID, GRIN by default
            vs_currency: Currency to get the price in
        """
        return await self._get_price(coin_id, vs_currency)
