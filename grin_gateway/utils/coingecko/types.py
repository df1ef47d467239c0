from typing import Dict, Optional, List
from enum import Enum
from pydantic import BaseModel, Field


class VSCurrency(str, Enum):
    """Supported vs currencies"""
    USD = "usd"
    EUR = "eur"
    GBP = "gbp"
    CAD = "cad"
    AUD = "aud"
    JPY = "jpy"
    CHF = "chf"
    BTC = "btc"
    ETH = "eth"


class PriceParams(BaseModel):
    """Parameters for price requests"""
    ids: List[str] = Field(..., description="Coin IDs to query")
    vs_currencies: List[VSCurrency] = Field(default=[VSCurrency.USD], description="Currencies to convert to")
    include_last_updated_at: bool = Field(default=False)
    precision: Optional[int] = Field(default=None, ge=0, le=18)

    def to_query_params(self) -> Dict[str, str]:
        params = {
            "ids": ",".join(self.ids),
            "vs_currencies": ",".join([c.value for c in self.vs_currencies])
        }
        if self.include_last_updated_at:
            params["include_last_updated_at"] = "true"
        if self.precision is not None:
            params["precision"] = str(self.precision)
        return params


class Price(BaseModel):
    """Price information for a coin"""
    currency_id: str
    price: float
    vs_currency: VSCurrency
    last_updated_at: Optional[int] = None
