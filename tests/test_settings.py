from decimal import Decimal

import pytest

from grin_gateway.models.enums import ExchangeRateSource
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exceptions import ConfigurationError
from grin_gateway.utils.coingecko.types import VSCurrency

GRIN_VARIABLES = [
    "GRIN_ENABLED",
    "GRIN_TITLE",
    "GRIN_DESCRIPTION",
    "GRIN_SLATEPACK_ADDRESS",
    "GRIN_API_KEY",
    "GRIN_EXCHANGE_RATE_SOURCE",
    "GRIN_MANUAL_EXCHANGE_RATE",
    "GRIN_STORE_CURRENCY",
    "GRIN_VERIFICATION_URL",
    "GRIN_AMOUNT_TOLERANCE",
    "GRIN_REFERENCE_RANDOM_SUFFIX",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in GRIN_VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = GatewaySettings.from_env()

    assert settings.enabled is False
    assert settings.title == "GRIN Payment"
    assert settings.description == "Pay with GRIN cryptocurrency using Slatepack"
    assert settings.exchange_rate_source == ExchangeRateSource.COINGECKO
    assert settings.manual_exchange_rate == Decimal("1")
    assert settings.store_currency == VSCurrency.USD
    assert settings.verification_url is None


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("GRIN_ENABLED", "yes")
    monkeypatch.setenv("GRIN_EXCHANGE_RATE_SOURCE", "manual")
    monkeypatch.setenv("GRIN_MANUAL_EXCHANGE_RATE", "0.035")
    monkeypatch.setenv("GRIN_STORE_CURRENCY", "EUR")
    monkeypatch.setenv("GRIN_SLATEPACK_ADDRESS", "grin1abc")
    monkeypatch.setenv("GRIN_REFERENCE_RANDOM_SUFFIX", "true")

    settings = GatewaySettings.from_env()

    assert settings.enabled is True
    assert settings.exchange_rate_source == ExchangeRateSource.MANUAL
    assert settings.manual_exchange_rate == Decimal("0.035")
    assert settings.store_currency == VSCurrency.EUR
    assert settings.slatepack_address == "grin1abc"
    assert settings.reference_random_suffix is True


def test_blank_manual_rate_means_no_fallback(monkeypatch):
    monkeypatch.setenv("GRIN_MANUAL_EXCHANGE_RATE", "  ")

    assert GatewaySettings.from_env().manual_exchange_rate is None


@pytest.mark.parametrize(
    "name, value",
    [
        ("GRIN_MANUAL_EXCHANGE_RATE", "one"),
        ("GRIN_EXCHANGE_RATE_SOURCE", "binance"),
        ("GRIN_STORE_CURRENCY", "xyz"),
        ("GRIN_AMOUNT_TOLERANCE", "2"),
    ],
)
def test_invalid_values_are_configuration_errors(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        GatewaySettings.from_env()
