"""
Shared fixtures for the GRIN gateway tests.

Environment is set before any grin_gateway import so the module level engine,
logger and scheduler flag pick up test values.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="grin-gateway-logs-")
os.environ["SCHEDULER_ENABLED"] = "no"
os.environ["ADMIN_API_KEY"] = "test-admin-key"

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

import pytest
import pytz
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from grin_gateway.models.database_models import Base, Order
from grin_gateway.models.enums import (
    ExchangeRateSource,
    OrderStatus,
    PAYMENT_METHOD_GRIN,
    META_PAYMENT_REFERENCE,
    META_GRIN_AMOUNT,
)
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exchange_rate import ExchangeRateProvider
from grin_gateway.services.storefront import Storefront
from grin_gateway.services.verification import PaymentVerificationOracle
from grin_gateway.utils.coingecko.types import Price, VSCurrency


SLATEPACK_ADDRESS = "grin1dhvv9mvarqwl0fvkv0lzm2lvdqkj3z8g5qhvl0ee8xyl3ngnvvzqvx3gdx"


class FakePriceSource:
    """Stands in for CoinGeckoService"""

    def __init__(self, price: Optional[float] = None, error: Optional[Exception] = None):
        self.price = price
        self.error = error
        self.calls: List[Tuple[str, VSCurrency]] = []

    async def get_price(self, coin_id: str, vs_currency: VSCurrency) -> Price:
        self.calls.append((coin_id, vs_currency))
        if self.error is not None:
            raise self.error
        return Price(currency_id=coin_id, price=self.price, vs_currency=vs_currency)


class FakeOracle(PaymentVerificationOracle):
    """Answers per reference; an Exception value is raised instead of returned"""

    def __init__(self, answers: Optional[Dict[str, Union[bool, Exception]]] = None, default: bool = False):
        self.answers = answers or {}
        self.default = default
        self.calls: List[Tuple[str, Decimal]] = []

    async def verify(self, reference: str, expected_amount: Decimal) -> bool:
        self.calls.append((reference, expected_amount))
        answer = self.answers.get(reference, self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer

    @property
    def references(self) -> List[str]:
        return [reference for reference, _ in self.calls]


class RecordingStorefront(Storefront):
    def __init__(self, fail_cart: bool = False):
        super().__init__(base_url="https://shop.example.com")
        self.fail_cart = fail_cart
        self.cleared: List[str] = []

    async def empty_cart(self, order: Order) -> None:
        if self.fail_cart:
            raise RuntimeError("cart service down")
        self.cleared.append(order.id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return GatewaySettings(
        enabled=True,
        slatepack_address=SLATEPACK_ADDRESS,
        exchange_rate_source=ExchangeRateSource.MANUAL,
        manual_exchange_rate=Decimal("1.25"),
    )


@pytest.fixture
def rates():
    return ExchangeRateProvider(coingecko=FakePriceSource(price=2.5))


@pytest.fixture
def storefront():
    return RecordingStorefront()


@pytest.fixture
def make_order(db):
    def _make_order(
        total: Union[str, Decimal] = "100.00",
        status: OrderStatus = OrderStatus.PENDING,
        payment_method: Optional[str] = PAYMENT_METHOD_GRIN,
        metadata: Optional[Dict] = None,
        created_at: Optional[datetime] = None,
        reference: Optional[str] = None,
        grin_amount: Optional[str] = None,
    ) -> Order:
        metadata = dict(metadata or {})
        if reference is not None:
            metadata[META_PAYMENT_REFERENCE] = reference
        if grin_amount is not None:
            metadata[META_GRIN_AMOUNT] = grin_amount
        # Slightly in the past so the order sits inside a window ending at `now`
        if created_at is None:
            created_at = datetime.now(pytz.UTC) - timedelta(minutes=5)
        order = Order(
            total=Decimal(str(total)),
            status=status,
            payment_method=payment_method,
            metadata_=metadata,
            created_at=created_at,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make_order


@pytest.fixture
def now():
    return datetime.now(pytz.UTC)


@pytest.fixture
def hours_ago(now):
    return lambda hours: now - timedelta(hours=hours)


@pytest.fixture
def log_messages():
    """Captures loguru output as 'LEVEL | message' strings"""
    messages: List[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level} | {message}")
    yield messages
    logger.remove(handler_id)
