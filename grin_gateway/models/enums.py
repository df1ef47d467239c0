from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    ON_HOLD = "on-hold"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


class ExchangeRateSource(str, Enum):
    COINGECKO = "coingecko"
    MANUAL = "manual"


class CheckoutResult(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


PAYMENT_METHOD_GRIN = "grin"

# Order metadata keys holding the payment record
META_PAYMENT_REFERENCE = "_grin_payment_reference"
META_GRIN_AMOUNT = "_grin_amount"
META_EXCHANGE_RATE = "_grin_exchange_rate"

# Statuses from which a GRIN checkout may (re)start
PAYABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.ON_HOLD, OrderStatus.FAILED)
