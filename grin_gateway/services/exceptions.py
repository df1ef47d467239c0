class GatewayError(Exception):
    """Base exception for GRIN gateway errors."""

    pass


class ConfigurationError(GatewayError):
    """Raised when the gateway settings cannot produce a usable rate."""

    pass


class OrderNotFoundError(GatewayError):
    """Raised when an order id does not resolve to an order."""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidRateError(GatewayError):
    """Raised when the exchange rate is zero or negative."""

    def __init__(self, rate):
        super().__init__(f"Invalid GRIN exchange rate: {rate}")
        self.rate = rate


class OracleTransientError(GatewayError):
    """Raised when the verification oracle cannot answer right now."""

    pass


class DataIntegrityWarning(GatewayError, Warning):
    """Pending order is missing its payment reference or amount."""

    pass


class OrderNotPayableError(GatewayError):
    """Raised when checkout is started for an order that can no longer be paid."""

    def __init__(self, order_id: str, status):
        super().__init__(f"Order {order_id} cannot be paid in status {status}")
        self.order_id = order_id
        self.status = status
