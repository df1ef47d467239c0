from grin_gateway.config import STORE_BASE_URL
from grin_gateway.models.database_models import Order
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)


class Storefront:
    """
    Host storefront collaborator.

    The host owns carts and page URLs; this default implementation builds the
    order-received URL from STORE_BASE_URL and only records the cart signal.
    Hosts with a real cart subclass it and override empty_cart.
    """

    def __init__(self, base_url: str = STORE_BASE_URL):
        self.base_url = base_url.rstrip("/")

    async def empty_cart(self, order: Order) -> None:
        logger.info(f"Cart cleared for order {order.id}")

    def get_return_url(self, order: Order) -> str:
        return f"{self.base_url}/checkout/order-received/{order.id}/"
