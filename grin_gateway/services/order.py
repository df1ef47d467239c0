# services/order.py
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pytz

from grin_gateway.models.database_models import Order, OrderNote
from grin_gateway.models.enums import OrderStatus, PAYABLE_STATUSES
from grin_gateway.models.schemas.order import OrderCreate
from grin_gateway.utils.logging import get_logger

from .base import BaseService

logger = get_logger(__name__)


class OrderService(BaseService[Order]):
    async def create(self, data: OrderCreate) -> Order:
        order = Order(**data.to_orm_dict(), status=OrderStatus.PENDING)
        logger.info(f"Creating order with total {order.total} {order.currency}")
        return await self._handle_db_operation(
            lambda: self.db.add(order) or order, "create order"
        )

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        return self.db.get(Order, order_id)

    async def list_pending(
        self, payment_method: str, since: datetime, until: datetime
    ) -> List[Order]:
        """Pending orders for a payment method created within [since, until]"""
        return (
            self.db.query(Order)
            .filter(
                Order.status == OrderStatus.PENDING,
                Order.payment_method == payment_method,
                Order.created_at >= since,
                Order.created_at <= until,
            )
            .order_by(Order.created_at)
            .all()
        )

    async def update_if_status(
        self,
        order_id: str,
        statuses: Iterable[OrderStatus],
        values: Dict,
        note: Optional[str] = None,
    ) -> bool:
        """
        Write column values only while the order is in one of the given
        statuses.

        The status check and the write are one UPDATE, so concurrent writers
        cannot both win. The audit note is written only by the winner.

        Returns: True if this call wrote the order.
        """
        values = {**values, Order.updated_at: datetime.now(pytz.UTC)}

        def operation():
            updated = (
                self.db.query(Order)
                .filter(Order.id == order_id, Order.status.in_(list(statuses)))
                .update(values, synchronize_session="fetch")
            )
            if updated == 1 and note:
                self.db.add(OrderNote(order_id=order_id, note=note))
            return updated == 1

        return await self._handle_db_operation(operation, f"update order {order_id}")

    async def update_metadata(
        self,
        order: Order,
        values: Dict,
        statuses: Iterable[OrderStatus] = PAYABLE_STATUSES,
        note: Optional[str] = None,
        **fields,
    ) -> bool:
        """
        Merge values into the order metadata and set plain columns in one
        commit, while the order is in one of the given statuses.

        The whole mapping is reassigned so readers never see a partial write.

        Returns: False when the order was not in one of the statuses.
        """
        changes = {Order.metadata_: {**(order.metadata_ or {}), **values}}
        changes.update({getattr(Order, key): value for key, value in fields.items()})
        return await self.update_if_status(order.id, statuses, changes, note)

    async def complete_if_pending(self, order_id: str, note: str) -> bool:
        """
        Move an order from pending to completed, at most once.

        Returns: True if this call completed the order, False if it was no
        longer pending.
        """
        return await self.update_if_status(
            order_id,
            [OrderStatus.PENDING],
            {
                Order.status: OrderStatus.COMPLETED,
                Order.paid_at: datetime.now(pytz.UTC),
            },
            note,
        )

    async def get_notes(self, order_id: str) -> List[OrderNote]:
        return (
            self.db.query(OrderNote)
            .filter(OrderNote.order_id == order_id)
            .order_by(OrderNote.created_at)
            .all()
        )
