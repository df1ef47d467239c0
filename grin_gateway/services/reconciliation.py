from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from grin_gateway.models.database_models import Order
from grin_gateway.models.enums import (
    PAYMENT_METHOD_GRIN,
    META_PAYMENT_REFERENCE,
    META_GRIN_AMOUNT,
)
from grin_gateway.services.exceptions import DataIntegrityWarning, OracleTransientError
from grin_gateway.services.order import OrderService
from grin_gateway.services.verification import PaymentVerificationOracle
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_VERIFIED_NOTE = "GRIN payment verified and completed."


@dataclass
class PaymentRecord:
    order_id: str
    payment_reference: str
    grin_amount: Decimal

    @classmethod
    def from_order(cls, order: Order) -> "PaymentRecord":
        metadata = order.metadata_ or {}
        reference = metadata.get(META_PAYMENT_REFERENCE)
        amount = metadata.get(META_GRIN_AMOUNT)
        if not reference or amount in (None, ""):
            raise DataIntegrityWarning(
                f"Pending GRIN order {order.id} has no payment reference or amount"
            )
        try:
            grin_amount = Decimal(str(amount))
        except InvalidOperation as e:
            raise DataIntegrityWarning(
                f"Pending GRIN order {order.id} has a malformed amount: {amount}"
            ) from e
        return cls(order_id=order.id, payment_reference=reference, grin_amount=grin_amount)


class ReconciliationService:
    """
    Settles pending GRIN orders whose payment the oracle confirms.

    Safe to run concurrently with itself: completion goes through
    OrderService.complete_if_pending, which only one caller can win.
    """

    def __init__(self, db: Session, oracle: PaymentVerificationOracle):
        self.orders = OrderService(db)
        self.oracle = oracle

    async def run_reconciliation_pass(self, now: datetime, lookback_window: timedelta) -> None:
        """
        Check every pending GRIN order created within [now - lookback_window, now].

        Orders older than the window are left for manual handling. One order's
        failure never stops the others and the pass itself never raises.
        """
        checked = completed = skipped = failed = 0

        try:
            candidates = await self.orders.list_pending(
                payment_method=PAYMENT_METHOD_GRIN,
                since=now - lookback_window,
                until=now,
            )
        except Exception:
            logger.exception("Could not list pending GRIN orders, skipping reconciliation pass")
            return

        for order in candidates:
            checked += 1
            try:
                record = PaymentRecord.from_order(order)
            except DataIntegrityWarning as w:
                skipped += 1
                logger.warning(str(w))
                continue

            try:
                if await self._settle(record):
                    completed += 1
            except OracleTransientError as e:
                failed += 1
                logger.warning(
                    f"Verification unavailable for order {record.order_id}, retrying next pass: {e}"
                )
            except Exception:
                failed += 1
                logger.exception(f"Error reconciling order {record.order_id}")

        logger.info(
            f"Reconciliation pass done: checked={checked} completed={completed} "
            f"skipped={skipped} failed={failed}"
        )

    async def _settle(self, record: PaymentRecord) -> bool:
        verified = await self.oracle.verify(record.payment_reference, record.grin_amount)
        if not verified:
            return False

        if await self.orders.complete_if_pending(record.order_id, PAYMENT_VERIFIED_NOTE):
            logger.info(f"Payment completed for order {record.order_id}")
            return True

        logger.debug(f"Order {record.order_id} already completed, nothing to do")
        return False
