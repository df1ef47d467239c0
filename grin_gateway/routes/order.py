# routes/order.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from grin_gateway.database.dependencies import get_db, require_admin_key
from grin_gateway.models.database_models import Order
from grin_gateway.models.enums import (
    PAYMENT_METHOD_GRIN,
    META_PAYMENT_REFERENCE,
    META_GRIN_AMOUNT,
)
from grin_gateway.models.schemas.order import (
    OrderCreate,
    OrderNoteResponse,
    OrderResponse,
)
from grin_gateway.services.order import OrderService
from grin_gateway.utils.common import format_grin_amount


router = APIRouter(prefix="/orders", tags=["Orders"], dependencies=[Depends(require_admin_key)])


def grin_amount_column(order: Order) -> str:
    """Admin list projection: '<amount> GRIN' for GRIN orders, '-' otherwise"""
    amount = (order.metadata_ or {}).get(META_GRIN_AMOUNT)
    if order.payment_method != PAYMENT_METHOD_GRIN or not amount:
        return "-"
    return f"{format_grin_amount(amount)} GRIN"


def to_response(order: Order) -> OrderResponse:
    return OrderResponse.from_orm_obj(
        order,
        payment_reference=(order.metadata_ or {}).get(META_PAYMENT_REFERENCE),
        grin_amount_display=grin_amount_column(order),
        notes=[OrderNoteResponse.model_validate(n) for n in order.notes],
    )


@router.post("/", response_model=OrderResponse)
async def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
):
    """Create a new order."""
    service = OrderService(db)
    order = await service.create(data)
    return to_response(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
):
    """Get a specific order by ID."""
    service = OrderService(db)
    order = await service.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    return to_response(order)
