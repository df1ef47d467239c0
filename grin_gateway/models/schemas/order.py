# models/schemas/order.py
from decimal import Decimal
from typing import Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from grin_gateway.models.enums import OrderStatus
from .base import TimestampModel, MetadataModel


class OrderNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    note: str
    created_at: datetime


class OrderBase(MetadataModel):
    total: Decimal = Field(gt=0, decimal_places=2, examples=["100.00"])
    currency: str = Field(default="USD", min_length=3, max_length=3)
    metadata: Dict = Field(default_factory=dict)


class OrderCreate(OrderBase):
    payment_method: Optional[str] = Field(default=None, examples=["grin"])


class OrderResponse(OrderBase, TimestampModel):
    id: str
    status: OrderStatus
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None

    payment_reference: Optional[str] = None
    grin_amount_display: str = Field(default="-", title="GRIN amount column")
    notes: List[OrderNoteResponse] = Field(default_factory=list)
