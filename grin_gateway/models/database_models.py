from datetime import datetime

import cuid2
import pytz
from sqlalchemy import (
    JSON,
    Column,
    String,
    Text,
    ForeignKey,
    NUMERIC,
    DateTime,
    Enum as SQLEnum,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

from .enums import OrderStatus


Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere
MetadataType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


class TimestampMixin:
    """Mixin for adding timestamp fields to models"""

    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


class Order(TimestampMixin, Base):
    """Storefront order paid (or to be paid) in GRIN"""

    __tablename__ = "Order"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())

    total = Column(NUMERIC(18, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    status = Column(
        SQLEnum(
            OrderStatus,
            values_callable=lambda obj: [e.value for e in obj],
            native_enum=False,
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    payment_method = Column(String(32), nullable=True, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    metadata_ = Column(MetadataType, nullable=False, default=dict, name="metadata")

    notes = relationship(
        "OrderNote",
        back_populates="order",
        order_by="OrderNote.created_at",
        cascade="all, delete-orphan",
    )


class OrderNote(Base):
    """Append-only audit note attached to an order"""

    __tablename__ = "OrderNote"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())
    order_id = Column(
        String, ForeignKey("Order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    note = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    order = relationship("Order", back_populates="notes")
