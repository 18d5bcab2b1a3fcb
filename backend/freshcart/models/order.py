from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from freshcart.db import Base


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(
        String(32), nullable=False, default="pending"
    )  # pending, confirmed, shipped, delivered, cancelled
    # unrounded decimal major units; rounding happens at display time
    subtotal = Column(Numeric(12, 4), nullable=False, default=0)
    delivery_fee = Column(Numeric(12, 4), nullable=False, default=0)
    tax = Column(Numeric(12, 4), nullable=False, default=0)
    total = Column(Numeric(12, 4), nullable=False, default=0)
    shipping_address = Column(JSON, nullable=False)
    contact_phone = Column(String(64), nullable=False)
    contact_email = Column(String(256), nullable=False)
    payment_method = Column(String(16), nullable=False)
    # one order per payment intent
    payment_intent_id = Column(String(64), unique=True, nullable=True)
    delivery_time = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, nullable=True)

    lines = relationship(
        "OrderLine", back_populates="order", cascade="all, delete-orphan"
    )


class OrderLine(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # nulled when the catalogue item is deleted; name/price stay as a snapshot
    item_id = Column(
        Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(256), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="lines")
