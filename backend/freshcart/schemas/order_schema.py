from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeliverySlot(str, Enum):
    MORNING = "morning"  # 9am-12pm
    AFTERNOON = "afternoon"  # 12pm-5pm
    EVENING = "evening"  # 5pm-9pm


class PaymentMethod(str, Enum):
    COD = "cod"
    CARD = "card"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class AddressIn(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)

    @field_validator("street", "city", "state", "zip", "country")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class OrderItemIn(BaseModel):
    id: int
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)


class CreateOrderIn(BaseModel):
    """Body of POST /api/orders; field names match the storefront payload."""

    deliveryAddress: AddressIn
    deliveryTime: DeliverySlot
    contactPhone: str = Field(..., min_length=1)
    contactEmail: str = Field(..., min_length=3)
    paymentMethod: PaymentMethod
    paymentIntentId: Optional[str] = None
    items: List[OrderItemIn] = Field(..., min_length=1)
    subtotal: Decimal
    deliveryFee: Decimal
    tax: Decimal
    total: Decimal


class StatusUpdateIn(BaseModel):
    status: OrderStatus


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: Optional[int] = None
    name: Optional[str] = None
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: str
    status: OrderStatus
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal
    shipping_address: dict
    contact_phone: str
    contact_email: str
    payment_method: PaymentMethod
    payment_intent_id: Optional[str] = None
    delivery_time: DeliverySlot
    created_at: datetime
    lines: List[OrderLineOut] = []
