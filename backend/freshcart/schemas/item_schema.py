from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    stock: int = Field(0, ge=0)
    category_id: int
    image_url: Optional[str] = None
    status: str = "active"


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    category_id: int
    category_name: Optional[str] = None
    image_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
