from typing import Optional

from pydantic import BaseModel, Field


class PaymentIntentIn(BaseModel):
    amount: int = Field(..., gt=0, description="minor units (cents)")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class PaymentIntentOut(BaseModel):
    clientSecret: str
    paymentIntentId: str
