import logging

from fastapi import APIRouter, Depends, HTTPException

from freshcart.adapters.mock_payment import MockPaymentAdapter, PaymentUnavailable, get_payment_adapter
from freshcart.auth import Principal, get_current_principal
from freshcart.config import settings
from freshcart.schemas.payment_schema import PaymentIntentIn, PaymentIntentOut

router = APIRouter(prefix="/api", tags=["payments"])

log = logging.getLogger("payments")


@router.post("/payment-intents", summary="Create a card payment intent", response_model=PaymentIntentOut)
def create_payment_intent(
    payload: PaymentIntentIn,
    principal: Principal = Depends(get_current_principal),
    payments: MockPaymentAdapter = Depends(get_payment_adapter),
):
    """``amount`` is in minor units (cents); every other amount in the API is in major units."""
    try:
        intent = payments.create_intent(
            payload.amount, payload.currency or settings.PAYMENT_CURRENCY, metadata={"userId": principal.user_id}
        )
    except PaymentUnavailable:
        log.exception("payment intent creation failed user_id=%s", principal.user_id)
        raise HTTPException(status_code=502, detail="Failed to create payment intent")
    return PaymentIntentOut(clientSecret=intent["client_secret"], paymentIntentId=intent["id"])
