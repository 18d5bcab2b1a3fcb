from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from freshcart.adapters.mock_payment import MockPaymentAdapter, get_payment_adapter
from freshcart.db import engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health(payments: MockPaymentAdapter = Depends(get_payment_adapter)):
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except SQLAlchemyError:
        db_ok = False
    payment_ok = payments.health_check()

    return {
        "status": "ok" if db_ok and payment_ok else "degraded",
        "db": db_ok,
        "payment_adapter": payment_ok,
    }
