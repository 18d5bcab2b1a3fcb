from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freshcart.adapters.mock_payment import MockPaymentAdapter, get_payment_adapter
from freshcart.auth import Principal, get_current_principal
from freshcart.db import get_db
from freshcart.schemas.order_schema import CreateOrderIn, OrderOut
from freshcart.services.order_service import OrderNotFound, OrderService, OrderServiceException

router = APIRouter(prefix="/api/orders", tags=["orders"])



@router.post("", summary="Create order (checkout)", response_model=OrderOut, status_code=201)
def create_order(
    payload: CreateOrderIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    payments: MockPaymentAdapter = Depends(get_payment_adapter),
):
    svc = OrderService(db, payment_adapter=payments)
    try:
        return svc.create_order(principal.user_id, payload.model_dump(mode="json"))
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", summary="List my orders", response_model=list[OrderOut])
def list_my_orders(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return OrderService(db).list_orders(user_id=principal.user_id, limit=limit)


@router.get("/{order_id}", summary="Get one of my orders", response_model=OrderOut)
def get_my_order(
    order_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    try:
        return OrderService(db).get_order(order_id, user_id=principal.user_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
