from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from freshcart.models.order import Order, OrderLine


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int, user_id: Optional[str] = None) -> Optional[Order]:
        query = self.db.query(Order).options(selectinload(Order.lines)).filter(Order.id == order_id)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        return query.first()

    def list(self, user_id: Optional[str] = None, limit: int = 100) -> List[Order]:
        query = self.db.query(Order).options(selectinload(Order.lines))
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()

    def get_by_payment_intent(self, intent_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.payment_intent_id == intent_id).first()

    def count(self) -> int:
        return self.db.query(Order).count()

    def add(self, order: Order, lines: List[OrderLine]) -> Order:
        self.db.add(order)
        self.db.flush()
        for line in lines:
            line.order_id = order.id
            order.lines.append(line)
        self.db.flush()
        return order

    def set_status(self, order: Order, status: str) -> Order:
        order.status = status
        order.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return order
