import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from freshcart.adapters.mock_payment import MockPaymentAdapter
from freshcart.models.order import Order, OrderLine
from freshcart.pricing import compute_totals, to_decimal, to_minor_units
from freshcart.repositories.item_repo import ItemRepository
from freshcart.repositories.order_repo import OrderRepository
from freshcart.utils.transactions import atomic

log = logging.getLogger("orders")

# submitted totals may differ from ours by float noise, not by a cent
TOTALS_TOLERANCE = Decimal("0.005")

ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


class OrderServiceException(Exception):
    pass


class OrderNotFound(OrderServiceException):
    pass


class InvalidStatusTransition(OrderServiceException):
    pass


class OrderService:
    def __init__(self, db: Session, payment_adapter: Optional[MockPaymentAdapter] = None):
        self.db = db
        self.orders = OrderRepository(db)
        self.items = ItemRepository(db)
        self.payment_adapter = payment_adapter

    def _gen_order_number(self) -> str:
        return f"ORD-{uuid4().hex[:10].upper()}"

    def create_order(self, user_id: str, payload: Dict) -> Order:
        """
        payload: the validated POST /orders body (see CreateOrderIn).

        Lines are priced from the catalogue; a submitted price or total that
        disagrees with it is rejected. The order row and its lines are
        written in one transaction, so a failure part-way leaves nothing
        behind.
        """
        lines_in: List[Dict] = payload["items"]
        if not lines_in:
            raise OrderServiceException("Order has no items")
        payment_method = payload["paymentMethod"]
        intent_id = payload.get("paymentIntentId")

        try:
            with atomic(self.db, "order.create"):
                ids = sorted({int(l["id"]) for l in lines_in})
                known = {i.id: i for i in self.items.get_many(ids)}
                missing = [i for i in ids if i not in known]
                if missing:
                    raise OrderServiceException(f"Unknown items: {missing}")

                priced = self._price_lines(user_id, lines_in, known)
                totals = compute_totals(priced)
                self._check_totals(user_id, payload, totals)
                if payment_method == "card":
                    self._verify_card_payment(intent_id, user_id, to_minor_units(totals.total))

                order = Order(
                    order_number=self._gen_order_number(),
                    user_id=user_id,
                    status="pending",
                    subtotal=totals.subtotal,
                    delivery_fee=totals.delivery_fee,
                    tax=totals.tax,
                    total=totals.total,
                    shipping_address=dict(payload["deliveryAddress"]),
                    contact_phone=payload["contactPhone"],
                    contact_email=payload["contactEmail"],
                    payment_method=payment_method,
                    payment_intent_id=intent_id if payment_method == "card" else None,
                    delivery_time=payload["deliveryTime"],
                )
                lines = [
                    OrderLine(
                        item_id=line["id"],
                        name=known[line["id"]].name,
                        quantity=line["quantity"],
                        price=line["price"],
                    )
                    for line in priced
                ]
                self.orders.add(order, lines)
        except OrderServiceException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            log.exception("order insert failed user_id=%s", user_id)
            raise OrderServiceException(f"Failed to create order: {e}")

        log.info(
            "order created id=%s number=%s user_id=%s total=%s method=%s",
            order.id,
            order.order_number,
            user_id,
            order.total,
            payment_method,
        )
        return self.orders.get(order.id)

    def _price_lines(self, user_id: str, lines_in: List[Dict], known: Dict) -> List[Dict]:
        priced = []
        for l in lines_in:
            item = known[int(l["id"])]
            price = to_decimal(item.price)
            if abs(to_decimal(l["price"]) - price) > TOTALS_TOLERANCE:
                log.warning(
                    "order line price mismatch user_id=%s item_id=%s submitted=%s catalogue=%s",
                    user_id,
                    item.id,
                    l["price"],
                    price,
                )
                raise OrderServiceException(f"Price of {item.name} has changed to {price}")
            priced.append({"id": item.id, "quantity": int(l["quantity"]), "price": price})
        return priced

    def _check_totals(self, user_id: str, payload: Dict, totals) -> None:
        submitted = {
            "subtotal": payload["subtotal"],
            "deliveryFee": payload["deliveryFee"],
            "tax": payload["tax"],
            "total": payload["total"],
        }
        expected = {
            "subtotal": totals.subtotal,
            "deliveryFee": totals.delivery_fee,
            "tax": totals.tax,
            "total": totals.total,
        }
        for key, value in expected.items():
            if abs(to_decimal(submitted[key]) - value) > TOTALS_TOLERANCE:
                log.warning(
                    "order totals mismatch user_id=%s field=%s submitted=%s expected=%s",
                    user_id,
                    key,
                    submitted[key],
                    value,
                )
                raise OrderServiceException(f"Order {key} does not match the order lines")

    def _verify_card_payment(self, intent_id: Optional[str], user_id: str, amount_cents: int) -> None:
        if not intent_id:
            raise OrderServiceException("Card orders require a confirmed payment intent")
        if self.payment_adapter is None:
            raise OrderServiceException("Card payments are not available")
        intent = self.payment_adapter.retrieve(intent_id)
        if not intent or intent["status"] != "succeeded":
            raise OrderServiceException("Payment has not been confirmed")
        if intent["amount"] != amount_cents:
            log.warning(
                "payment amount mismatch intent=%s paid=%s expected=%s",
                intent_id,
                intent["amount"],
                amount_cents,
            )
            raise OrderServiceException("Payment amount does not match the order total")
        owner = (intent.get("metadata") or {}).get("userId")
        if owner != user_id:
            log.warning("payment intent owner mismatch intent=%s owner=%s user_id=%s", intent_id, owner, user_id)
            raise OrderServiceException("Payment belongs to another customer")
        if self.orders.get_by_payment_intent(intent_id):
            log.warning("payment intent reused intent=%s user_id=%s", intent_id, user_id)
            raise OrderServiceException("Payment has already been used for another order")

    def get_order(self, order_id: int, user_id: Optional[str] = None) -> Order:
        order = self.orders.get(order_id, user_id=user_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        return order

    def list_orders(self, user_id: Optional[str] = None, limit: int = 100) -> List[Order]:
        return self.orders.list(user_id=user_id, limit=limit)

    def update_status(self, order_id: int, status: str) -> Order:
        with atomic(self.db, "order.status"):
            order = self.orders.get(order_id)
            if not order:
                raise OrderNotFound(f"Order {order_id} not found")
            if status != order.status:
                if status not in ALLOWED_TRANSITIONS.get(order.status, set()):
                    raise InvalidStatusTransition(
                        f"Cannot move order from {order.status} to {status}"
                    )
                self.orders.set_status(order, status)
        log.info("order status id=%s status=%s", order_id, status)
        return self.get_order(order_id)
