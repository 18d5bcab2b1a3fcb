from decimal import Decimal

import pytest

from freshcart.adapters.mock_payment import DECLINE_TOKEN, PaymentDeclined
from freshcart.auth import create_access_token
from freshcart.models.order import Order

ADDRESS = {"street": "1 Elm St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"}


def _payload(grocery, **overrides):
    payload = {
        "deliveryAddress": ADDRESS,
        "deliveryTime": "morning",
        "contactPhone": "555-0100",
        "contactEmail": "shopper@example.com",
        "paymentMethod": "cod",
        "items": [
            {"id": grocery["Meyer Lemon"], "quantity": 2, "price": "2.99"},
            {"id": grocery["Orange"], "quantity": 1, "price": "5.00"},
        ],
        "subtotal": "10.98",
        "deliveryFee": "5.00",
        "tax": "0.8784",
        "total": "16.8584",
    }
    payload.update(overrides)
    return payload


def test_cash_order_is_created_with_lines(client, grocery, user_headers):
    res = client.post("/api/orders", json=_payload(grocery), headers=user_headers)
    assert res.status_code == 201, res.text
    order = res.json()
    assert order["status"] == "pending"
    assert order["user_id"] == "user-1"
    assert Decimal(order["total"]) == Decimal("16.8584")
    assert order["shipping_address"] == ADDRESS
    assert [(l["name"], l["quantity"]) for l in order["lines"]] == [("Meyer Lemon", 2), ("Orange", 1)]


def test_order_requires_token(client, grocery):
    assert client.post("/api/orders", json=_payload(grocery)).status_code == 401


def test_float_totals_from_client_are_accepted(client, grocery, user_headers):
    payload = _payload(grocery, subtotal=10.98, tax=0.8784000000000001, total=16.8584)
    assert client.post("/api/orders", json=payload, headers=user_headers).status_code == 201


def test_mismatched_totals_are_rejected(client, grocery, user_headers, db):
    res = client.post("/api/orders", json=_payload(grocery, total="12.00"), headers=user_headers)
    assert res.status_code == 400
    assert "total" in res.json()["detail"]
    assert db.query(Order).count() == 0


def test_unknown_item_leaves_no_order_behind(client, grocery, user_headers, db):
    items = [{"id": 9999, "quantity": 1, "price": "10.98"}]
    res = client.post("/api/orders", json=_payload(grocery, items=items), headers=user_headers)
    assert res.status_code == 400
    assert db.query(Order).count() == 0


def test_empty_or_incomplete_order_is_invalid(client, grocery, user_headers):
    assert client.post("/api/orders", json=_payload(grocery, items=[]), headers=user_headers).status_code == 422
    bad_address = dict(ADDRESS, zip="  ")
    res = client.post("/api/orders", json=_payload(grocery, deliveryAddress=bad_address), headers=user_headers)
    assert res.status_code == 422
    res = client.post("/api/orders", json=_payload(grocery, deliveryTime="midnight"), headers=user_headers)
    assert res.status_code == 422


def test_card_order_needs_confirmed_intent_for_exact_amount(client, grocery, user_headers, payments):
    res = client.post("/api/orders", json=_payload(grocery, paymentMethod="card"), headers=user_headers)
    assert res.status_code == 400

    res = client.post("/api/payment-intents", json={"amount": 1686}, headers=user_headers)
    assert res.status_code == 200
    body = res.json()
    payload = _payload(grocery, paymentMethod="card", paymentIntentId=body["paymentIntentId"])
    # not confirmed yet
    assert client.post("/api/orders", json=payload, headers=user_headers).status_code == 400

    payments.confirm_card(body["clientSecret"], "tok_visa")
    res = client.post("/api/orders", json=payload, headers=user_headers)
    assert res.status_code == 201
    assert res.json()["payment_intent_id"] == body["paymentIntentId"]


def test_card_order_with_wrong_amount_is_rejected(client, grocery, user_headers, payments):
    intent = payments.create_intent(168584, "usd")
    payments.confirm_card(intent["client_secret"], "tok_visa")
    payload = _payload(grocery, paymentMethod="card", paymentIntentId=intent["id"])
    res = client.post("/api/orders", json=payload, headers=user_headers)
    assert res.status_code == 400
    assert "amount" in res.json()["detail"]


def test_payment_intent_validation_and_decline(client, user_headers, payments):
    assert client.post("/api/payment-intents", json={"amount": 0}, headers=user_headers).status_code == 422
    assert client.post("/api/payment-intents", json={"amount": 100}).status_code == 401
    res = client.post("/api/payment-intents", json={"amount": 500, "currency": "usd"}, headers=user_headers)
    secret = res.json()["clientSecret"]
    with pytest.raises(PaymentDeclined, match="declined"):
        payments.confirm_card(secret, DECLINE_TOKEN)


def test_user_sees_only_own_orders(client, grocery, user_headers):
    created = client.post("/api/orders", json=_payload(grocery), headers=user_headers).json()
    other = {"Authorization": "Bearer " + create_access_token("user-2")}
    assert [o["id"] for o in client.get("/api/orders", headers=user_headers).json()] == [created["id"]]
    assert client.get("/api/orders", headers=other).json() == []
    assert client.get(f"/api/orders/{created['id']}", headers=other).status_code == 404
    assert client.get(f"/api/orders/{created['id']}", headers=user_headers).status_code == 200


def test_admin_advances_status_along_allowed_path(client, grocery, user_headers, admin_headers):
    order_id = client.post("/api/orders", json=_payload(grocery), headers=user_headers).json()["id"]
    url = f"/api/orders/{order_id}/status"
    assert client.put(url, json={"status": "confirmed"}, headers=user_headers).status_code == 403
    assert client.put(url, json={"status": "delivered"}, headers=admin_headers).status_code == 409
    for status in ("confirmed", "shipped", "delivered"):
        res = client.put(url, json={"status": status}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["status"] == status
    assert client.put(url, json={"status": "cancelled"}, headers=admin_headers).status_code == 409
    assert client.put("/api/orders/9999/status", json={"status": "confirmed"}, headers=admin_headers).status_code == 404
    all_orders = client.get("/api/admin/orders", headers=admin_headers).json()
    assert [o["status"] for o in all_orders] == ["delivered"]


def test_pending_order_can_be_cancelled(client, grocery, user_headers, admin_headers):
    order_id = client.post("/api/orders", json=_payload(grocery), headers=user_headers).json()["id"]
    res = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert res.json()["status"] == "cancelled"


def _paid_intent(client, headers, payments, amount=1686):
    body = client.post("/api/payment-intents", json={"amount": amount}, headers=headers).json()
    payments.confirm_card(body["clientSecret"], "tok_visa")
    return body["paymentIntentId"]


def test_payment_intent_pays_for_one_order_only(client, grocery, user_headers, payments, db):
    payload = _payload(grocery, paymentMethod="card", paymentIntentId=_paid_intent(client, user_headers, payments))
    assert client.post("/api/orders", json=payload, headers=user_headers).status_code == 201
    res = client.post("/api/orders", json=payload, headers=user_headers)
    assert res.status_code == 400
    assert "already been used" in res.json()["detail"]
    assert db.query(Order).count() == 1


def test_payment_intent_of_another_customer_is_rejected(client, grocery, user_headers, payments, db):
    payload = _payload(grocery, paymentMethod="card", paymentIntentId=_paid_intent(client, user_headers, payments))
    other = {"Authorization": "Bearer " + create_access_token("user-2")}
    res = client.post("/api/orders", json=payload, headers=other)
    assert res.status_code == 400
    assert "another customer" in res.json()["detail"]
    assert db.query(Order).count() == 0


def test_line_prices_come_from_the_catalogue(client, grocery, user_headers, db):
    items = [{"id": grocery["Meyer Lemon"], "quantity": 100, "price": "0.00"}]
    payload = _payload(grocery, items=items, subtotal="0.00", tax="0.00", total="5.00")
    res = client.post("/api/orders", json=payload, headers=user_headers)
    assert res.status_code == 400
    assert "Meyer Lemon" in res.json()["detail"]
    assert db.query(Order).count() == 0


def test_stored_lines_carry_catalogue_prices(client, grocery, user_headers):
    order = client.post("/api/orders", json=_payload(grocery), headers=user_headers).json()
    assert [Decimal(l["price"]) for l in order["lines"]] == [Decimal("2.99"), Decimal("5.00")]
    assert Decimal(order["subtotal"]) == Decimal("10.98")
