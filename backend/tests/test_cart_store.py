from decimal import Decimal

from freshcart.client.cart import Cart
from freshcart.client.state import AppState
from freshcart.client.storage import JsonFileStorage, MemoryStorage

LEMON = {"id": 1, "name": "Meyer Lemon", "price": "2.99", "image_url": None}
ORANGE = {"id": 2, "name": "Orange", "price": "5.00", "image_url": "https://img/orange.png"}


def test_add_item_inserts_then_increments():
    cart = Cart(MemoryStorage())
    cart.add_item(LEMON)
    assert [(l.product_id, l.quantity) for l in cart.lines()] == [(1, 1)]
    cart.add_item(LEMON)
    assert [(l.product_id, l.quantity) for l in cart.lines()] == [(1, 2)]


def test_set_quantity_zero_removes_line():
    cart = Cart(MemoryStorage())
    cart.add_item(LEMON)
    cart.set_quantity(1, 0)
    assert cart.is_empty()


def test_set_quantity_and_remove():
    cart = Cart(MemoryStorage())
    cart.add_item(LEMON)
    cart.add_item(ORANGE)
    cart.set_quantity(2, 3)
    assert cart.item_count() == 4
    cart.remove(1)
    assert [l.product_id for l in cart.lines()] == [2]
    cart.set_quantity(99, 5)
    assert cart.item_count() == 3


def test_total_is_unrounded_until_display():
    cart = Cart(MemoryStorage())
    cart.add_item({"id": 3, "name": "Saffron", "price": "0.333"})
    cart.set_quantity(3, 3)
    assert cart.total() == Decimal("0.999")
    assert cart.display_total() == Decimal("1.00")


def test_cart_survives_reload_from_same_storage():
    storage = MemoryStorage()
    cart = Cart(storage)
    cart.add_item(LEMON)
    cart.add_item(LEMON)
    cart.add_item(ORANGE)
    reloaded = Cart(storage)
    assert [(l.product_id, l.quantity, l.price) for l in reloaded.lines()] == [
        (1, 2, Decimal("2.99")),
        (2, 1, Decimal("5.00")),
    ]


def test_unreadable_entries_are_dropped_on_load():
    storage = MemoryStorage(
        {"cart": [{"productId": 1, "name": "ok", "price": "1.00", "quantity": 2}, {"bogus": True}]}
    )
    assert [l.product_id for l in Cart(storage).lines()] == [1]


def test_json_file_storage_is_durable(tmp_path):
    path = str(tmp_path / "profile.json")
    Cart(JsonFileStorage(path)).add_item(ORANGE)
    cart = Cart(JsonFileStorage(path))
    assert cart.item_count() == 1
    cart.clear()
    assert Cart(JsonFileStorage(path)).is_empty()


def test_carts_sharing_a_profile_keep_each_others_edits(tmp_path):
    path = str(tmp_path / "profile.json")
    first = Cart(JsonFileStorage(path))
    second = Cart(JsonFileStorage(path))
    first.add_item(LEMON)
    second.add_item(ORANGE)
    first.set_quantity(1, 3)
    assert [(l.product_id, l.quantity) for l in Cart(JsonFileStorage(path)).lines()] == [(1, 3), (2, 1)]


def test_logout_clears_credentials_and_cart():
    state = AppState(MemoryStorage())
    state.login("tok", {"id": "user-1", "role": "user"})
    state.cart.add_item(LEMON)
    assert state.is_authenticated and not state.is_admin
    state.logout()
    assert not state.is_authenticated
    assert state.user == {}
    assert state.cart.is_empty()
    assert AppState(state.storage).cart.is_empty()


def test_address_book_round_trip():
    state = AppState(MemoryStorage())
    home = {"street": "1 Elm St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"}
    state.address_book.save("Home", home)
    state.address_book.save("Work", dict(home, street="9 Main St"))
    assert state.address_book.labels() == ["Home", "Work"]
    assert state.address_book.get("Home") == home
    state.address_book.remove("Home")
    assert state.address_book.labels() == ["Work"]
