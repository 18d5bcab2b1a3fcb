import logging
from typing import Any, Dict, List, Optional

from freshcart.client.cart import Cart
from freshcart.client.storage import KeyValueStorage

log = logging.getLogger("session")

TOKEN_KEY = "token"
USER_KEY = "user"
ADDRESSES_KEY = "addresses"


class AddressBook:
    """Named addresses the shopper can reuse at checkout."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def _all(self) -> Dict[str, Dict[str, str]]:
        return self.storage.get(ADDRESSES_KEY) or {}

    def save(self, label: str, address: Dict[str, str]) -> None:
        label = label.strip()
        if not label:
            raise ValueError("Address label is required")
        data = self._all()
        data[label] = dict(address)
        self.storage.set(ADDRESSES_KEY, data)

    def get(self, label: str) -> Optional[Dict[str, str]]:
        return self._all().get(label)

    def labels(self) -> List[str]:
        return sorted(self._all())

    def remove(self, label: str) -> None:
        data = self._all()
        if data.pop(label, None) is not None:
            self.storage.set(ADDRESSES_KEY, data)


class AppState:
    """
    Everything the storefront keeps between page loads: credentials, the
    cart and the address book. Components receive this object instead of
    reaching for globals.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.cart = Cart(storage)
        self.address_book = AddressBook(storage)

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(TOKEN_KEY)

    @property
    def user(self) -> Dict[str, Any]:
        return self.storage.get(USER_KEY) or {}

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.user.get("role") == "admin"

    def login(self, token: str, user: Dict[str, Any]) -> None:
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_KEY, user)

    def clear_credentials(self) -> None:
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)

    def logout(self) -> None:
        self.clear_credentials()
        self.cart.clear()
        log.info("logged out; credentials and cart cleared")
