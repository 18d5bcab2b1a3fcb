import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from freshcart.client.errors import ApiError, AuthenticationError, NetworkError
from freshcart.client.state import AppState

log = logging.getLogger("checkout")

DEFAULT_TIMEOUT = 10.0


class ApiClient:
    """
    Thin JSON client for the storefront API.

    ``http`` may be any ``httpx.Client`` (a FastAPI ``TestClient`` in tests);
    otherwise one is created for ``base_url`` with a bounded timeout.
    """

    def __init__(
        self,
        state: AppState,
        base_url: str = "http://127.0.0.1:8000",
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.state = state
        self.timeout = timeout
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth and self.state.token:
            headers["Authorization"] = f"Bearer {self.state.token}"
        return headers

    def _request(self, method: str, path: str, auth: bool = False, **kwargs) -> Any:
        try:
            resp = self.http.request(
                method, path, headers=self._headers(auth), timeout=self.timeout, **kwargs
            )
        except httpx.TransportError as e:
            log.warning("request failed method=%s path=%s error=%s", method, path, e)
            raise NetworkError(str(e)) from e
        if resp.status_code == 401:
            raise AuthenticationError(_detail(resp))
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _detail(resp))
        try:
            return resp.json()
        except ValueError:
            log.warning("non-JSON reply method=%s path=%s status=%s", method, path, resp.status_code)
            raise ApiError(resp.status_code, "Invalid response")

    # catalogue
    def categories(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/categories")

    def category_tree(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/category-tree")

    def items(self, **params) -> Dict[str, Any]:
        params = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/api/items", params=params)

    # orders and payments
    def create_payment_intent(self, amount_cents: int, currency: str = "usd") -> Dict[str, Any]:
        if not isinstance(amount_cents, int):
            raise TypeError("payment intent amounts are integer minor units")
        return self._request(
            "POST", "/api/payment-intents", auth=True, json={"amount": amount_cents, "currency": currency}
        )

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders", auth=True, json=_jsonable(payload))

    def my_orders(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/orders", auth=True)


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return str(body)


def _jsonable(value: Any) -> Any:
    # decimals travel as strings so no float rounding creeps in
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
