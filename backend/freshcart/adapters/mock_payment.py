import logging
import threading
import time
from uuid import uuid4
from typing import Dict, Optional

log = logging.getLogger("payments")

# card tokens that simulate processor outcomes in tests and local development
DECLINE_TOKEN = "tok_chargeDeclined"
UNAVAILABLE_TOKEN = "tok_processorUnavailable"


class PaymentDeclined(Exception):
    """Raised for a non-retryable payment failure (e.g., insufficient funds)."""
    pass


class PaymentUnavailable(Exception):
    """Raised when the processor can't be reached; the caller does not retry."""
    pass


class MockPaymentAdapter:
    """
    In-process stand-in for the card processor.

    The server side calls ``create_intent`` to obtain a client secret sized in
    minor units; the storefront then confirms the card against that secret.
    Intents live in memory for the lifetime of the adapter.
    """

    def __init__(self, delay_ms: int = 200):
        # Convert delay from milliseconds to seconds for time.sleep
        self.delay_seconds = delay_ms / 1000.0
        self._intents: Dict[str, Dict] = {}
        self._lock = threading.Lock()

    def create_intent(self, amount_cents: int, currency: str, metadata: Optional[Dict] = None) -> Dict:
        """
        Register a payment intent for ``amount_cents`` (integer minor units).

        Returns a dict with ``id``, ``client_secret``, ``amount``, ``currency``
        and ``status`` ("requires_confirmation").
        """
        if not isinstance(amount_cents, int) or amount_cents <= 0:
            raise ValueError("amount must be a positive integer number of minor units")
        time.sleep(self.delay_seconds)
        intent_id = f"pi_{uuid4().hex[:24]}"
        intent = {
            "id": intent_id,
            "client_secret": f"{intent_id}_secret_{uuid4().hex[:16]}",
            "amount": amount_cents,
            "currency": currency.lower(),
            "status": "requires_confirmation",
            "metadata": dict(metadata or {}),
        }
        with self._lock:
            self._intents[intent_id] = intent
        log.info("payment intent created id=%s amount=%s currency=%s", intent_id, amount_cents, currency)
        return dict(intent)

    def confirm_card(self, client_secret: str, card_token: str, billing_details: Optional[Dict] = None) -> Dict:
        """
        Confirm the intent identified by ``client_secret`` with a card token.

        Raises:
            PaymentDeclined: unknown secret, already-confirmed intent or a declined card.
            PaymentUnavailable: simulated processor outage.
        """
        time.sleep(self.delay_seconds)
        intent_id = client_secret.split("_secret_")[0]
        with self._lock:
            intent = self._intents.get(intent_id)
            if not intent or intent["client_secret"] != client_secret:
                raise PaymentDeclined("No such payment intent")
            if intent["status"] == "succeeded":
                raise PaymentDeclined("Payment intent has already been confirmed")
            if card_token == UNAVAILABLE_TOKEN:
                raise PaymentUnavailable("Payment processor unavailable")
            if card_token == DECLINE_TOKEN:
                intent["status"] = "requires_payment_method"
                log.info("payment intent declined id=%s", intent_id)
                raise PaymentDeclined("Your card was declined.")
            intent["status"] = "succeeded"
            intent["billing_details"] = dict(billing_details or {})
        log.info("payment intent succeeded id=%s amount=%s", intent_id, intent["amount"])
        return dict(intent)

    def retrieve(self, intent_id: str) -> Optional[Dict]:
        with self._lock:
            intent = self._intents.get(intent_id)
            return dict(intent) if intent else None

    def health_check(self) -> bool:
        return True


_default_adapter: Optional[MockPaymentAdapter] = None


def get_payment_adapter() -> MockPaymentAdapter:
    """FastAPI dependency returning the process-wide adapter."""
    global _default_adapter
    if _default_adapter is None:
        from freshcart.config import settings

        _default_adapter = MockPaymentAdapter(delay_ms=settings.PAYMENT_MOCK_DELAY_MS)
    return _default_adapter
